from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.auth import current_user_id
from growlog.services.overview import build_overview

overview_ns = Namespace('overview', description='Dashboard statistics')

stats_model = overview_ns.model('OverviewStats', {
    'total': fields.Integer,
    'active': fields.Integer,
    'healthy': fields.Integer,
    'waste': fields.Integer
})

environment_snapshot_model = overview_ns.model('EnvironmentSnapshot', {
    'temperature': fields.Float,
    'humidity': fields.Float,
    'co2': fields.Float,
    'vpd': fields.Float,
    'last_updated': fields.DateTime,
    'source': fields.String
})

chart_point_model = overview_ns.model('GrowthChartPoint', {
    'label': fields.String,
    'height': fields.Integer
})

activity_model = overview_ns.model('Activity', {
    'type': fields.String,
    'id': fields.Integer,
    'date': fields.DateTime,
    'title': fields.String,
    'subtitle': fields.String
})

overdue_task_model = overview_ns.model('OverdueTask', {
    'id': fields.Integer,
    'title': fields.String,
    'due_at': fields.DateTime,
    'priority': fields.String,
    'plant_id': fields.Integer,
    'plant_name': fields.String(attribute='plant.name')
})

overview_model = overview_ns.model('Overview', {
    'stats': fields.Nested(stats_model),
    'environment': fields.Nested(environment_snapshot_model),
    'chart_data': fields.List(fields.Nested(chart_point_model)),
    'tasks_today_count': fields.Integer,
    'recent_activity': fields.List(fields.Nested(activity_model)),
    'overdue_tasks': fields.List(fields.Nested(overdue_task_model))
})


@overview_ns.route('/overview')
class Overview(Resource):
    method_decorators = [jwt_required()]

    @overview_ns.marshal_with(overview_model)
    def get(self):
        return build_overview(current_user_id())
