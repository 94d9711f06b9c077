import logging
from datetime import timedelta
from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.auth import current_user_id
from growlog.errors import GrowHasDependentPlants
from growlog.extensions import db
from growlog.models import Environment, EnvironmentMetric, Grow, Plant, utcnow
from growlog.services.calculators import MAX_TEMPERATURE, MIN_TEMPERATURE, calculate_vpd
from growlog.utils import parse_datetime_field

logger = logging.getLogger(__name__)

grow_ns = Namespace('grows', description='Grow, environment and climate operations')

LOCATION_TYPES = ['INDOOR', 'OUTDOOR']
MEDIUMS = ['SOIL', 'COCO', 'HYDRO', 'OTHER']

grow_input_model = grow_ns.model('GrowInput', {
    'name': fields.String(required=True, min_length=1),
    'location_type': fields.String(required=True, enum=LOCATION_TYPES),
    'notes': fields.String
})

grow_update_model = grow_ns.model('GrowUpdate', {
    'name': fields.String(min_length=1),
    'location_type': fields.String(enum=LOCATION_TYPES),
    'notes': fields.String
})

environment_input_model = grow_ns.model('EnvironmentInput', {
    'name': fields.String(required=True, min_length=1),
    'medium': fields.String(required=True, enum=MEDIUMS),
    'light_schedule': fields.String,
    'temperature_target': fields.Float,
    'humidity_target': fields.Float,
    'co2_target': fields.Float,
    'notes': fields.String
})

environment_update_model = grow_ns.model('EnvironmentUpdate', {
    'name': fields.String(min_length=1),
    'medium': fields.String(enum=MEDIUMS),
    'light_schedule': fields.String,
    'temperature_target': fields.Float,
    'humidity_target': fields.Float,
    'co2_target': fields.Float,
    'notes': fields.String
})

environment_model = grow_ns.model('Environment', {
    'id': fields.Integer(readonly=True),
    'grow_id': fields.Integer,
    'name': fields.String,
    'medium': fields.String,
    'light_schedule': fields.String,
    'temperature_target': fields.Float,
    'humidity_target': fields.Float,
    'co2_target': fields.Float,
    'notes': fields.String,
    'created_at': fields.DateTime
})

grow_plant_model = grow_ns.model('GrowPlant', {
    'id': fields.Integer,
    'name': fields.String,
    'strain': fields.String,
    'plant_type': fields.String,
    'phase': fields.String,
    'status': fields.String,
    'environment_id': fields.Integer,
    'progress': fields.Integer
})

grow_task_model = grow_ns.model('GrowTask', {
    'id': fields.Integer,
    'title': fields.String,
    'due_at': fields.DateTime,
    'status': fields.String,
    'repeat_rule': fields.String
})

grow_model = grow_ns.model('Grow', {
    'id': fields.Integer(readonly=True),
    'owner_user_id': fields.Integer,
    'name': fields.String,
    'location_type': fields.String,
    'notes': fields.String,
    'created_at': fields.DateTime,
    'environments': fields.List(fields.Nested(environment_model)),
    'plants': fields.List(fields.Nested(grow_plant_model))
})

grow_detail_model = grow_ns.inherit('GrowDetail', grow_model, {
    'tasks': fields.List(fields.Nested(grow_task_model))
})

environment_metric_input_model = grow_ns.model('EnvironmentMetricInput', {
    'environment_id': fields.Integer,
    'temperature': fields.Float(min=MIN_TEMPERATURE, max=MAX_TEMPERATURE),
    'humidity': fields.Float(min=0, max=100),
    'co2': fields.Float,
    'vpd': fields.Float,
    'recorded_at': fields.String(description='ISO 8601 timestamp')
})

environment_metric_model = grow_ns.model('EnvironmentMetric', {
    'id': fields.Integer(readonly=True),
    'grow_id': fields.Integer,
    'environment_id': fields.Integer,
    'temperature': fields.Float,
    'humidity': fields.Float,
    'co2': fields.Float,
    'vpd': fields.Float,
    'recorded_at': fields.DateTime
})

history_parser = grow_ns.parser()
history_parser.add_argument('days', type=int, required=False, default=7, location='args')
history_parser.add_argument('environment_id', type=int, required=False, location='args')


def find_owned_grow(grow_id, user_id):
    return Grow.query.filter_by(id=grow_id, owner_user_id=user_id).first()


def get_owned_grow_or_404(grow_id):
    grow = find_owned_grow(grow_id, current_user_id())
    if not grow:
        grow_ns.abort(404, error='Grow not found')
    return grow


def find_grow_environment(grow, environment_id):
    if environment_id is None:
        return None
    return Environment.query.filter_by(id=environment_id, grow_id=grow.id).first()


def delete_grow(grow):
    """Delete a grow with its environments, readings and tasks.

    Plants are never removed implicitly; a grow that still has plants raises
    GrowHasDependentPlants.
    """
    plant_count = Plant.query.filter_by(grow_id=grow.id).count()
    if plant_count:
        raise GrowHasDependentPlants(grow.id, plant_count)
    db.session.delete(grow)
    db.session.commit()
    logger.info("Deleted grow %s", grow.id)


# 1. Resource: Grows
@grow_ns.route('/grows')
class GrowList(Resource):
    method_decorators = [jwt_required()]

    # get: list the user's grows with environments and plants
    @grow_ns.marshal_list_with(grow_model)
    def get(self):
        return Grow.query.filter_by(owner_user_id=current_user_id()).order_by(Grow.created_at.asc()).all()

    # post: add new grow
    @grow_ns.expect(grow_input_model, validate=True)
    @grow_ns.marshal_with(grow_model, code=201)
    def post(self):
        data = grow_ns.payload
        grow = Grow(owner_user_id=current_user_id(),
                    name=data['name'],
                    location_type=data['location_type'],
                    notes=data.get('notes'))
        db.session.add(grow)
        db.session.commit()
        return grow, 201


@grow_ns.route('/grows/<int:id>')
@grow_ns.response(404, 'grow not found')
class GrowResource(Resource):
    method_decorators = [jwt_required()]

    @grow_ns.marshal_with(grow_detail_model)
    def get(self, id):
        return get_owned_grow_or_404(id)

    @grow_ns.expect(grow_update_model, validate=True)
    @grow_ns.marshal_with(grow_model)
    def patch(self, id):
        grow = get_owned_grow_or_404(id)
        data = grow_ns.payload
        for field in ('name', 'location_type', 'notes'):
            if field in data:
                setattr(grow, field, data[field])
        db.session.commit()
        return grow

    @grow_ns.response(409, 'grow has dependent plants')
    def delete(self, id):
        grow = get_owned_grow_or_404(id)
        delete_grow(grow)
        return {'message': 'Deleted'}, 200


# 2. Resource: Environments
"""
tents, rooms and other physical spaces inside a grow
"""
@grow_ns.route('/grows/<int:grow_id>/environments')
class GrowEnvironmentList(Resource):
    method_decorators = [jwt_required()]

    @grow_ns.marshal_list_with(environment_model)
    def get(self, grow_id):
        grow = get_owned_grow_or_404(grow_id)
        return Environment.query.filter_by(grow_id=grow.id).order_by(Environment.created_at.asc()).all()

    @grow_ns.expect(environment_input_model, validate=True)
    @grow_ns.marshal_with(environment_model, code=201)
    def post(self, grow_id):
        grow = get_owned_grow_or_404(grow_id)
        data = grow_ns.payload
        environment = Environment(grow_id=grow.id, **{key: data.get(key) for key in environment_input_model})
        db.session.add(environment)
        db.session.commit()
        return environment, 201


@grow_ns.route('/environments/<int:id>')
@grow_ns.response(404, 'environment not found')
class EnvironmentResource(Resource):
    method_decorators = [jwt_required()]

    def get_owned_environment(self, id):
        environment = (Environment.query.join(Grow, Environment.grow_id == Grow.id)
                       .filter(Environment.id == id, Grow.owner_user_id == current_user_id())
                       .first())
        if not environment:
            grow_ns.abort(404, error='Environment not found')
        return environment

    @grow_ns.expect(environment_update_model, validate=True)
    @grow_ns.marshal_with(environment_model)
    def patch(self, id):
        environment = self.get_owned_environment(id)
        data = grow_ns.payload
        for field in environment_update_model:
            if field in data:
                setattr(environment, field, data[field])
        db.session.commit()
        return environment

    def delete(self, id):
        environment = self.get_owned_environment(id)
        db.session.delete(environment)
        db.session.commit()
        return {'message': 'Deleted'}, 200


# 3. Resource: Environment readings
@grow_ns.route('/grows/<int:grow_id>/environment')
class GrowEnvironmentMetrics(Resource):
    method_decorators = [jwt_required()]

    # post: record a climate reading, vpd is derived when not supplied
    @grow_ns.expect(environment_metric_input_model, validate=True)
    @grow_ns.marshal_with(environment_metric_model, code=201)
    def post(self, grow_id):
        grow = get_owned_grow_or_404(grow_id)
        data = grow_ns.payload

        environment_id = data.get('environment_id')
        if environment_id is not None and not find_grow_environment(grow, environment_id):
            grow_ns.abort(404, error='Environment not found')

        temperature = data.get('temperature')
        humidity = data.get('humidity')
        vpd = data.get('vpd')
        if vpd is None and temperature is not None and humidity is not None:
            vpd = calculate_vpd(temperature, humidity)

        metric = EnvironmentMetric(grow_id=grow.id,
                                   environment_id=environment_id,
                                   temperature=temperature,
                                   humidity=humidity,
                                   co2=data.get('co2'),
                                   vpd=vpd,
                                   recorded_at=parse_datetime_field(grow_ns, data, 'recorded_at') or utcnow())
        db.session.add(metric)
        db.session.commit()
        return metric, 201


@grow_ns.route('/grows/<int:grow_id>/environment/latest')
class GrowEnvironmentLatest(Resource):
    method_decorators = [jwt_required()]

    @grow_ns.marshal_with(environment_metric_model)
    def get(self, grow_id):
        grow = get_owned_grow_or_404(grow_id)
        metric = (EnvironmentMetric.query.filter_by(grow_id=grow.id)
                  .order_by(EnvironmentMetric.recorded_at.desc(), EnvironmentMetric.id.desc())
                  .first())
        if not metric:
            grow_ns.abort(404, error='No environment data')
        return metric


@grow_ns.route('/grows/<int:grow_id>/environment/history')
class GrowEnvironmentHistory(Resource):
    method_decorators = [jwt_required()]

    # get: readings of the last n days, oldest first
    @grow_ns.expect(history_parser)
    @grow_ns.marshal_list_with(environment_metric_model)
    def get(self, grow_id):
        grow = get_owned_grow_or_404(grow_id)
        args = history_parser.parse_args()
        if args['days'] is not None and args['days'] <= 0:
            grow_ns.abort(400, error="'days' must be positive")

        query = EnvironmentMetric.query.filter(
            EnvironmentMetric.grow_id == grow.id,
            EnvironmentMetric.recorded_at >= utcnow() - timedelta(days=args['days'] or 7))
        if args.get('environment_id'):
            query = query.filter(EnvironmentMetric.environment_id == args['environment_id'])
        return query.order_by(EnvironmentMetric.recorded_at.asc()).all()
