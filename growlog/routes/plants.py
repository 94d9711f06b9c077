from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.auth import current_user_id
from growlog.extensions import db
from growlog.models import Plant, PlantLog, PlantMetric, utcnow
from growlog.routes.grows import find_grow_environment, find_owned_grow
from growlog.services.progress import estimate_yield_grams
from growlog.utils import parse_datetime_field

plant_ns = Namespace('plants', description='Plant, log and metric operations')

PLANT_TYPES = ['PHOTOPERIOD', 'AUTOFLOWER', 'UNKNOWN']
PLANT_SEXES = ['FEMINIZED', 'REGULAR', 'UNKNOWN']
PHASES = ['GERMINATION', 'VEGETATIVE', 'FLOWERING', 'DRYING', 'CURED', 'FINISHED']
STATUSES = ['HEALTHY', 'ISSUES', 'SICK', 'HARVESTED', 'DEAD']

plant_update_model = plant_ns.model('PlantUpdate', {
    'environment_id': fields.Integer,
    'name': fields.String(min_length=1),
    'strain': fields.String,
    'plant_type': fields.String(enum=PLANT_TYPES),
    'sex': fields.String(enum=PLANT_SEXES),
    'start_date': fields.String(description='ISO 8601 date'),
    'phase': fields.String(enum=PHASES),
    'phase_started_at': fields.String(description='ISO 8601 timestamp'),
    'status': fields.String(enum=STATUSES),
    'health_issues': fields.List(fields.String),
    'estimated_yield_grams': fields.Float(min=0),
    'notes': fields.String
})

plant_input_model = plant_ns.model('PlantInput', dict(
    plant_update_model,
    grow_id=fields.Integer(required=True),
    name=fields.String(required=True, min_length=1)
))

plant_model = plant_ns.model('Plant', {
    'id': fields.Integer(readonly=True),
    'owner_user_id': fields.Integer,
    'grow_id': fields.Integer,
    'grow_name': fields.String(attribute='grow.name'),
    'environment_id': fields.Integer,
    'environment_name': fields.String(attribute='environment.name'),
    'name': fields.String,
    'strain': fields.String,
    'plant_type': fields.String,
    'sex': fields.String,
    'start_date': fields.DateTime,
    'phase': fields.String,
    'phase_started_at': fields.DateTime,
    'status': fields.String,
    'health_issues': fields.List(fields.String),
    'estimated_yield_grams': fields.Float,
    'notes': fields.String,
    'created_at': fields.DateTime,
    'progress': fields.Integer
})

phase_input_model = plant_ns.model('PhaseChange', {
    'phase': fields.String(required=True, enum=PHASES),
    'phase_started_at': fields.String(description='ISO 8601 timestamp, defaults to now')
})

progress_model = plant_ns.model('PlantProgress', {
    'plant_id': fields.Integer,
    'phase': fields.String,
    'plant_type': fields.String,
    'progress': fields.Integer,
    'estimated_yield_grams': fields.Integer
})

log_input_model = plant_ns.model('PlantLogInput', {
    'type': fields.String(min_length=1),
    'title': fields.String,
    'content': fields.String,
    'tags': fields.List(fields.String),
    'logged_at': fields.String(description='ISO 8601 timestamp'),
    'metrics_json': fields.Raw
})

log_model = plant_ns.model('PlantLog', {
    'id': fields.Integer(readonly=True),
    'plant_id': fields.Integer,
    'created_by': fields.Integer,
    'type': fields.String,
    'title': fields.String,
    'content': fields.String,
    'tags': fields.List(fields.String),
    'logged_at': fields.DateTime,
    'metrics_json': fields.Raw
})

metric_input_model = plant_ns.model('PlantMetricInput', {
    'height_cm': fields.Float(min=0),
    'node_count': fields.Integer(min=0),
    'ph': fields.Float(min=0, max=14),
    'ec': fields.Float(min=0),
    'temperature_c': fields.Float,
    'humidity_pct': fields.Float(min=0, max=100),
    'notes': fields.String,
    'recorded_at': fields.String(description='ISO 8601 timestamp')
})

metric_model = plant_ns.inherit('PlantMetric', metric_input_model, {
    'id': fields.Integer(readonly=True),
    'plant_id': fields.Integer,
    'recorded_at': fields.DateTime
})

# plant filter parser
plant_filter_parser = plant_ns.parser()
plant_filter_parser.add_argument('growId', type=int, required=False, location='args')
plant_filter_parser.add_argument('phase', type=str, required=False, choices=PHASES, location='args')
plant_filter_parser.add_argument('status', type=str, required=False, choices=STATUSES, location='args')

DATE_FIELDS = ('start_date', 'phase_started_at')
PLAIN_FIELDS = ('name', 'strain', 'plant_type', 'sex', 'phase', 'status',
                'health_issues', 'estimated_yield_grams', 'notes')


def find_owned_plant(plant_id, user_id):
    return Plant.query.filter_by(id=plant_id, owner_user_id=user_id).first()


def get_owned_plant_or_404(plant_id):
    plant = find_owned_plant(plant_id, current_user_id())
    if not plant:
        plant_ns.abort(404, error='Plant not found')
    return plant


def validate_environment(grow, environment_id):
    if environment_id is not None and not find_grow_environment(grow, environment_id):
        plant_ns.abort(404, error='Environment not found')


# 1. Resource: Plants
"""
the user's plants, each one inside a grow
"""
@plant_ns.route('/plants')
class PlantList(Resource):
    method_decorators = [jwt_required()]

    # get: list the user's plants, optionally filtered by grow, phase or status
    @plant_ns.expect(plant_filter_parser)
    @plant_ns.marshal_list_with(plant_model)
    def get(self):
        args = plant_filter_parser.parse_args()
        query = Plant.query.filter_by(owner_user_id=current_user_id())
        if args.get('growId'):
            query = query.filter_by(grow_id=args['growId'])
        if args.get('phase'):
            query = query.filter_by(phase=args['phase'])
        if args.get('status'):
            query = query.filter_by(status=args['status'])
        return query.order_by(Plant.created_at.asc()).all()

    # post: add new plant to one of the user's grows
    @plant_ns.expect(plant_input_model, validate=True)
    @plant_ns.marshal_with(plant_model, code=201)
    def post(self):
        user_id = current_user_id()
        data = plant_ns.payload

        grow = find_owned_grow(data['grow_id'], user_id)
        if not grow:
            plant_ns.abort(404, error='Grow not found')
        validate_environment(grow, data.get('environment_id'))

        plant = Plant(owner_user_id=user_id,
                      grow_id=grow.id,
                      environment_id=data.get('environment_id'),
                      **{field: data[field] for field in PLAIN_FIELDS if field in data})
        for field in DATE_FIELDS:
            if data.get(field):
                setattr(plant, field, parse_datetime_field(plant_ns, data, field))

        db.session.add(plant)
        db.session.commit()
        return plant, 201


@plant_ns.route('/plants/<int:id>')
@plant_ns.response(404, 'plant not found')
class PlantResource(Resource):
    method_decorators = [jwt_required()]

    @plant_ns.marshal_with(plant_model)
    def get(self, id):
        return get_owned_plant_or_404(id)

    # patch: update plant fields, phase and status are independent
    @plant_ns.expect(plant_update_model, validate=True)
    @plant_ns.marshal_with(plant_model)
    def patch(self, id):
        plant = get_owned_plant_or_404(id)
        data = plant_ns.payload

        if 'environment_id' in data:
            validate_environment(plant.grow, data['environment_id'])
            plant.environment_id = data['environment_id']
        for field in PLAIN_FIELDS:
            if field in data:
                setattr(plant, field, data[field])
        for field in DATE_FIELDS:
            if data.get(field):
                setattr(plant, field, parse_datetime_field(plant_ns, data, field))

        db.session.commit()
        return plant

    def delete(self, id):
        plant = get_owned_plant_or_404(id)
        db.session.delete(plant)
        db.session.commit()
        return '', 204


@plant_ns.route('/plants/<int:id>/phase')
class PlantPhase(Resource):
    method_decorators = [jwt_required()]

    # post: move the plant to a new phase and stamp phase_started_at
    @plant_ns.expect(phase_input_model, validate=True)
    @plant_ns.marshal_with(plant_model)
    def post(self, id):
        plant = get_owned_plant_or_404(id)
        data = plant_ns.payload
        previous = plant.phase

        plant.phase = data['phase']
        plant.phase_started_at = parse_datetime_field(plant_ns, data, 'phase_started_at') or utcnow()

        if previous != plant.phase:
            db.session.add(PlantLog(plant_id=plant.id,
                                    created_by=current_user_id(),
                                    type='PHASE_CHANGE',
                                    title=f"{previous} -> {plant.phase}",
                                    logged_at=plant.phase_started_at))
        db.session.commit()
        return plant


@plant_ns.route('/plants/<int:id>/progress')
class PlantProgress(Resource):
    method_decorators = [jwt_required()]

    @plant_ns.marshal_with(progress_model)
    def get(self, id):
        plant = get_owned_plant_or_404(id)
        return {
            'plant_id': plant.id,
            'phase': plant.phase,
            'plant_type': plant.plant_type,
            'progress': plant.progress,
            'estimated_yield_grams': estimate_yield_grams(plant)
        }


# 2. Resource: Plant logs
"""
the grow journal: watering, feeding, training, notes...
"""
@plant_ns.route('/plants/<int:id>/logs')
class PlantLogList(Resource):
    method_decorators = [jwt_required()]

    # get: newest entries first
    @plant_ns.marshal_list_with(log_model)
    def get(self, id):
        plant = get_owned_plant_or_404(id)
        return PlantLog.query.filter_by(plant_id=plant.id).order_by(PlantLog.logged_at.desc()).all()

    @plant_ns.expect(log_input_model, validate=True)
    @plant_ns.marshal_with(log_model, code=201)
    def post(self, id):
        plant = get_owned_plant_or_404(id)
        data = plant_ns.payload

        log = PlantLog(plant_id=plant.id,
                       created_by=current_user_id(),
                       type=(data.get('type') or 'NOTE').upper(),
                       title=data.get('title'),
                       content=data.get('content'),
                       tags=data.get('tags') or [],
                       logged_at=parse_datetime_field(plant_ns, data, 'logged_at') or utcnow(),
                       metrics_json=data.get('metrics_json'))
        db.session.add(log)
        db.session.commit()
        return log, 201


# 3. Resource: Plant metrics
@plant_ns.route('/plants/<int:id>/metrics')
class PlantMetricList(Resource):
    method_decorators = [jwt_required()]

    # get: oldest first, ready for charting
    @plant_ns.marshal_list_with(metric_model)
    def get(self, id):
        plant = get_owned_plant_or_404(id)
        return PlantMetric.query.filter_by(plant_id=plant.id).order_by(PlantMetric.recorded_at.asc()).all()

    @plant_ns.expect(metric_input_model, validate=True)
    @plant_ns.marshal_with(metric_model, code=201)
    def post(self, id):
        plant = get_owned_plant_or_404(id)
        data = plant_ns.payload

        values = {key: data.get(key) for key in metric_input_model if key != 'recorded_at'}
        if all(value is None for key, value in values.items() if key != 'notes'):
            plant_ns.abort(400, error='At least one measurement is required')

        metric = PlantMetric(plant_id=plant.id,
                             recorded_at=parse_datetime_field(plant_ns, data, 'recorded_at') or utcnow(),
                             **values)
        db.session.add(metric)
        db.session.commit()
        return metric, 201
