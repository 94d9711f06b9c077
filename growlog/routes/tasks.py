from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.auth import current_user_id
from growlog.extensions import db
from growlog.models import Task
from growlog.routes.grows import find_owned_grow
from growlog.routes.plants import find_owned_plant
from growlog.services.recurrence import complete_task
from growlog.utils import parse_datetime_field

task_ns = Namespace('tasks', description='Scheduled and recurring task operations')

PRIORITIES = ['LOW', 'MEDIUM', 'HIGH']
TASK_STATUSES = ['OPEN', 'DONE', 'SKIPPED']

task_update_model = task_ns.model('TaskUpdate', {
    'grow_id': fields.Integer,
    'plant_id': fields.Integer,
    'title': fields.String(min_length=1),
    'description': fields.String,
    'due_at': fields.String(description='ISO 8601 timestamp'),
    'repeat_rule': fields.String(description='DAILY, WEEKLY, EVERY_3_DAYS or MONTHLY'),
    'notify': fields.Boolean,
    'notify_before_minutes': fields.Integer(min=0),
    'priority': fields.String(enum=PRIORITIES),
    'status': fields.String(enum=TASK_STATUSES)
})

task_input_model = task_ns.model('TaskInput', dict(
    task_update_model,
    title=fields.String(required=True, min_length=1),
    due_at=fields.String(required=True, min_length=1, description='ISO 8601 timestamp')
))

task_model = task_ns.model('Task', {
    'id': fields.Integer(readonly=True),
    'owner_user_id': fields.Integer,
    'grow_id': fields.Integer,
    'plant_id': fields.Integer,
    'plant_name': fields.String(attribute='plant.name'),
    'grow_name': fields.String(attribute='grow.name'),
    'title': fields.String,
    'description': fields.String,
    'due_at': fields.DateTime,
    'repeat_rule': fields.String,
    'notify': fields.Boolean,
    'notify_before_minutes': fields.Integer,
    'priority': fields.String,
    'status': fields.String,
    'created_at': fields.DateTime
})

completion_model = task_ns.model('TaskCompletion', {
    'task': fields.Nested(task_model),
    'next_task': fields.Nested(task_model, allow_null=True)
})

task_filter_parser = task_ns.parser()
task_filter_parser.add_argument('growId', type=int, required=False, location='args')
task_filter_parser.add_argument('plantId', type=int, required=False, location='args')
task_filter_parser.add_argument('status', type=str, required=False, choices=TASK_STATUSES, location='args')
task_filter_parser.add_argument('from', type=str, required=False, dest='due_from', location='args')
task_filter_parser.add_argument('to', type=str, required=False, dest='due_to', location='args')

PLAIN_FIELDS = ('title', 'description', 'repeat_rule', 'notify', 'notify_before_minutes', 'priority', 'status')


def get_owned_task_or_404(task_id):
    task = Task.query.filter_by(id=task_id, owner_user_id=current_user_id()).first()
    if not task:
        task_ns.abort(404, error='Task not found')
    return task


def validate_links(data, user_id):
    if data.get('grow_id') is not None and not find_owned_grow(data['grow_id'], user_id):
        task_ns.abort(404, error='Grow not found')
    if data.get('plant_id') is not None and not find_owned_plant(data['plant_id'], user_id):
        task_ns.abort(404, error='Plant not found')


def normalize_repeat_rule(rule):
    return rule.strip().upper() if rule and rule.strip() else None


@task_ns.route('/tasks')
class TaskList(Resource):
    method_decorators = [jwt_required()]

    # get: soonest due first
    @task_ns.expect(task_filter_parser)
    @task_ns.marshal_list_with(task_model)
    def get(self):
        args = task_filter_parser.parse_args()
        query = Task.query.filter_by(owner_user_id=current_user_id())
        if args.get('growId'):
            query = query.filter_by(grow_id=args['growId'])
        if args.get('plantId'):
            query = query.filter_by(plant_id=args['plantId'])
        if args.get('status'):
            query = query.filter_by(status=args['status'])

        due_from = parse_datetime_field(task_ns, args, 'due_from')
        due_to = parse_datetime_field(task_ns, args, 'due_to')
        if due_from:
            query = query.filter(Task.due_at >= due_from)
        if due_to:
            query = query.filter(Task.due_at <= due_to)
        return query.order_by(Task.due_at.asc()).all()

    @task_ns.expect(task_input_model, validate=True)
    @task_ns.marshal_with(task_model, code=201)
    def post(self):
        user_id = current_user_id()
        data = task_ns.payload
        validate_links(data, user_id)

        task = Task(owner_user_id=user_id,
                    grow_id=data.get('grow_id'),
                    plant_id=data.get('plant_id'),
                    due_at=parse_datetime_field(task_ns, data, 'due_at'),
                    **{field: data[field] for field in PLAIN_FIELDS if field in data})
        task.repeat_rule = normalize_repeat_rule(task.repeat_rule)
        db.session.add(task)
        db.session.commit()
        return task, 201


@task_ns.route('/tasks/<int:id>')
@task_ns.response(404, 'task not found')
class TaskResource(Resource):
    method_decorators = [jwt_required()]

    @task_ns.marshal_with(task_model)
    def get(self, id):
        return get_owned_task_or_404(id)

    @task_ns.response(409, 'task is not open')
    @task_ns.expect(task_update_model, validate=True)
    @task_ns.marshal_with(task_model)
    def patch(self, id):
        task = get_owned_task_or_404(id)
        data = task_ns.payload
        validate_links(data, current_user_id())
        # DONE and SKIPPED tasks are never reopened
        if 'status' in data and task.status != 'OPEN' and data['status'] != task.status:
            task_ns.abort(409, error='Task is not open')

        for field in ('grow_id', 'plant_id') + PLAIN_FIELDS:
            if field in data:
                setattr(task, field, data[field])
        if 'repeat_rule' in data:
            task.repeat_rule = normalize_repeat_rule(data['repeat_rule'])
        if data.get('due_at'):
            task.due_at = parse_datetime_field(task_ns, data, 'due_at')

        db.session.commit()
        return task

    def delete(self, id):
        task = get_owned_task_or_404(id)
        db.session.delete(task)
        db.session.commit()
        return {'message': 'Deleted'}, 200


@task_ns.route('/tasks/<int:id>/complete')
class TaskComplete(Resource):
    method_decorators = [jwt_required()]

    # post: close the task; repeating tasks spawn their next occurrence
    @task_ns.response(409, 'task is not open')
    @task_ns.marshal_with(completion_model)
    def post(self, id):
        task = get_owned_task_or_404(id)
        if task.status != 'OPEN':
            task_ns.abort(409, error='Task is not open')

        task, successor = complete_task(task)
        return {'task': task, 'next_task': successor}
