from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.auth import current_user_id
from growlog.extensions import db
from growlog.models import Notification

notification_ns = Namespace('notifications', description='User notification inbox')

NOTIFICATION_TYPES = ['info', 'success', 'warning', 'error']
INBOX_LIMIT = 20

notification_input_model = notification_ns.model('NotificationInput', {
    'title': fields.String(required=True, min_length=1),
    'message': fields.String(required=True, min_length=1),
    'type': fields.String(enum=NOTIFICATION_TYPES)
})

notification_model = notification_ns.model('Notification', {
    'id': fields.Integer(readonly=True),
    'user_id': fields.Integer,
    'title': fields.String,
    'message': fields.String,
    'type': fields.String,
    'read': fields.Boolean,
    'created_at': fields.DateTime
})


def create_notification(user_id, title, message, type='info'):
    notification = Notification(user_id=user_id, title=title, message=message, type=type)
    db.session.add(notification)
    db.session.commit()
    return notification


@notification_ns.route('/notifications')
class NotificationList(Resource):
    method_decorators = [jwt_required()]

    # get: the 20 most recent notifications
    @notification_ns.marshal_list_with(notification_model)
    def get(self):
        return (Notification.query.filter_by(user_id=current_user_id())
                .order_by(Notification.created_at.desc(), Notification.id.desc())
                .limit(INBOX_LIMIT).all())

    @notification_ns.expect(notification_input_model, validate=True)
    @notification_ns.marshal_with(notification_model, code=201)
    def post(self):
        data = notification_ns.payload
        return create_notification(current_user_id(), data['title'], data['message'], data.get('type') or 'info'), 201


# registered before the <int:id> route so "read-all" is never taken for an id
@notification_ns.route('/notifications/read-all')
class NotificationReadAll(Resource):
    method_decorators = [jwt_required()]

    def put(self):
        (Notification.query.filter_by(user_id=current_user_id(), read=False)
         .update({'read': True}, synchronize_session=False))
        db.session.commit()
        return {'success': True}


@notification_ns.route('/notifications/<int:id>/read')
@notification_ns.response(404, 'notification not found')
class NotificationRead(Resource):
    method_decorators = [jwt_required()]

    @notification_ns.marshal_with(notification_model)
    def put(self, id):
        notification = Notification.query.filter_by(id=id, user_id=current_user_id()).first()
        if not notification:
            notification_ns.abort(404, error='Notification not found')
        notification.read = True
        db.session.commit()
        return notification
