from flask_restx import Namespace, Resource, fields

from growlog.auth import admin_required
from growlog.extensions import db
from growlog.models import User

admin_ns = Namespace('admin', description='User administration (ADMIN only)')

ROLES = ['ADMIN', 'USER']

admin_user_model = admin_ns.model('AdminUser', {
    'id': fields.Integer,
    'email': fields.String,
    'role': fields.String,
    'created_at': fields.DateTime,
    'last_login_at': fields.DateTime
})

role_input_model = admin_ns.model('RoleInput', {
    'role': fields.String(required=True, enum=ROLES)
})


@admin_ns.route('/admin/users')
class AdminUserList(Resource):
    method_decorators = [admin_required]

    @admin_ns.marshal_list_with(admin_user_model)
    def get(self):
        return User.query.order_by(User.id.asc()).all()


@admin_ns.route('/admin/users/<int:id>')
@admin_ns.response(404, 'user not found')
class AdminUserResource(Resource):
    method_decorators = [admin_required]

    # patch: change a user's role
    @admin_ns.expect(role_input_model, validate=True)
    def patch(self, id):
        user = db.session.get(User, id)
        if not user:
            admin_ns.abort(404, error='User not found')
        user.role = admin_ns.payload['role']
        db.session.commit()
        return {'id': user.id, 'role': user.role}
