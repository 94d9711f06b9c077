from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields

from growlog.auth import current_user_id
from growlog.extensions import db
from growlog.models import User

profile_ns = Namespace('profile', description='User profile and preferences')

preferences_input_model = profile_ns.model('PreferencesInput', {
    'preferences': fields.Raw(required=True, description='Opaque JSON object')
})


def get_current_user_or_404():
    user = db.session.get(User, current_user_id())
    if not user:
        profile_ns.abort(404, error='User not found')
    return user


@profile_ns.route('/profile/preferences')
class Preferences(Resource):
    method_decorators = [jwt_required()]

    def get(self):
        return get_current_user_or_404().preferences or {}

    # patch: replaces the stored preferences blob
    @profile_ns.expect(preferences_input_model, validate=True)
    def patch(self):
        preferences = profile_ns.payload['preferences']
        if not isinstance(preferences, dict):
            profile_ns.abort(400, error='Preferences must be an object')

        user = get_current_user_or_404()
        user.preferences = preferences
        db.session.commit()
        return user.preferences
