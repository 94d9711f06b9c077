from functools import wraps
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required
from flask_restx import abort


def issue_token(user):
    return create_access_token(identity=str(user.id),
                               additional_claims={'email': user.email, 'role': user.role})


def current_user_id():
    return int(get_jwt_identity())


def admin_required(fn):
    @wraps(fn)
    @jwt_required()
    def wrapper(*args, **kwargs):
        if get_jwt().get('role') != 'ADMIN':
            abort(403, error='Insufficient permissions')
        return fn(*args, **kwargs)
    return wrapper
