import logging
import re
from flask_jwt_extended import jwt_required
from flask_restx import Namespace, Resource, fields
from sqlalchemy.exc import IntegrityError

from growlog.auth import current_user_id, issue_token
from growlog.extensions import bcrypt, db
from growlog.models import User, utcnow

logger = logging.getLogger(__name__)

auth_ns = Namespace('auth', description='Registration and login')

MIN_PASSWORD_LENGTH = 6

# swagger model
credentials_model = auth_ns.model('Credentials', {
    'email': fields.String(required=True),
    'password': fields.String(required=True)
})

user_model = auth_ns.model('User', {
    'id': fields.Integer,
    'email': fields.String,
    'role': fields.String,
    'preferences': fields.Raw,
    'created_at': fields.DateTime,
    'updated_at': fields.DateTime,
    'last_login_at': fields.DateTime
})

session_model = auth_ns.model('Session', {
    'user': fields.Nested(user_model),
    'token': fields.String
})

me_model = auth_ns.model('Me', {
    'user': fields.Nested(user_model)
})


def validate_email_format(email):
    if not email:
        return False
    pattern = r'^[\w\.\+-]+@[\w-]+(\.[\w-]+)*\.\w+$'
    return bool(re.match(pattern, email))


def validate_password_strength(password):
    return bool(password) and len(password) >= MIN_PASSWORD_LENGTH


@auth_ns.route('/auth/register')
class Register(Resource):
    # post: creates a user and returns a session token
    @auth_ns.expect(credentials_model, validate=True)
    @auth_ns.marshal_with(session_model, code=201)
    def post(self):
        data = auth_ns.payload
        email = data['email'].strip().lower()

        if not validate_email_format(email):
            auth_ns.abort(400, error="Invalid email format.")
        if not validate_password_strength(data['password']):
            auth_ns.abort(400, error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        if User.query.filter_by(email=email).first():
            auth_ns.abort(400, error="User already exists")

        user = User(email=email,
                    password_hash=bcrypt.generate_password_hash(data['password']).decode('utf-8'))
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            auth_ns.abort(400, error="User already exists")

        logger.info("Registered user %s", user.id)
        return {'user': user, 'token': issue_token(user)}, 201


@auth_ns.route('/auth/login')
class Login(Resource):
    @auth_ns.expect(credentials_model, validate=True)
    @auth_ns.marshal_with(session_model)
    def post(self):
        data = auth_ns.payload
        user = User.query.filter_by(email=data['email'].strip().lower()).first()

        if not user or not bcrypt.check_password_hash(user.password_hash, data['password']):
            auth_ns.abort(400, error="Invalid credentials")

        user.last_login_at = utcnow()
        db.session.commit()
        return {'user': user, 'token': issue_token(user)}


@auth_ns.route('/auth/me')
class Me(Resource):
    method_decorators = [jwt_required()]

    @auth_ns.marshal_with(me_model)
    def get(self):
        user = db.session.get(User, current_user_id())
        if not user:
            auth_ns.abort(404, error="User not found")
        return {'user': user}
