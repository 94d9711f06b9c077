from flask_sqlalchemy import SQLAlchemy
from flask_restx import Api
from flask_jwt_extended import JWTManager
from flask_bcrypt import Bcrypt

db = SQLAlchemy()
jwt = JWTManager()
bcrypt = Bcrypt()

authorizations = {
    'Bearer': {
        'type': 'apiKey',
        'in': 'header',
        'name': 'Authorization',
        'description': "Type in 'Bearer <token>'"
    }
}

api = Api(version='1.0',
          title='GrowLog API',
          description='Grow, plant, metric and task tracking API',
          doc='/docs',
          authorizations=authorizations,
          security='Bearer')
