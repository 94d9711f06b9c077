import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET', 'dev_secret_jwt_key_change_me')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///growlog.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', 'uploads')
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', '')
    CORS_ORIGIN = os.getenv('CORS_ORIGIN', 'http://localhost:15000')

    GITHUB_TOKEN = os.getenv('GITHUB_TOKEN')
    GITHUB_OWNER = os.getenv('GITHUB_OWNER', 'meinzeug')
    GITHUB_REPO = os.getenv('GITHUB_REPO', 'growlog')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('LOG_DIR')

    PLANT_TEMPLATES_CSV = os.getenv('PLANT_TEMPLATES_CSV', os.path.join(BASE_DIR, 'data', 'plant_templates.csv'))

    BCRYPT_LOG_ROUNDS = 12
    RESTX_ERROR_404_HELP = False
    RESTX_MASK_SWAGGER = False
    # route JWT errors through the Api handlers even under TESTING/DEBUG
    PROPAGATE_EXCEPTIONS = False


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'test-secret-key-with-enough-length-for-hs256'
    BCRYPT_LOG_ROUNDS = 4
    GITHUB_TOKEN = None
    LOG_DIR = None


config_by_name = {
    'dev': DevelopmentConfig,
    'test': TestingConfig,
    'prod': Config,
}
