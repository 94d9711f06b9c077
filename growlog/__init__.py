import logging
import os
import click
from flask import Flask, current_app, send_from_directory
from flask_cors import CORS

from growlog import models
from growlog.config import config_by_name
from growlog.errors import register_error_handlers
from growlog.extensions import api, bcrypt, db, jwt
from growlog.logging_config import configure_logging
from growlog.routes.admin import admin_ns
from growlog.routes.auth import auth_ns
from growlog.routes.feedback import feedback_ns
from growlog.routes.grows import grow_ns
from growlog.routes.health import health_ns
from growlog.routes.notifications import notification_ns
from growlog.routes.overview import overview_ns
from growlog.routes.photos import photo_ns
from growlog.routes.plants import plant_ns
from growlog.routes.profile import profile_ns
from growlog.routes.tasks import task_ns
from growlog.routes.templates import template_ns
from growlog.routes.tools import tools_ns
from growlog.seed import seed_admin_user, seed_plant_templates

logger = logging.getLogger(__name__)

NAMESPACES = [
    auth_ns, grow_ns, plant_ns, photo_ns, task_ns, notification_ns, overview_ns,
    admin_ns, template_ns, profile_ns, feedback_ns, tools_ns, health_ns,
]


def register_namespaces():
    # the Api object is shared by every app built in this process; namespaces
    # must be added once, before the first init_app
    for ns in NAMESPACES:
        if ns not in api.namespaces:
            api.add_namespace(ns, path='/api')


def create_app(config_name='dev'):
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    configure_logging(app)

    upload_folder = app.config['UPLOAD_FOLDER']
    if not os.path.isabs(upload_folder):
        upload_folder = os.path.join(app.root_path, '..', upload_folder)
        app.config['UPLOAD_FOLDER'] = os.path.abspath(upload_folder)
    if not os.path.exists(app.config['UPLOAD_FOLDER']):
        os.makedirs(app.config['UPLOAD_FOLDER'])

    db.init_app(app)
    jwt.init_app(app)
    bcrypt.init_app(app)
    CORS(app, origins=app.config['CORS_ORIGIN'], supports_credentials=True)

    register_namespaces()
    register_error_handlers(api)
    api.init_app(app)

    @app.route('/uploads/<path:filename>')
    def uploaded_file(filename):
        return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)

    @app.cli.command('seed-db')
    @click.option('--admin-email', envvar='ADMIN_EMAIL', default=None, help='Create an ADMIN with this email')
    @click.option('--admin-password', envvar='ADMIN_PASSWORD', default=None)
    def seed_db(admin_email, admin_password):
        """Create tables and load plant templates."""
        db.create_all()
        count = seed_plant_templates()
        click.echo(f"Seeded {count} plant templates.")
        if admin_email and admin_password:
            seed_admin_user(admin_email, admin_password)
            click.echo(f"Admin user {admin_email} ready.")

    logger.info("GrowLog app created (config=%s)", config_name)
    return app
