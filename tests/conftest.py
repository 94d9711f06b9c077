import pytest

from growlog import create_app
from growlog.extensions import db
from growlog.seed import seed_admin_user

user_email = "grower@example.com"
user_password = "Grower.123"
other_email = "neighbour@example.com"
admin_email = "admin@example.com"


@pytest.fixture
def app(tmp_path):
    app = create_app('test')
    app.config['UPLOAD_FOLDER'] = str(tmp_path)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, email, password=user_password):
    response = client.post('/api/auth/register', json={'email': email, 'password': password})
    assert response.status_code == 201, response.json
    return response.json


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers(client):
    return bearer(register(client, user_email)['token'])


@pytest.fixture
def other_headers(client):
    return bearer(register(client, other_email)['token'])


@pytest.fixture
def admin_headers(client, app):
    seed_admin_user(admin_email, user_password)
    response = client.post('/api/auth/login', json={'email': admin_email, 'password': user_password})
    return bearer(response.json['token'])


@pytest.fixture
def grow(client, auth_headers):
    response = client.post('/api/grows', json={'name': 'Tent A', 'location_type': 'INDOOR'},
                           headers=auth_headers)
    return response.json
