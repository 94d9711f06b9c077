import pytest
import io
import requests
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from PIL import Image
from sqlalchemy.exc import SQLAlchemyError

from growlog.models import Environment, EnvironmentMetric, PlantTemplate, Task
from growlog.seed import seed_plant_templates
from conftest import user_email, user_password


def iso(dt):
    return dt.strftime('%Y-%m-%dT%H:%M:%SZ')


def utc_now():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def create_plant(client, headers, grow_id, **fields):
    payload = {'grow_id': grow_id, 'name': 'Blue Dream'}
    payload.update(fields)
    response = client.post('/api/plants', json=payload, headers=headers)
    assert response.status_code == 201, response.json
    return response.json


def png_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (8, 8), color='green').save(buffer, format='PNG')
    buffer.seek(0)
    return buffer


# 1. Integration Test: register returns a user and a token
def test_register_returns_token(client):
    response = client.post('/api/auth/register', json={'email': 'New@Example.com', 'password': 'secret1'})

    assert response.status_code == 201
    assert response.json['token']
    assert response.json['user']['email'] == 'new@example.com'
    assert response.json['user']['role'] == 'USER'
    assert 'password_hash' not in response.json['user']


# 2. Integration Test: the same email cannot register twice
def test_register_duplicate_email(client, auth_headers):
    response = client.post('/api/auth/register', json={'email': user_email, 'password': user_password})

    assert response.status_code == 400
    assert response.json['error'] == 'User already exists'


def test_register_rejects_weak_password_and_bad_email(client):
    weak = client.post('/api/auth/register', json={'email': 'a@example.com', 'password': '123'})
    bad = client.post('/api/auth/register', json={'email': 'not-an-email', 'password': 'secret1'})

    assert weak.status_code == 400
    assert bad.status_code == 400
    assert 'error' in weak.json and 'error' in bad.json


# 3. Integration Test: login stamps last_login_at, wrong password is rejected
def test_login(client, auth_headers):
    ok = client.post('/api/auth/login', json={'email': user_email, 'password': user_password})
    wrong = client.post('/api/auth/login', json={'email': user_email, 'password': 'nope-nope'})

    assert ok.status_code == 200
    assert ok.json['user']['last_login_at'] is not None
    assert wrong.status_code == 400
    assert wrong.json['error'] == 'Invalid credentials'


def test_me(client, auth_headers):
    response = client.get('/api/auth/me', headers=auth_headers)

    assert response.status_code == 200
    assert response.json['user']['email'] == user_email


# 4. Integration Test: protected routes need a valid bearer token
def test_missing_token_is_rejected(client):
    response = client.get('/api/grows')

    assert response.status_code == 401
    assert response.json['error'] == 'Access denied, token missing'


def test_invalid_token_is_rejected(client):
    response = client.get('/api/grows', headers={'Authorization': 'Bearer not.a.token'})

    assert response.status_code == 401
    assert response.json['error'] == 'Invalid token'


# 5. Integration Test: schema violations return 400 with details
def test_create_grow_validation_error(client, auth_headers):
    response = client.post('/api/grows', json={'location_type': 'BASEMENT'}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json['error'] == 'Invalid input'
    assert 'name' in str(response.json['details'])


# 6. Integration Test: grow CRUD
def test_grow_crud(client, auth_headers, grow):
    assert grow['name'] == 'Tent A'

    listed = client.get('/api/grows', headers=auth_headers)
    assert [g['id'] for g in listed.json] == [grow['id']]

    patched = client.patch(f"/api/grows/{grow['id']}", json={'notes': '600W LED'}, headers=auth_headers)
    assert patched.json['notes'] == '600W LED'

    detail = client.get(f"/api/grows/{grow['id']}", headers=auth_headers)
    assert detail.json['tasks'] == []

    deleted = client.delete(f"/api/grows/{grow['id']}", headers=auth_headers)
    assert deleted.status_code == 200
    assert client.get(f"/api/grows/{grow['id']}", headers=auth_headers).status_code == 404


# 7. Integration Test: another user's grow looks like it does not exist
def test_grow_ownership(client, grow, other_headers):
    response = client.get(f"/api/grows/{grow['id']}", headers=other_headers)

    assert response.status_code == 404
    assert response.json['error'] == 'Grow not found'
    assert client.delete(f"/api/grows/{grow['id']}", headers=other_headers).status_code == 404


# 8. Integration Test: a grow that still has plants cannot be deleted
def test_delete_grow_with_plants_conflict(client, auth_headers, grow):
    create_plant(client, auth_headers, grow['id'])

    response = client.delete(f"/api/grows/{grow['id']}", headers=auth_headers)

    assert response.status_code == 409
    assert response.json['error'] == 'Grow has dependent plants'


def test_delete_grow_cascades_environments_and_tasks(client, auth_headers, grow):
    client.post(f"/api/grows/{grow['id']}/environments", json={'name': 'Tent', 'medium': 'SOIL'},
                headers=auth_headers)
    client.post(f"/api/grows/{grow['id']}/environment", json={'temperature': 24, 'humidity': 60},
                headers=auth_headers)
    client.post('/api/tasks', json={'title': 'Water', 'due_at': '2024-01-01T09:00:00Z', 'grow_id': grow['id']},
                headers=auth_headers)

    response = client.delete(f"/api/grows/{grow['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert Environment.query.count() == 0
    assert EnvironmentMetric.query.count() == 0
    assert Task.query.count() == 0


# 9. Integration Test: environments inside a grow
def test_environment_crud(client, auth_headers, grow, other_headers):
    created = client.post(f"/api/grows/{grow['id']}/environments",
                          json={'name': 'Flower tent', 'medium': 'COCO', 'light_schedule': '12/12'},
                          headers=auth_headers)
    assert created.status_code == 201
    env_id = created.json['id']

    patched = client.patch(f"/api/environments/{env_id}", json={'medium': 'HYDRO'}, headers=auth_headers)
    assert patched.json['medium'] == 'HYDRO'
    assert client.patch(f"/api/environments/{env_id}", json={'medium': 'SOIL'},
                        headers=other_headers).status_code == 404

    listed = client.get(f"/api/grows/{grow['id']}/environments", headers=auth_headers)
    assert len(listed.json) == 1

    assert client.delete(f"/api/environments/{env_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/grows/{grow['id']}/environments", headers=auth_headers).json == []


# 10. Integration Test: climate readings derive vpd when it is omitted
def test_environment_reading_computes_vpd(client, auth_headers, grow):
    response = client.post(f"/api/grows/{grow['id']}/environment",
                           json={'temperature': 24, 'humidity': 60, 'co2': 800},
                           headers=auth_headers)

    assert response.status_code == 201
    assert response.json['vpd'] == pytest.approx(1.19, abs=0.01)

    latest = client.get(f"/api/grows/{grow['id']}/environment/latest", headers=auth_headers)
    assert latest.json['co2'] == 800


def test_environment_reading_rejects_impossible_temperature(client, auth_headers, grow):
    response = client.post(f"/api/grows/{grow['id']}/environment",
                           json={'temperature': -237.3, 'humidity': 50},
                           headers=auth_headers)

    assert response.status_code == 400
    assert EnvironmentMetric.query.count() == 0


def test_environment_latest_without_data(client, auth_headers, grow):
    response = client.get(f"/api/grows/{grow['id']}/environment/latest", headers=auth_headers)

    assert response.status_code == 404
    assert response.json['error'] == 'No environment data'


def test_environment_history_window(client, auth_headers, grow):
    old = iso(utc_now() - timedelta(days=10))
    client.post(f"/api/grows/{grow['id']}/environment", json={'temperature': 20, 'recorded_at': old},
                headers=auth_headers)
    client.post(f"/api/grows/{grow['id']}/environment", json={'temperature': 25}, headers=auth_headers)

    week = client.get(f"/api/grows/{grow['id']}/environment/history", headers=auth_headers)
    month = client.get(f"/api/grows/{grow['id']}/environment/history?days=30", headers=auth_headers)

    assert [m['temperature'] for m in week.json] == [25]
    assert [m['temperature'] for m in month.json] == [20, 25]


# 11. Integration Test: plants can only be created in the user's own grows
def test_create_plant_in_foreign_grow(client, grow, other_headers):
    response = client.post('/api/plants', json={'grow_id': grow['id'], 'name': 'Stolen'}, headers=other_headers)

    assert response.status_code == 404
    assert response.json['error'] == 'Grow not found'


def test_plant_filters(client, auth_headers, grow):
    create_plant(client, auth_headers, grow['id'], name='A', phase='FLOWERING')
    create_plant(client, auth_headers, grow['id'], name='B', status='SICK')

    flowering = client.get('/api/plants?phase=FLOWERING', headers=auth_headers)
    sick = client.get(f"/api/plants?growId={grow['id']}&status=SICK", headers=auth_headers)

    assert [p['name'] for p in flowering.json] == ['A']
    assert [p['name'] for p in sick.json] == ['B']
    assert client.get('/api/plants?phase=SPROUT', headers=auth_headers).status_code == 400


def test_plant_patch_and_delete(client, auth_headers, grow, other_headers):
    plant = create_plant(client, auth_headers, grow['id'])

    patched = client.patch(f"/api/plants/{plant['id']}",
                           json={'status': 'ISSUES', 'health_issues': ['yellow leaves']},
                           headers=auth_headers)
    assert patched.json['status'] == 'ISSUES'
    assert patched.json['health_issues'] == ['yellow leaves']
    assert patched.json['phase'] == 'GERMINATION'

    assert client.get(f"/api/plants/{plant['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/plants/{plant['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/plants/{plant['id']}", headers=auth_headers).status_code == 404


# 12. Integration Test: phase change stamps the start and writes a journal entry
def test_phase_change(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'], phase='VEGETATIVE')

    response = client.post(f"/api/plants/{plant['id']}/phase",
                           json={'phase': 'FLOWERING', 'phase_started_at': '2024-03-01T00:00:00Z'},
                           headers=auth_headers)

    assert response.status_code == 200
    assert response.json['phase'] == 'FLOWERING'
    assert response.json['phase_started_at'].startswith('2024-03-01T00:00')

    logs = client.get(f"/api/plants/{plant['id']}/logs", headers=auth_headers)
    assert logs.json[0]['type'] == 'PHASE_CHANGE'
    assert logs.json[0]['title'] == 'VEGETATIVE -> FLOWERING'


# 13. Integration Test: logs are returned newest first
def test_plant_logs(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])
    client.post(f"/api/plants/{plant['id']}/logs",
                json={'type': 'water', 'title': 'First', 'logged_at': '2024-01-01T08:00:00Z'},
                headers=auth_headers)
    client.post(f"/api/plants/{plant['id']}/logs",
                json={'type': 'FEED', 'title': 'Second', 'tags': ['bloom'], 'logged_at': '2024-01-02T08:00:00Z'},
                headers=auth_headers)

    logs = client.get(f"/api/plants/{plant['id']}/logs", headers=auth_headers).json

    assert [log['title'] for log in logs] == ['Second', 'First']
    assert logs[1]['type'] == 'WATER'
    assert logs[0]['tags'] == ['bloom']


# 14. Integration Test: metrics need at least one measurement
def test_plant_metrics(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])

    empty = client.post(f"/api/plants/{plant['id']}/metrics", json={'notes': 'nothing'}, headers=auth_headers)
    bad_ph = client.post(f"/api/plants/{plant['id']}/metrics", json={'ph': 15}, headers=auth_headers)
    ok = client.post(f"/api/plants/{plant['id']}/metrics", json={'height_cm': 12.5, 'ph': 6.2},
                     headers=auth_headers)

    assert empty.status_code == 400
    assert bad_ph.status_code == 400
    assert ok.status_code == 201
    assert ok.json['height_cm'] == 12.5
    assert len(client.get(f"/api/plants/{plant['id']}/metrics", headers=auth_headers).json) == 1


# 15. Integration Test: photo upload accepts images and rejects other files
def test_photo_upload(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])

    response = client.post(f"/api/plants/{plant['id']}/photos",
                           data={'photo': (png_bytes(), 'leaf.png'), 'caption': 'Day 10'},
                           headers=auth_headers, content_type='multipart/form-data')

    assert response.status_code == 201
    assert response.json['caption'] == 'Day 10'
    assert '/uploads/' in response.json['url']

    served = client.get(response.json['url'])
    assert served.status_code == 200

    listed = client.get(f"/api/plants/{plant['id']}/photos", headers=auth_headers)
    assert len(listed.json) == 1


def test_photo_upload_rejects_non_images(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])

    renamed = client.post(f"/api/plants/{plant['id']}/photos",
                          data={'photo': (io.BytesIO(b"not really a png"), 'fake.png')},
                          headers=auth_headers, content_type='multipart/form-data')
    text = client.post(f"/api/plants/{plant['id']}/photos",
                       data={'photo': (io.BytesIO(b"notes"), 'notes.txt')},
                       headers=auth_headers, content_type='multipart/form-data')

    assert renamed.status_code == 400
    assert text.status_code == 400
    assert text.json['error'] == 'Only image uploads are allowed'


def test_photo_upload_too_large(client, app, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])
    app.config['MAX_CONTENT_LENGTH'] = 1024

    response = client.post(f"/api/plants/{plant['id']}/photos",
                           data={'photo': (io.BytesIO(b"x" * 4096), 'big.png')},
                           headers=auth_headers, content_type='multipart/form-data')

    assert response.status_code == 413


# 16. Integration Test: task creation and filtering
def test_task_create_and_filter(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])
    client.post('/api/tasks', json={'title': 'Water', 'due_at': '2024-01-01T09:00:00Z',
                                    'plant_id': plant['id'], 'repeat_rule': 'weekly'},
                headers=auth_headers)
    client.post('/api/tasks', json={'title': 'Flush', 'due_at': '2024-02-01T09:00:00Z'}, headers=auth_headers)

    by_plant = client.get(f"/api/tasks?plantId={plant['id']}", headers=auth_headers).json
    in_range = client.get('/api/tasks?from=2024-01-15T00:00:00Z&to=2024-03-01T00:00:00Z', headers=auth_headers).json

    assert [t['title'] for t in by_plant] == ['Water']
    assert by_plant[0]['repeat_rule'] == 'WEEKLY'
    assert by_plant[0]['plant_name'] == 'Blue Dream'
    assert [t['title'] for t in in_range] == ['Flush']


def test_task_requires_due_date_and_own_links(client, auth_headers, grow, other_headers):
    missing = client.post('/api/tasks', json={'title': 'Water'}, headers=auth_headers)
    bad_date = client.post('/api/tasks', json={'title': 'Water', 'due_at': 'tomorrow-ish'}, headers=auth_headers)
    foreign = client.post('/api/tasks', json={'title': 'Water', 'due_at': '2024-01-01', 'grow_id': grow['id']},
                          headers=other_headers)

    assert missing.status_code == 400
    assert bad_date.status_code == 400
    assert foreign.status_code == 404


# 17. Integration Test: completing a repeating task returns the next occurrence
def test_complete_task(client, auth_headers):
    task = client.post('/api/tasks', json={'title': 'Water', 'due_at': '2024-01-01T09:00:00Z',
                                           'repeat_rule': 'WEEKLY', 'priority': 'HIGH'},
                       headers=auth_headers).json

    response = client.post(f"/api/tasks/{task['id']}/complete", headers=auth_headers)

    assert response.status_code == 200
    assert response.json['task']['status'] == 'DONE'
    assert response.json['next_task']['status'] == 'OPEN'
    assert response.json['next_task']['due_at'].startswith('2024-01-08T09:00')
    assert response.json['next_task']['priority'] == 'HIGH'

    again = client.post(f"/api/tasks/{task['id']}/complete", headers=auth_headers)
    assert again.status_code == 409


def test_complete_task_without_repeat(client, auth_headers):
    task = client.post('/api/tasks', json={'title': 'Harvest', 'due_at': '2024-01-01T09:00:00Z'},
                       headers=auth_headers).json

    response = client.post(f"/api/tasks/{task['id']}/complete", headers=auth_headers)

    assert response.json['next_task'] is None
    assert Task.query.count() == 1


def test_task_patch_and_delete(client, auth_headers, other_headers):
    task = client.post('/api/tasks', json={'title': 'Water', 'due_at': '2024-01-01T09:00:00Z'},
                       headers=auth_headers).json

    patched = client.patch(f"/api/tasks/{task['id']}", json={'title': 'Water 2L', 'repeat_rule': 'daily'},
                           headers=auth_headers)
    assert patched.json['title'] == 'Water 2L'
    assert patched.json['repeat_rule'] == 'DAILY'

    assert client.delete(f"/api/tasks/{task['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/tasks/{task['id']}", headers=auth_headers).status_code == 200


def test_done_task_cannot_be_reopened(client, auth_headers):
    task = client.post('/api/tasks', json={'title': 'Water', 'due_at': '2024-01-01T09:00:00Z',
                                           'repeat_rule': 'WEEKLY'},
                       headers=auth_headers).json
    client.post(f"/api/tasks/{task['id']}/complete", headers=auth_headers)

    reopened = client.patch(f"/api/tasks/{task['id']}", json={'status': 'OPEN'}, headers=auth_headers)
    again = client.post(f"/api/tasks/{task['id']}/complete", headers=auth_headers)

    assert reopened.status_code == 409
    assert reopened.json['error'] == 'Task is not open'
    assert again.status_code == 409
    assert client.get(f"/api/tasks/{task['id']}", headers=auth_headers).json['status'] == 'DONE'
    assert Task.query.count() == 2


# 18. Integration Test: notification inbox
def test_notifications(client, auth_headers, other_headers):
    first = client.post('/api/notifications', json={'title': 'Hi', 'message': 'Welcome'}, headers=auth_headers)
    client.post('/api/notifications', json={'title': 'Tip', 'message': 'Check pH', 'type': 'warning'},
                headers=auth_headers)
    missing = client.post('/api/notifications', json={'title': 'No message'}, headers=auth_headers)

    assert first.status_code == 201
    assert first.json['read'] is False
    assert missing.status_code == 400

    assert client.put(f"/api/notifications/{first.json['id']}/read", headers=other_headers).status_code == 404
    read = client.put(f"/api/notifications/{first.json['id']}/read", headers=auth_headers)
    assert read.json['read'] is True

    client.put('/api/notifications/read-all', headers=auth_headers)
    inbox = client.get('/api/notifications', headers=auth_headers).json
    assert len(inbox) == 2
    assert all(n['read'] for n in inbox)
    assert client.get('/api/notifications', headers=other_headers).json == []


def test_notification_inbox_is_capped(client, auth_headers):
    for i in range(25):
        client.post('/api/notifications', json={'title': f'N{i}', 'message': 'm'}, headers=auth_headers)

    assert len(client.get('/api/notifications', headers=auth_headers).json) == 20


# 19. Integration Test: overview falls back to defaults without any data
def test_overview_defaults(client, auth_headers):
    response = client.get('/api/overview', headers=auth_headers)

    assert response.status_code == 200
    assert response.json['stats'] == {'total': 0, 'active': 0, 'healthy': 0, 'waste': 0}
    assert response.json['environment']['source'] == 'default'
    assert response.json['environment']['temperature'] == 24
    assert response.json['environment']['humidity'] == 60
    assert response.json['environment']['co2'] == 400
    assert [p['height'] for p in response.json['chart_data']] == [0, 0, 0, 0, 0]
    assert response.json['recent_activity'] == []
    assert response.json['overdue_tasks'] == []


def test_overview_uses_plant_metric_when_no_environment_reading(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])
    client.post(f"/api/plants/{plant['id']}/metrics", json={'temperature_c': 22.5}, headers=auth_headers)

    environment = client.get('/api/overview', headers=auth_headers).json['environment']

    assert environment['source'] == 'plant_metric'
    assert environment['temperature'] == 22.5
    assert environment['humidity'] == 60


def test_overview_prefers_environment_reading(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])
    client.post(f"/api/plants/{plant['id']}/metrics", json={'temperature_c': 22.5}, headers=auth_headers)
    client.post(f"/api/grows/{grow['id']}/environment", json={'temperature': 26, 'humidity': 55, 'co2': 900},
                headers=auth_headers)

    environment = client.get('/api/overview', headers=auth_headers).json['environment']

    assert environment['source'] == 'environment'
    assert environment['temperature'] == 26
    assert environment['co2'] == 900
    assert environment['vpd'] is not None


def test_overview_ignores_other_users_data(client, auth_headers, other_headers):
    other_grow = client.post('/api/grows', json={'name': 'Theirs', 'location_type': 'OUTDOOR'},
                             headers=other_headers).json
    client.post(f"/api/grows/{other_grow['id']}/environment", json={'temperature': 30}, headers=other_headers)

    environment = client.get('/api/overview', headers=auth_headers).json['environment']

    assert environment['source'] == 'default'


def test_overview_stats_chart_activity_and_tasks(client, auth_headers, grow):
    healthy = create_plant(client, auth_headers, grow['id'], name='Healthy')
    create_plant(client, auth_headers, grow['id'], name='Dead', status='DEAD')
    create_plant(client, auth_headers, grow['id'], name='Sick', status='SICK')
    client.post(f"/api/plants/{healthy['id']}/metrics", json={'height_cm': 50}, headers=auth_headers)
    client.post(f"/api/plants/{healthy['id']}/logs", json={'type': 'WATER', 'title': 'Watered'},
                headers=auth_headers)

    today = utc_now().strftime('%Y-%m-%dT00:00:01Z')
    client.post('/api/tasks', json={'title': 'Check pH', 'due_at': today, 'plant_id': healthy['id']},
                headers=auth_headers)
    client.post('/api/tasks', json={'title': 'Old task', 'due_at': '2020-01-01T00:00:00Z'}, headers=auth_headers)

    overview = client.get('/api/overview', headers=auth_headers).json

    assert overview['stats'] == {'total': 3, 'active': 2, 'healthy': 1, 'waste': 2}
    assert overview['chart_data'][4]['height'] == 50
    assert overview['recent_activity'][0]['title'] == 'Watered'
    assert overview['recent_activity'][0]['subtitle'] == 'Healthy'
    assert overview['tasks_today_count'] == 1
    assert [t['title'] for t in overview['overdue_tasks']][0] == 'Old task'


def test_overview_section_failure_keeps_other_sections(client, auth_headers, grow):
    plant = create_plant(client, auth_headers, grow['id'])
    client.post(f"/api/plants/{plant['id']}/metrics", json={'height_cm': 50}, headers=auth_headers)
    client.post(f"/api/grows/{grow['id']}/environment", json={'temperature': 26, 'humidity': 55},
                headers=auth_headers)

    with patch('growlog.services.overview.growth_chart', side_effect=SQLAlchemyError('db down')):
        response = client.get('/api/overview', headers=auth_headers)

    assert response.status_code == 200
    assert [p['height'] for p in response.json['chart_data']] == [0, 0, 0, 0, 0]
    assert response.json['stats'] == {'total': 1, 'active': 1, 'healthy': 1, 'waste': 0}
    assert response.json['environment']['source'] == 'environment'
    assert response.json['environment']['temperature'] == 26


# 20. Integration Test: admin routes are restricted to ADMIN users
def test_admin_users(client, auth_headers, admin_headers):
    forbidden = client.get('/api/admin/users', headers=auth_headers)
    listed = client.get('/api/admin/users', headers=admin_headers)

    assert forbidden.status_code == 403
    assert forbidden.json['error'] == 'Insufficient permissions'
    assert listed.status_code == 200
    assert {u['email'] for u in listed.json} == {user_email, 'admin@example.com'}

    grower = next(u for u in listed.json if u['email'] == user_email)
    promoted = client.patch(f"/api/admin/users/{grower['id']}", json={'role': 'ADMIN'}, headers=admin_headers)
    assert promoted.json['role'] == 'ADMIN'
    assert client.patch('/api/admin/users/999', json={'role': 'USER'}, headers=admin_headers).status_code == 404


# 21. Integration Test: plant templates are seeded from the bundled csv
def test_plant_templates(client, app, auth_headers):
    inserted = seed_plant_templates()
    assert inserted > 0
    assert seed_plant_templates() == 0  # table already filled

    templates = client.get('/api/templates/plants', headers=auth_headers).json
    names = [t['name'] for t in templates]

    assert len(templates) == PlantTemplate.query.count()
    assert names == sorted(names)
    assert any(t['plant_type'] == 'AUTOFLOWER' for t in templates)


def test_seed_templates_with_missing_file(app, tmp_path):
    assert seed_plant_templates(str(tmp_path / 'missing.csv')) == 0


# 22. Integration Test: preferences are stored per user
def test_profile_preferences(client, auth_headers, other_headers):
    assert client.get('/api/profile/preferences', headers=auth_headers).json == {}

    saved = client.patch('/api/profile/preferences', json={'preferences': {'theme': 'dark', 'units': 'metric'}},
                         headers=auth_headers)
    rejected = client.patch('/api/profile/preferences', json={'preferences': ['dark']}, headers=auth_headers)

    assert saved.json == {'theme': 'dark', 'units': 'metric'}
    assert rejected.status_code == 400
    assert client.get('/api/profile/preferences', headers=auth_headers).json['theme'] == 'dark'
    assert client.get('/api/profile/preferences', headers=other_headers).json == {}


# 23. Integration Test: feedback proxy
def test_feedback_disabled_without_token(client):
    response = client.post('/api/feedback', json={'title': 'Bug', 'description': 'Broken'})
    features = client.get('/api/config/features')

    assert response.status_code == 503
    assert features.json == {'features': {'feedback': False}}


def test_feedback_creates_github_issue(client, app):
    app.config['GITHUB_TOKEN'] = 'ghp_test'
    github_response = MagicMock()
    github_response.json.return_value = {'html_url': 'https://github.com/meinzeug/growlog/issues/7'}

    with patch('growlog.routes.feedback.requests.post', return_value=github_response) as mock_post:
        response = client.post('/api/feedback', json={'title': 'Bug', 'description': 'Broken', 'label': 'bug'})

    assert response.status_code == 200
    assert response.json == {'success': True, 'issue_url': 'https://github.com/meinzeug/growlog/issues/7'}

    args, kwargs = mock_post.call_args
    assert args[0] == 'https://api.github.com/repos/meinzeug/growlog/issues'
    assert kwargs['headers']['Authorization'] == 'Bearer ghp_test'
    assert kwargs['json']['title'] == '[Feedback] Bug'
    assert kwargs['json']['labels'] == ['bug', 'user-feedback']
    assert client.get('/api/config/features').json['features']['feedback'] is True


def test_feedback_github_failure(client, app):
    app.config['GITHUB_TOKEN'] = 'ghp_test'

    with patch('growlog.routes.feedback.requests.post', side_effect=requests.ConnectionError("down")):
        response = client.post('/api/feedback', json={'title': 'Bug', 'description': 'Broken'})

    assert response.status_code == 500
    assert response.json['error'] == 'Failed to submit feedback'


# 24. Integration Test: calculators over http
def test_tools(client):
    vpd = client.get('/api/tools/vpd?temperature=24&humidity=60')
    dli = client.get('/api/tools/dli?ppfd=600&hours=18&phase=veg')
    co2 = client.get('/api/tools/co2?width=1.2&length=1.2&height=2&target=1200')
    nutrients = client.get('/api/tools/nutrients?water=10&base=2&additive=1')
    harvest = client.get('/api/tools/harvest?flower_start=2024-03-01&weeks=8')

    assert vpd.json['vpd'] == pytest.approx(1.19, abs=0.01)
    assert dli.json['status'] == 'optimal'
    assert co2.json['volume'] == 2.88
    assert nutrients.json['base_ml'] == 20
    assert harvest.json['harvest_date'] == '2024-04-26'


def test_tools_reject_bad_input(client):
    assert client.get('/api/tools/vpd?temperature=24').status_code == 400
    assert client.get('/api/tools/vpd?temperature=24&humidity=140').status_code == 400
    assert client.get('/api/tools/vpd?temperature=-237.3&humidity=50').status_code == 400
    assert client.get('/api/tools/vpd?temperature=0&humidity=50&leaf_offset=-237.3').status_code == 400
    assert client.get('/api/tools/dli?ppfd=600&hours=30').status_code == 400


# 25. Integration Test: health check
def test_health(client):
    response = client.get('/api/health')

    assert response.status_code == 200
    assert response.json == {'status': 'healthy'}
