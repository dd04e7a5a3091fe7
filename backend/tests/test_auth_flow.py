from flask import Flask
from tender_api import get_db
from tender_api.models.authz import User, SiteSupervisorAssignment
from tests.test_utils_seed import ensure_user, ensure_project


def test_login_and_me(client, app_context: Flask):
    ensure_user('t@example.com', 'PROCUREMENT', password='pw')

    resp = client.post('/auth/login', json={'email': 't@example.com', 'password': 'pw'})
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    token = body['access_token']
    assert body['user']['role'] == 'PROCUREMENT'

    me = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    user = me.get_json()['user']
    assert user['email'] == 't@example.com'
    assert user['project_id'] is None


def test_login_failures(client, app_context: Flask):
    ensure_user('t@example.com', 'PROCUREMENT', password='pw')
    resp = client.post('/auth/login', json={'email': 't@example.com', 'password': 'wrong'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid credentials'
    resp = client.post('/auth/login', json={'email': 'nobody@example.com', 'password': 'pw'})
    assert resp.status_code == 401
    resp = client.post('/auth/login', json={'email': 't@example.com'})
    assert resp.status_code == 400


def test_inactive_user_cannot_login(client, app_context: Flask):
    user = ensure_user('gone@example.com', 'CHAIRMAN', password='pw')
    session = get_db()
    session.get(User, user.id).is_active = False
    session.commit()
    resp = client.post('/auth/login', json={'email': 'gone@example.com', 'password': 'pw'})
    assert resp.status_code == 401


def test_signup_supervisor_binds_project(client, app_context: Flask):
    project = ensure_project('Harbor Bridge')
    resp = client.post('/auth/signup', json={
        'email': 'new.sup@example.com', 'name': 'New Sup', 'role': 'SITE_SUPERVISOR',
        'password': 'secret', 'project_id': project.id,
    })
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['access_token']
    assert body['user']['project_id'] == project.id
    session = get_db()
    user = session.query(User).filter_by(email='new.sup@example.com').one()
    assert user.verify_password('secret')
    assert session.query(SiteSupervisorAssignment).filter_by(user_id=user.id).one().project_id == project.id

    me = client.get('/auth/me', headers={'Authorization': f"Bearer {body['access_token']}"})
    assert me.get_json()['user']['role'] == 'SITE_SUPERVISOR'


def test_signup_validation(client, app_context: Flask):
    resp = client.post('/auth/signup', json={'email': 'a@example.com', 'name': 'A', 'password': 'x'})
    assert resp.status_code == 400
    resp = client.post('/auth/signup', json={'email': 'a@example.com', 'name': 'A', 'role': 'ADMIN', 'password': 'x'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'role invalid'
    resp = client.post('/auth/signup', json={'email': 'a@example.com', 'name': 'A', 'role': 'SITE_SUPERVISOR', 'password': 'x'})
    assert resp.status_code == 400
    resp = client.post('/auth/signup', json={'email': 'a@example.com', 'name': 'A', 'role': 'SITE_SUPERVISOR', 'password': 'x', 'project_id': 4040})
    assert resp.status_code == 404
    assert get_db().query(User).filter_by(email='a@example.com').count() == 0


def test_signup_duplicate_email(client, app_context: Flask):
    ensure_user('dup@example.com', 'CHAIRMAN')
    resp = client.post('/auth/signup', json={'email': 'dup@example.com', 'name': 'Dup', 'role': 'CHAIRMAN', 'password': 'x'})
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'User already exists'


def test_me_requires_valid_token(client, app_context: Flask):
    assert client.get('/auth/me').status_code == 401
    resp = client.get('/auth/me', headers={'Authorization': 'Bearer not-a-token'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid or expired token'
