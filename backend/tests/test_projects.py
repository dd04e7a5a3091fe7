from decimal import Decimal
from flask import Flask
from tender_api import get_db
from tender_api.models.project import OrderTemplate
from tests.test_utils_seed import ensure_user, ensure_project
from tests.test_lifecycle_helpers import jwt_headers


def test_public_project_list(client, app_context: Flask):
    ensure_project('Beta site')
    ensure_project('Alpha site')
    resp = client.get('/projects/public')
    assert resp.status_code == 200
    assert [p['title'] for p in resp.get_json()] == ['Alpha site', 'Beta site']
    assert set(resp.get_json()[0]) == {'id', 'title'}


def test_project_list_requires_auth(client, app_context: Flask):
    assert client.get('/projects').status_code == 401
    user = ensure_user('proc@example.com', 'PROCUREMENT')
    ensure_project('Alpha site')
    rows = client.get('/projects', headers=jwt_headers(user)).get_json()
    assert [p['title'] for p in rows] == ['Alpha site']


def test_create_project_chairman_only(client, app_context: Flask):
    chairman = ensure_user('chair@example.com', 'CHAIRMAN')
    resp = client.post('/projects', json={'title': 'Depot'}, headers=jwt_headers(chairman))
    assert resp.status_code == 201
    assert resp.get_json()['created_by'] == chairman.id
    procurement = ensure_user('proc@example.com', 'PROCUREMENT')
    resp = client.post('/projects', json={'title': 'Depot 2'}, headers=jwt_headers(procurement))
    assert resp.status_code == 403
    resp = client.post('/projects', json={}, headers=jwt_headers(chairman))
    assert resp.status_code == 400


def test_create_template_computes_amounts(client, app_context: Flask):
    project = ensure_project('Depot')
    procurement = ensure_user('proc@example.com', 'PROCUREMENT')
    resp = client.post(f'/projects/{project.id}/templates', json={
        'title': 'Roofing',
        'items': [
            {'item': 'Sheets', 'quantity': '12', 'rate': '15.50'},
            {'item': 'Screws', 'quantity': 3, 'rate': 2, 'amount': '10'},
        ],
    }, headers=jwt_headers(procurement))
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert [i['amount'] for i in body['items']] == ['186.00', '10.00']
    template = get_db().get(OrderTemplate, body['id'])
    assert template.total_amount() == Decimal('196')


def test_create_template_guards(client, app_context: Flask):
    supervisor = ensure_user('sup@example.com', 'SITE_SUPERVISOR')
    procurement = ensure_user('proc@example.com', 'PROCUREMENT')
    project = ensure_project('Depot')
    resp = client.post(f'/projects/{project.id}/templates', json={'title': 'x'}, headers=jwt_headers(supervisor))
    assert resp.status_code == 403
    resp = client.post('/projects/999/templates', json={'title': 'x'}, headers=jwt_headers(procurement))
    assert resp.status_code == 404
    resp = client.post(f'/projects/{project.id}/templates', json={'title': 'x', 'items': [{'quantity': 1}]}, headers=jwt_headers(procurement))
    assert resp.status_code == 400
