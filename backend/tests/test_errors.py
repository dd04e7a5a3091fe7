from flask import Flask
from tests.test_utils_seed import ensure_user
from tests.test_lifecycle_helpers import jwt_headers


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body


def test_health(client):
    resp = client.get('/healthz')
    assert resp.status_code == 200
    assert resp.get_json() == {'status': 'ok'}


def test_missing_token_shape(client):
    resp = client.get('/orders')
    assert resp.status_code == 401
    body = resp.get_json()
    assert body['error'] == 'Unauthorized'
    assert 'details' in body


def test_unknown_role_claim_rejected(client, app_context: Flask):
    from flask_jwt_extended import create_access_token
    token = create_access_token(identity='1', additional_claims={'email': 'x@example.com', 'role': 'JANITOR'})
    resp = client.get('/orders', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid or expired token'


def test_forbidden_includes_details(client, app_context: Flask):
    user = ensure_user('sup@example.com', 'SITE_SUPERVISOR')
    resp = client.put('/orders/1/source', headers=jwt_headers(user))
    assert resp.status_code == 403
    body = resp.get_json()
    assert body['error'] == 'Only procurement staff can source materials'
    assert body['details'] == 'role SITE_SUPERVISOR may not perform ORDER.SOURCE'


def test_internal_error_shape(client, app_context: Flask, monkeypatch):
    import tender_api.routes.orders as orders_mod
    user = ensure_user('proc@example.com', 'PROCUREMENT')

    def explode(session, actor):
        raise RuntimeError('explode')

    monkeypatch.setattr(orders_mod.order_workflow, 'visible_orders_query', explode)
    resp = client.get('/orders', headers=jwt_headers(user))
    assert resp.status_code == 500
    assert resp.get_json() == {'error': 'Internal server error'}
