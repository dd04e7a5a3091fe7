import pytest
from flask import Flask
from tender_api import get_db
from tender_api.models.order import Order
from tests.test_utils_seed import ensure_user, seed_supervisor, create_order_record
from tests.test_lifecycle_helpers import jwt_headers, assert_transition


@pytest.fixture()
def actors(app_context: Flask):
    supervisor, project = seed_supervisor()
    procurement = ensure_user('proc@example.com', 'PROCUREMENT')
    chairman = ensure_user('chair@example.com', 'CHAIRMAN')
    return {
        'project': project,
        'supervisor': supervisor,
        'sup_h': jwt_headers(supervisor),
        'proc_h': jwt_headers(procurement),
        'chair_h': jwt_headers(chairman),
    }


def _set_status(client, order_id, headers, status, expected):
    return assert_transition(client, f'/orders/{order_id}/status', headers, expected, payload={'status': status})


def test_supervisor_cancels_own_pending_order(app_context: Flask, actors):
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'])
    resp = _set_status(client, order.id, actors['sup_h'], 'CANCELLED', 200)
    assert resp.get_json()['status'] == 'CANCELLED'


def test_supervisor_cannot_cancel_others_order(app_context: Flask, actors):
    client = app_context.test_client()
    other, _ = seed_supervisor('sup2@example.com')
    order = create_order_record(actors['project'], other)
    resp = _set_status(client, order.id, actors['sup_h'], 'CANCELLED', 403)
    assert resp.get_json()['error'] == 'Insufficient permissions to update order status'


def test_procurement_progresses_sourced_order(app_context: Flask, actors):
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'], status='SOURCED')
    _set_status(client, order.id, actors['proc_h'], 'IN_PROGRESS', 200)
    _set_status(client, order.id, actors['proc_h'], 'COMPLETED', 200)
    assert get_db().get(Order, order.id).status == 'COMPLETED'


def test_procurement_cannot_cancel(app_context: Flask, actors):
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'], status='SOURCING')
    _set_status(client, order.id, actors['proc_h'], 'CANCELLED', 403)


def test_graph_blocks_skipping_stages(app_context: Flask, actors):
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'])
    resp = _set_status(client, order.id, actors['proc_h'], 'COMPLETED', 400)
    assert resp.get_json()['error'] == 'Invalid status transition PENDING_PROCUREMENT -> COMPLETED'
    # Chairman may pick any target but still has to follow the graph
    resp = _set_status(client, order.id, actors['chair_h'], 'APPROVED', 400)
    assert get_db().get(Order, order.id).status == 'PENDING_PROCUREMENT'


def test_terminal_orders_stay_terminal(app_context: Flask, actors):
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'], status='REJECTED')
    _set_status(client, order.id, actors['chair_h'], 'APPROVED', 400)
    _set_status(client, order.id, actors['chair_h'], 'CANCELLED', 400)


def test_legacy_mode_allows_any_permitted_target(app_context: Flask, actors, monkeypatch):
    monkeypatch.setitem(app_context.config, 'ORDER_ENFORCE_STATUS_GRAPH', False)
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'])
    resp = _set_status(client, order.id, actors['proc_h'], 'COMPLETED', 200)
    assert resp.get_json()['status'] == 'COMPLETED'
    # Role allow-list still applies without the graph
    _set_status(client, order.id, actors['proc_h'], 'CANCELLED', 403)


@pytest.mark.parametrize('status', ['SHIPPED', '', None, 7])
def test_unknown_status_rejected(app_context: Flask, actors, status):
    client = app_context.test_client()
    order = create_order_record(actors['project'], actors['supervisor'])
    resp = _set_status(client, order.id, actors['chair_h'], status, 400)
    assert 'error' in resp.get_json()
    assert get_db().get(Order, order.id).status == 'PENDING_PROCUREMENT'


def test_status_on_missing_order(app_context: Flask, actors):
    client = app_context.test_client()
    resp = _set_status(client, 987654, actors['chair_h'], 'CANCELLED', 404)
    assert resp.get_json()['error'] == 'Order not found'
