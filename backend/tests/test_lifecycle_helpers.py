"""Reusable test helpers for the order lifecycle to reduce duplication.

Patterns unified:
 - Auth header creation using direct JWT claims (bypassing /auth/login).
 - Creation + transition sequencing with assertion helpers.
"""
from __future__ import annotations
from typing import Dict, Optional
from flask_jwt_extended import create_access_token

# ---------- Generic Auth Helpers ---------- #

def jwt_headers(user):
    token = create_access_token(identity=str(user.id), additional_claims={
        'email': user.email,
        'role': user.role,
    })
    return {'Authorization': f'Bearer {token}'}

# ---------- Assertion Helpers ---------- #

def assert_transition(client, url: str, headers: Dict[str, str], expected_status: int, expected_body_value: Optional[str] = None, payload: Optional[dict] = None):
    resp = client.put(url, json=payload or {}, headers=headers)
    assert resp.status_code == expected_status, resp.get_json()
    if expected_status < 400 and expected_body_value is not None:
        assert resp.get_json()['status'] == expected_body_value
    return resp


def order_payload(project_id: int, **overrides):
    payload = {
        'project_id': project_id,
        'title': 'Foundation materials',
        'description': 'Cement and steel for block B',
        'total_amount': '1000',
        'items': [
            {'item_code': 'CEM-01', 'description': 'Cement bags', 'unit': 'bags', 'quantity': 40, 'unit_price': '10', 'total_price': '400'},
            {'item_code': 'STL-12', 'description': 'Steel bars', 'unit': 'pcs', 'quantity': 20, 'unit_price': '30', 'total_price': '600'},
        ],
    }
    payload.update(overrides)
    return payload


def create_order_and_assert(client, project_id: int, headers: Dict[str, str], **overrides):
    resp = client.post('/orders', json=order_payload(project_id, **overrides), headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    assert body['status'] == 'PENDING_PROCUREMENT'
    return body

# ---------- Domain Specific Wrappers ---------- #

def exercise_order_lifecycle(client, project_id: int, supervisor_h, procurement_h, chairman_h):
    """Drive an order from creation to SOURCED and return its id."""
    order = create_order_and_assert(client, project_id, supervisor_h)
    oid = order['id']
    assert_transition(client, f'/orders/{oid}/approve-procurement', procurement_h, 200, 'PENDING_CHAIRMAN')
    assert_transition(client, f'/orders/{oid}/approve-chairman', chairman_h, 200, 'APPROVED', payload={'approved': True})
    assert_transition(client, f'/orders/{oid}/source', procurement_h, 200, 'SOURCING')
    assert_transition(client, f'/orders/{oid}/sourced', procurement_h, 200, 'SOURCED')
    return oid

__all__ = [
    'jwt_headers', 'assert_transition', 'order_payload', 'create_order_and_assert', 'exercise_order_lifecycle',
]
