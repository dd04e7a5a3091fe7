import pytest
from tender_api.constants.permissions import (
    ALL_ROLES, OPERATION_ROLES, STATUS_UPDATE_TARGETS, roles_for,
    SITE_SUPERVISOR, PROCUREMENT, FINANCE_PROCUREMENT, CHAIRMAN, CHAIRMAN_PA,
)
from tender_api.errors import Forbidden
from tender_api.models.order import Order
from tender_api.services.policy import (
    Actor, assert_allowed, assert_owns_record, can_delete_order, can_set_status,
    enforce_status_graph_enabled, is_allowed,
)


def _actor(role, uid=1):
    return Actor(id=uid, email=f'{role.lower()}@example.com', role=role)


def test_operation_table_only_references_known_roles():
    for op, roles in OPERATION_ROLES.items():
        assert roles, op
        assert set(roles) <= set(ALL_ROLES), op
    assert set(STATUS_UPDATE_TARGETS) == set(ALL_ROLES)


def test_unknown_operation_code_raises():
    with pytest.raises(ValueError):
        roles_for('ORDER.TELEPORT')


@pytest.mark.parametrize('op,allowed', [
    ('ORDER.CREATE', {SITE_SUPERVISOR}),
    ('ORDER.APPROVE_PROCUREMENT', {PROCUREMENT, FINANCE_PROCUREMENT}),
    ('ORDER.APPROVE_CHAIRMAN', {CHAIRMAN, CHAIRMAN_PA}),
    ('ORDER.SOURCE', {PROCUREMENT, FINANCE_PROCUREMENT}),
    ('ORDER.SOURCED', {PROCUREMENT, FINANCE_PROCUREMENT}),
    ('APPROVAL.DECIDE', {CHAIRMAN}),
])
def test_role_gates(op, allowed):
    for role in ALL_ROLES:
        assert is_allowed(role, op) == (role in allowed), (op, role)


def test_assert_allowed_carries_message():
    with pytest.raises(Forbidden) as exc:
        assert_allowed(_actor(SITE_SUPERVISOR), 'ORDER.SOURCE', 'Only procurement staff can source materials')
    assert exc.value.code == 403
    assert exc.value.description == 'Only procurement staff can source materials'


def test_supervisor_may_only_cancel_own_orders():
    sup = _actor(SITE_SUPERVISOR, uid=7)
    assert can_set_status(sup, Order.STATUS_CANCELLED, owner_user_id=7)
    assert not can_set_status(sup, Order.STATUS_CANCELLED, owner_user_id=8)
    assert not can_set_status(sup, Order.STATUS_COMPLETED, owner_user_id=7)


def test_procurement_status_targets():
    proc = _actor(FINANCE_PROCUREMENT)
    for target in ('SOURCING', 'SOURCED', 'IN_PROGRESS', 'COMPLETED'):
        assert can_set_status(proc, target, owner_user_id=99)
    for target in ('CANCELLED', 'APPROVED', 'PENDING_CHAIRMAN'):
        assert not can_set_status(proc, target, owner_user_id=99)


def test_chairman_tier_may_set_any_status():
    for role in (CHAIRMAN, CHAIRMAN_PA):
        for target in Order.ALL_STATUSES:
            assert can_set_status(_actor(role), target, owner_user_id=99)


def test_delete_rules():
    assert can_delete_order(_actor(SITE_SUPERVISOR, uid=3), owner_user_id=3)
    assert not can_delete_order(_actor(SITE_SUPERVISOR, uid=3), owner_user_id=4)
    assert not can_delete_order(_actor(PROCUREMENT, uid=5), owner_user_id=4)
    assert can_delete_order(_actor(CHAIRMAN_PA, uid=6), owner_user_id=4)


def test_record_ownership_applies_to_supervisors_only():
    with pytest.raises(Forbidden):
        assert_owns_record(_actor(SITE_SUPERVISOR, uid=1), owner_user_id=2)
    assert_owns_record(_actor(PROCUREMENT, uid=1), owner_user_id=2)


def test_status_graph_flag_defaults_on():
    assert enforce_status_graph_enabled({}) is True
    assert enforce_status_graph_enabled({'ORDER_ENFORCE_STATUS_GRAPH': False}) is False
