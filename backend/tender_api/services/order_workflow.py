from __future__ import annotations
"""Order workflow engine.

Role-gated status transitions over the Order aggregate (order + items). Every operation
follows the same sequence: role guard, load, status precondition, write, commit.

Lifecycle graph:
    PENDING_PROCUREMENT -> PENDING_CHAIRMAN -> APPROVED | REJECTED
    APPROVED -> SOURCING -> SOURCED -> IN_PROGRESS -> COMPLETED
    any non-terminal state -> CANCELLED
REJECTED, COMPLETED and CANCELLED are terminal.

Transitions are single-row updates without locking; concurrent requests against the
same order are last-write-wins. No notification is emitted for order transitions.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional
from flask import current_app
from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tender_api.constants.permissions import CHAIRMAN_TIER, PROCUREMENT_TIER, SITE_SUPERVISOR
from tender_api.errors import Forbidden, InternalError, NotFound, ValidationError
from tender_api.models.authz import SiteSupervisorAssignment, utcnow
from tender_api.models.order import Order, OrderItem
from tender_api.services.policy import (
    Actor, assert_allowed, can_delete_order, can_set_status,
)
from tender_api.utils.fsm import TransitionValidator
from tender_api.utils.order_number import unique_order_number
from tender_api.utils.validation import (
    loose_int, optional_datetime, optional_decimal, optional_str, require_fields, validate_status,
)

ORDER_FSM = TransitionValidator({
    Order.STATUS_PENDING_PROCUREMENT: {Order.STATUS_PENDING_CHAIRMAN, Order.STATUS_CANCELLED},
    Order.STATUS_PENDING_CHAIRMAN: {Order.STATUS_APPROVED, Order.STATUS_REJECTED, Order.STATUS_CANCELLED},
    Order.STATUS_APPROVED: {Order.STATUS_SOURCING, Order.STATUS_CANCELLED},
    Order.STATUS_SOURCING: {Order.STATUS_SOURCED, Order.STATUS_CANCELLED},
    Order.STATUS_SOURCED: {Order.STATUS_IN_PROGRESS, Order.STATUS_CANCELLED},
    Order.STATUS_IN_PROGRESS: {Order.STATUS_COMPLETED, Order.STATUS_CANCELLED},
    Order.STATUS_REJECTED: set(),
    Order.STATUS_COMPLETED: set(),
    Order.STATUS_CANCELLED: set(),
})


@dataclass(frozen=True)
class Transition:
    operation: str
    required: str
    target: str
    stamp: Optional[str]
    denied_message: str
    precondition_message: str


TRANSITIONS: Dict[str, Transition] = {
    'approve-procurement': Transition(
        'ORDER.APPROVE_PROCUREMENT', Order.STATUS_PENDING_PROCUREMENT, Order.STATUS_PENDING_CHAIRMAN,
        'procurement_approved',
        'Only procurement staff can approve orders',
        'Order is not pending procurement approval',
    ),
    'approve-chairman': Transition(
        'ORDER.APPROVE_CHAIRMAN', Order.STATUS_PENDING_CHAIRMAN, Order.STATUS_APPROVED,
        'chairman_approved',
        'Only chairman and PA can approve orders',
        'Order is not pending chairman approval',
    ),
    'reject-chairman': Transition(
        'ORDER.APPROVE_CHAIRMAN', Order.STATUS_PENDING_CHAIRMAN, Order.STATUS_REJECTED,
        'chairman_approved',
        'Only chairman and PA can approve orders',
        'Order is not pending chairman approval',
    ),
    'source': Transition(
        'ORDER.SOURCE', Order.STATUS_APPROVED, Order.STATUS_SOURCING,
        'procurement_sourced',
        'Only procurement staff can source materials',
        'Order must be approved by chairman before sourcing',
    ),
    'sourced': Transition(
        'ORDER.SOURCED', Order.STATUS_SOURCING, Order.STATUS_SOURCED,
        None,
        'Only procurement staff can mark orders as sourced',
        'Order must be in sourcing status',
    ),
}


def load_order(session: Session, order_id: int) -> Order:
    order = session.execute(select(Order).where(Order.id == order_id)).scalar_one_or_none()
    if not order:
        raise NotFound('Order not found')
    return order


def apply_transition(session: Session, actor: Actor, order_id: int, name: str) -> Order:
    transition = TRANSITIONS[name]
    # Role check precedes the lookup: 403 even for unknown ids
    assert_allowed(actor, transition.operation, transition.denied_message)
    order = load_order(session, order_id)
    ORDER_FSM.assert_in_state(order.status, [transition.required], transition.precondition_message)
    previous = order.status
    order.status = transition.target
    if transition.stamp:
        setattr(order, f'{transition.stamp}_by', actor.id)
        setattr(order, f'{transition.stamp}_at', utcnow())
    session.commit()
    current_app.logger.info('Order %s %s -> %s by user %s (%s)', order.order_number, previous, order.status, actor.id, name)
    return order


def set_status(session: Session, actor: Actor, order_id: int, target: Any, enforce_graph: bool = True) -> Order:
    """Generic status update driven by the role allow-list.

    With enforce_graph the move must also be an edge of ORDER_FSM; without it any
    allowed target may be written from any current status.
    """
    order = load_order(session, order_id)
    if not isinstance(target, str):
        raise ValidationError('status required')
    validate_status(target, Order.ALL_STATUSES)
    if not can_set_status(actor, target, order.requested_by_id):
        raise Forbidden('Insufficient permissions to update order status')
    if enforce_graph:
        ORDER_FSM.assert_can_transition(order.status, target)
    previous = order.status
    order.status = target
    session.commit()
    current_app.logger.info('Order %s %s -> %s by user %s (status update)', order.order_number, previous, target, actor.id)
    return order


def delete_order(session: Session, actor: Actor, order_id: int):
    order = load_order(session, order_id)
    if not can_delete_order(actor, order.requested_by_id):
        raise Forbidden('Insufficient permissions to delete order')
    ORDER_FSM.assert_in_state(order.status, Order.PENDING_STATUSES, 'Only pending orders can be deleted')
    session.delete(order)
    session.commit()
    current_app.logger.info('Order %s deleted by user %s', order.order_number, actor.id)


# ---------------- Creation ---------------- #

def _parse_items(raw_items: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError('Project ID, title, and items are required')
    parsed = []
    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, Mapping):
            raise ValidationError(f'items[{idx}] must be an object')
        parsed.append({
            'item_code': optional_str(raw.get('item_code'), f'items[{idx}].item_code') or '',
            'description': optional_str(raw.get('description'), f'items[{idx}].description') or '',
            'unit': optional_str(raw.get('unit'), f'items[{idx}].unit') or 'units',
            'quantity': loose_int(raw.get('quantity'), f'items[{idx}].quantity'),
            'unit_price': optional_decimal(raw.get('unit_price'), f'items[{idx}].unit_price'),
            'total_price': optional_decimal(raw.get('total_price'), f'items[{idx}].total_price'),
            'remarks': optional_str(raw.get('remarks'), f'items[{idx}].remarks') or None,
        })
    return parsed


def _insert_items(session: Session, order: Order, items: List[Dict[str, Any]]):
    session.add_all([OrderItem(order_id=order.id, **item) for item in items])
    session.flush()


def create_order(session: Session, actor: Actor, data: Mapping[str, Any]) -> Order:
    assert_allowed(actor, 'ORDER.CREATE', 'Only site supervisors can create orders')
    require_fields(data, 'project_id', 'title', message='Project ID, title, and items are required')
    title = optional_str(data['title'], 'title')
    description = optional_str(data.get('description'), 'description')
    remarks = optional_str(data.get('remarks'), 'remarks')
    items = _parse_items(data.get('items'))
    try:
        project_id = int(data['project_id'])
    except (TypeError, ValueError):
        raise ValidationError('project_id must be an integer')
    total_amount = optional_decimal(data.get('total_amount'), 'total_amount')
    required_date = optional_datetime(data.get('required_date'), 'required_date')

    assignment = session.execute(
        select(SiteSupervisorAssignment).where(SiteSupervisorAssignment.user_id == actor.id)
    ).scalar_one_or_none()
    if not assignment or assignment.project_id != project_id:
        raise Forbidden('Access denied to this project')

    order_number = unique_order_number(
        lambda n: session.execute(select(Order.id).where(Order.order_number == n)).first() is not None
    )
    order = Order(
        order_number=order_number,
        project_id=project_id,
        title=title,
        description=description,
        required_date=required_date,
        total_amount=total_amount,
        remarks=remarks,
        requested_by_id=actor.id,
        status=Order.STATUS_PENDING_PROCUREMENT,
    )
    # Order row and item rows commit together or not at all
    try:
        session.add(order)
        session.flush()
        _insert_items(session, order, items)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception('Error creating order for project %s', project_id)
        raise InternalError('Failed to create order')
    current_app.logger.info('Order %s created by user %s with %d items', order.order_number, actor.id, len(items))
    return order


# ---------------- Queries ---------------- #

def visible_orders_query(session: Session, actor: Actor):
    """Role-filtered base query for order listings."""
    q = session.query(Order)
    if actor.role == SITE_SUPERVISOR:
        q = q.filter(Order.requested_by_id == actor.id)
    elif actor.role in PROCUREMENT_TIER:
        q = q.filter(or_(
            Order.status == Order.STATUS_PENDING_PROCUREMENT,
            Order.procurement_approved_by == actor.id,
            Order.procurement_sourced_by == actor.id,
        ))
    elif actor.role in CHAIRMAN_TIER:
        q = q.filter(or_(
            Order.status == Order.STATUS_PENDING_CHAIRMAN,
            Order.chairman_approved_by == actor.id,
        ))
    return q.order_by(Order.created_at.desc(), Order.id.desc())


__all__ = [
    'ORDER_FSM', 'TRANSITIONS', 'Transition', 'load_order', 'apply_transition',
    'set_status', 'delete_order', 'create_order', 'visible_orders_query',
]
