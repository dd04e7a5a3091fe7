from __future__ import annotations
from flask import Blueprint, request, current_app, jsonify
from sqlalchemy import select
from tender_api import get_db
from tender_api.models.authz import user_brief
from tender_api.models.order import Order
from tender_api.models.project import project_brief, money
from tender_api.decorators.auth import require_auth, require_operation
from tender_api.decorators.audit import audit_log
from tender_api.services import order_workflow
from tender_api.services.policy import current_actor, assert_owns_record, enforce_status_graph_enabled
from tender_api.utils.filters import apply_filters
from tender_api.utils.validation import json_object
from tender_api.errors import ValidationError

orders_bp = Blueprint('orders', __name__)


@orders_bp.get('')
@require_auth
def list_orders():
    session = get_db()
    actor = current_actor()
    q = order_workflow.visible_orders_query(session, actor)
    filter_specs = {
        'status': {'op': lambda qu, v: qu.filter(Order.status == v), 'validate': lambda v: v in Order.ALL_STATUSES},
        'project_id': {'coerce': int, 'op': lambda qu, v: qu.filter(Order.project_id == v)},
    }
    q = apply_filters(q, filter_specs, request.args)
    return jsonify([_order_json(o, with_counts=True) for o in q.all()])


@orders_bp.get('/<int:order_id>')
@require_auth
def get_order(order_id: int):
    session = get_db()
    actor = current_actor()
    order = order_workflow.load_order(session, order_id)
    assert_owns_record(actor, order.requested_by_id)
    return _order_json(order, with_deliveries=True)


@orders_bp.post('')
@require_operation('ORDER.CREATE', 'Only site supervisors can create orders')
@audit_log('ORDER.CREATE', entity='Order', entity_id_key='id', meta_keys=['order_number', 'project_id'])
def create_order():
    session = get_db()
    order = order_workflow.create_order(session, current_actor(), json_object(request.get_json(silent=True)))
    return _order_json(order), 201


@orders_bp.put('/<int:order_id>/approve-procurement')
@require_operation('ORDER.APPROVE_PROCUREMENT', 'Only procurement staff can approve orders')
@audit_log('ORDER.APPROVE_PROCUREMENT', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')), meta_keys=['status'])
def approve_procurement(order_id: int):
    order = order_workflow.apply_transition(get_db(), current_actor(), order_id, 'approve-procurement')
    return _order_json(order)


@orders_bp.put('/<int:order_id>/approve-chairman')
@require_operation('ORDER.APPROVE_CHAIRMAN', 'Only chairman and PA can approve orders')
@audit_log('ORDER.APPROVE_CHAIRMAN', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')), meta_keys=['status'])
def approve_chairman(order_id: int):
    data = json_object(request.get_json(silent=True))
    approved = data.get('approved')
    if not isinstance(approved, bool):
        raise ValidationError('approved must be a boolean')
    name = 'approve-chairman' if approved else 'reject-chairman'
    order = order_workflow.apply_transition(get_db(), current_actor(), order_id, name)
    return _order_json(order)


@orders_bp.put('/<int:order_id>/source')
@require_operation('ORDER.SOURCE', 'Only procurement staff can source materials')
@audit_log('ORDER.SOURCE', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')), meta_keys=['status'])
def source_order(order_id: int):
    order = order_workflow.apply_transition(get_db(), current_actor(), order_id, 'source')
    return _order_json(order)


@orders_bp.put('/<int:order_id>/sourced')
@require_operation('ORDER.SOURCED', 'Only procurement staff can mark orders as sourced')
@audit_log('ORDER.SOURCED', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')), meta_keys=['status'])
def mark_sourced(order_id: int):
    order = order_workflow.apply_transition(get_db(), current_actor(), order_id, 'sourced')
    return _order_json(order)


@orders_bp.put('/<int:order_id>/status')
@require_auth
@audit_log('ORDER.STATUS', entity='Order', entity_id_key='id', diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')), meta_keys=['status'])
def update_status(order_id: int):
    data = json_object(request.get_json(silent=True))
    order = order_workflow.set_status(
        get_db(), current_actor(), order_id, data.get('status'),
        enforce_graph=enforce_status_graph_enabled(current_app.config),
    )
    return _order_json(order)


@orders_bp.delete('/<int:order_id>')
@require_auth
@audit_log('ORDER.DELETE', entity='Order', entity_id_arg='order_id')
def delete_order(order_id: int):
    order_workflow.delete_order(get_db(), current_actor(), order_id)
    return '', 204


def _item_json(item):
    return {
        'id': item.id,
        'item_code': item.item_code,
        'description': item.description,
        'unit': item.unit,
        'quantity': item.quantity,
        'unit_price': money(item.unit_price),
        'total_price': money(item.total_price),
        'remarks': item.remarks,
    }


def _delivery_json(d):
    return {
        'id': d.id,
        'supplier_name': d.supplier_name,
        'status': d.status,
        'delivered_at': _iso(d.delivered_at),
        'remarks': d.remarks,
    }


def _iso(dt):
    return dt.isoformat() if dt else None


def _order_json(o: Order, with_counts: bool = False, with_deliveries: bool = False):
    body = {
        'id': o.id,
        'order_number': o.order_number,
        'project_id': o.project_id,
        'project': project_brief(o.project),
        'title': o.title,
        'description': o.description,
        'status': o.status,
        'required_date': _iso(o.required_date),
        'total_amount': money(o.total_amount),
        'remarks': o.remarks,
        'requested_by': user_brief(o.requested_by),
        'procurement_approver': user_brief(o.procurement_approver),
        'procurement_approved_at': _iso(o.procurement_approved_at),
        'chairman_approver': user_brief(o.chairman_approver),
        'chairman_approved_at': _iso(o.chairman_approved_at),
        'procurement_sourcer': user_brief(o.procurement_sourcer),
        'procurement_sourced_at': _iso(o.procurement_sourced_at),
        'created_at': _iso(o.created_at),
        'items': [_item_json(i) for i in o.items],
    }
    if with_counts:
        body['delivery_count'] = len(o.deliveries)
    if with_deliveries:
        body['deliveries'] = [_delivery_json(d) for d in o.deliveries]
    return body


def _prefetch_order(order_id: int):
    session = get_db()
    o = session.execute(select(Order).where(Order.id == order_id)).scalar_one_or_none()
    if not o:
        return {}
    return {'status': o.status}
