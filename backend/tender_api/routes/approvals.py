from __future__ import annotations
from flask import Blueprint, request, jsonify
from tender_api import get_db
from tender_api.models.approval import ApprovalRequest, ApprovalNotification
from tender_api.models.authz import user_brief
from tender_api.models.project import project_brief, template_json, money
from tender_api.decorators.auth import require_auth, require_operation
from tender_api.decorators.audit import audit_log
from tender_api.services import approvals as approval_service
from tender_api.services.policy import current_actor
from tender_api.utils.filters import apply_filters
from tender_api.utils.validation import json_object

approvals_bp = Blueprint('approvals', __name__)


@approvals_bp.get('')
@require_auth
def list_requests():
    session = get_db()
    actor = current_actor()
    q = approval_service.visible_requests_query(session, actor)
    filter_specs = {
        'status': {'op': lambda qu, v: qu.filter(ApprovalRequest.status == v), 'validate': lambda v: v in ApprovalRequest.ALL_STATUSES},
        'priority': {'op': lambda qu, v: qu.filter(ApprovalRequest.priority == v), 'validate': lambda v: v in ApprovalRequest.ALL_PRIORITIES},
        'project_id': {'coerce': int, 'op': lambda qu, v: qu.filter(ApprovalRequest.project_id == v)},
    }
    q = apply_filters(q, filter_specs, request.args)
    rows = []
    for req in q.all():
        body = _request_json(req)
        # Only the caller's own unread notifications are attached
        body['notifications'] = [
            _notification_json(n) for n in req.notifications
            if n.user_id == actor.id and not n.is_read
        ]
        rows.append(body)
    return jsonify(rows)


@approvals_bp.get('/<int:request_id>')
@require_auth
def get_request(request_id: int):
    req = approval_service.get_request(get_db(), current_actor(), request_id)
    return _request_json(req, with_descriptions=True)


@approvals_bp.post('')
@require_operation('APPROVAL.CREATE', 'Only procurement staff can create approval requests')
@audit_log('APPROVAL.CREATE', entity='ApprovalRequest', entity_id_key='id', meta_keys=['title', 'total_amount', 'priority'])
def create_request():
    req = approval_service.create_request(get_db(), current_actor(), json_object(request.get_json(silent=True)))
    return _request_json(req), 201


@approvals_bp.patch('/<int:request_id>/status')
@require_operation('APPROVAL.DECIDE', 'Only chairman can approve/reject requests')
@audit_log('APPROVAL.DECIDE', entity='ApprovalRequest', entity_id_key='id', diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_request(kw.get('request_id')), meta_keys=['status'])
def decide_request(request_id: int):
    req = approval_service.decide(get_db(), current_actor(), request_id, json_object(request.get_json(silent=True)))
    return _request_json(req)


@approvals_bp.get('/notifications/unread')
@require_auth
def unread_notifications():
    rows = approval_service.unread_notifications(get_db(), current_actor())
    return jsonify([_notification_json(n, with_request=True) for n in rows])


@approvals_bp.patch('/notifications/<int:notification_id>/read')
@require_auth
def mark_notification_read(notification_id: int):
    n = approval_service.mark_read(get_db(), current_actor(), notification_id)
    return _notification_json(n)


@approvals_bp.patch('/notifications/read-all')
@require_auth
def mark_all_notifications_read():
    approval_service.mark_all_read(get_db(), current_actor())
    return {'success': True}


def _iso(dt):
    return dt.isoformat() if dt else None


def _request_json(req: ApprovalRequest, with_descriptions: bool = False):
    template = template_json(req.order_template)
    if template and not with_descriptions:
        for item in template['items']:
            item.pop('description', None)
    requester = user_brief(req.requested_by_user)
    if requester is not None:
        requester['role'] = req.requested_by_user.role
    return {
        'id': req.id,
        'title': req.title,
        'description': req.description,
        'status': req.status,
        'priority': req.priority,
        'total_amount': money(req.total_amount),
        'project_id': req.project_id,
        'project': project_brief(req.project),
        'order_template_id': req.order_template_id,
        'order_template': template,
        'requested_by': req.requested_by,
        'requested_by_user': requester,
        'requested_at': _iso(req.requested_at),
        'reviewed_by': req.reviewed_by,
        'reviewed_by_user': user_brief(req.reviewed_by_user),
        'reviewed_at': _iso(req.reviewed_at),
        'comments': req.comments,
        'created_at': _iso(req.created_at),
    }


def _notification_json(n: ApprovalNotification, with_request: bool = False):
    body = {
        'id': n.id,
        'approval_request_id': n.approval_request_id,
        'user_id': n.user_id,
        'type': n.type,
        'title': n.title,
        'message': n.message,
        'is_read': n.is_read,
        'created_at': _iso(n.created_at),
    }
    if with_request:
        req = n.approval_request
        body['approval_request'] = {
            'id': req.id,
            'title': req.title,
            'status': req.status,
            'project': {'title': req.project.title} if req.project else None,
        }
    return body


def _prefetch_request(request_id: int):
    req = get_db().get(ApprovalRequest, request_id)
    if not req:
        return {}
    return {'status': req.status}
