from __future__ import annotations
"""Approval request workflow (template-level chairman decisions).

Notifications are written after the main commit and are best-effort: a failing
notification insert is logged and rolled back, the decision itself stays committed.
"""
from typing import Any, Mapping, Optional
from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tender_api.constants.permissions import CHAIRMAN
from tender_api.errors import Forbidden, NotFound, ValidationError
from tender_api.models.approval import ApprovalNotification, ApprovalRequest
from tender_api.models.authz import User, utcnow
from tender_api.models.project import OrderTemplate, Project
from tender_api.services.policy import Actor, assert_allowed, is_allowed
from tender_api.utils.validation import optional_str, require_fields, validate_status


def load_request(session: Session, request_id: int) -> ApprovalRequest:
    req = session.execute(select(ApprovalRequest).where(ApprovalRequest.id == request_id)).scalar_one_or_none()
    if not req:
        raise NotFound('Approval request not found')
    return req


def visible_requests_query(session: Session, actor: Actor):
    q = session.query(ApprovalRequest)
    if not is_allowed(actor.role, 'APPROVAL.READ_ALL'):
        q = q.filter(ApprovalRequest.requested_by == actor.id)
    return q.order_by(ApprovalRequest.created_at.desc(), ApprovalRequest.id.desc())


def get_request(session: Session, actor: Actor, request_id: int) -> ApprovalRequest:
    req = load_request(session, request_id)
    if not is_allowed(actor.role, 'APPROVAL.READ_ALL') and req.requested_by != actor.id:
        raise Forbidden('Access denied')
    return req


def first_chairman(session: Session) -> Optional[User]:
    return session.execute(
        select(User).where(User.role == CHAIRMAN).order_by(User.id.asc()).limit(1)
    ).scalar_one_or_none()


def create_request(session: Session, actor: Actor, data: Mapping[str, Any]) -> ApprovalRequest:
    assert_allowed(actor, 'APPROVAL.CREATE', 'Only procurement staff can create approval requests')
    require_fields(data, 'title', 'project_id')
    priority = data.get('priority') or ApprovalRequest.PRIORITY_MEDIUM
    validate_status(priority, ApprovalRequest.ALL_PRIORITIES, 'priority')
    try:
        project_id = int(data['project_id'])
        template_id = int(data['order_template_id']) if data.get('order_template_id') else None
    except (TypeError, ValueError):
        raise ValidationError('project_id and order_template_id must be integers')
    if session.get(Project, project_id) is None:
        raise NotFound('Project not found')

    template = session.get(OrderTemplate, template_id) if template_id else None
    req = ApprovalRequest(
        order_template_id=template.id if template else None,
        project_id=project_id,
        title=optional_str(data['title'], 'title'),
        description=optional_str(data.get('description'), 'description'),
        total_amount=template.total_amount() if template else None,
        priority=priority,
        requested_by=actor.id,
        status=ApprovalRequest.STATUS_PENDING,
    )
    session.add(req)
    session.commit()

    chairman = first_chairman(session)
    if chairman:
        _notify(session, req, chairman.id, ApprovalNotification.TYPE_APPROVAL_REQUEST,
                'New Approval Request',
                f'New approval request "{req.title}" from {actor.email} requires your review.')
    else:
        current_app.logger.warning('No CHAIRMAN user found; approval request %s has no reviewer notification', req.id)
    return req


def notification_type_for(status: str) -> str:
    # Anything but APPROVED (UNDER_REVIEW included) carries the rejected label
    if status == ApprovalRequest.STATUS_APPROVED:
        return ApprovalNotification.TYPE_APPROVAL_APPROVED
    return ApprovalNotification.TYPE_APPROVAL_REJECTED


def decide(session: Session, actor: Actor, request_id: int, data: Mapping[str, Any]) -> ApprovalRequest:
    """Record a chairman decision. Already decided requests may be decided again."""
    assert_allowed(actor, 'APPROVAL.DECIDE', 'Only chairman can approve/reject requests')
    status = data.get('status')
    if not isinstance(status, str) or status not in ApprovalRequest.DECISION_STATUSES:
        raise ValidationError('Invalid status', details=f"expected one of {', '.join(ApprovalRequest.DECISION_STATUSES)}")
    comments = optional_str(data.get('comments'), 'comments')
    req = load_request(session, request_id)
    previous = req.status
    req.status = status
    req.reviewed_by = actor.id
    req.reviewed_at = utcnow()
    req.comments = comments
    session.commit()
    current_app.logger.info('Approval request %s %s -> %s by user %s', req.id, previous, status, actor.id)

    message = f'Your approval request "{req.title}" has been {status.lower()}.'
    if comments:
        message += f' Comments: {comments}'
    _notify(session, req, req.requested_by, notification_type_for(status), f'Approval Request {status}', message)
    return req


def _notify(session: Session, req: ApprovalRequest, user_id: int, type_: str, title: str, message: str):
    try:
        session.add(ApprovalNotification(
            approval_request_id=req.id, user_id=user_id, type=type_, title=title, message=message,
        ))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.warning('Notification %s for request %s to user %s not delivered', type_, req.id, user_id, exc_info=True)


# ---------------- Notifications ---------------- #

def unread_notifications(session: Session, actor: Actor):
    return session.execute(
        select(ApprovalNotification)
        .where(ApprovalNotification.user_id == actor.id, ApprovalNotification.is_read.is_(False))
        .order_by(ApprovalNotification.created_at.desc(), ApprovalNotification.id.desc())
    ).scalars().all()


def mark_read(session: Session, actor: Actor, notification_id: int) -> ApprovalNotification:
    notification = session.execute(
        select(ApprovalNotification).where(
            ApprovalNotification.id == notification_id,
            ApprovalNotification.user_id == actor.id,
        )
    ).scalar_one_or_none()
    if not notification:
        raise NotFound('Notification not found')
    notification.is_read = True
    session.commit()
    return notification


def mark_all_read(session: Session, actor: Actor) -> int:
    result = session.execute(
        update(ApprovalNotification)
        .where(ApprovalNotification.user_id == actor.id, ApprovalNotification.is_read.is_(False))
        .values(is_read=True, updated_at=utcnow())
    )
    session.commit()
    return result.rowcount
