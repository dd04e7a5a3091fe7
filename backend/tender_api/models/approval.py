from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, ForeignKey, DateTime, Numeric, text
from typing import Optional

from .authz import Base, utcnow


class ApprovalRequest(Base):
    __tablename__ = 'approval_requests'
    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_UNDER_REVIEW = 'UNDER_REVIEW'
    ALL_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, STATUS_UNDER_REVIEW)
    DECISION_STATUSES = (STATUS_APPROVED, STATUS_REJECTED, STATUS_UNDER_REVIEW)

    PRIORITY_LOW = 'LOW'
    PRIORITY_MEDIUM = 'MEDIUM'
    PRIORITY_HIGH = 'HIGH'
    PRIORITY_URGENT = 'URGENT'
    ALL_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH, PRIORITY_URGENT)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_template_id: Mapped[Optional[int]] = mapped_column(ForeignKey('order_templates.id', ondelete='CASCADE'))
    project_id: Mapped[int] = mapped_column(ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_PENDING, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=PRIORITY_MEDIUM, index=True)
    requested_by: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=text('CURRENT_TIMESTAMP'))
    reviewed_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'))
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    comments: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=text('CURRENT_TIMESTAMP'))

    project = relationship('Project')
    order_template = relationship('OrderTemplate')
    requested_by_user = relationship('User', foreign_keys=[requested_by])
    reviewed_by_user = relationship('User', foreign_keys=[reviewed_by])
    notifications = relationship('ApprovalNotification', back_populates='approval_request', cascade='all, delete-orphan')


class ApprovalNotification(Base):
    __tablename__ = 'approval_notifications'
    TYPE_APPROVAL_REQUEST = 'APPROVAL_REQUEST'
    TYPE_APPROVAL_APPROVED = 'APPROVAL_APPROVED'
    TYPE_APPROVAL_REJECTED = 'APPROVAL_REJECTED'

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    approval_request_id: Mapped[int] = mapped_column(ForeignKey('approval_requests.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=text('CURRENT_TIMESTAMP'))

    approval_request = relationship('ApprovalRequest', back_populates='notifications')
