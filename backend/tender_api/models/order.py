from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, ForeignKey, DateTime, Numeric, text
from typing import Optional

from .authz import Base, utcnow


class Order(Base):
    __tablename__ = 'orders'
    # Lifecycle status constants
    STATUS_PENDING_PROCUREMENT = 'PENDING_PROCUREMENT'
    STATUS_PENDING_CHAIRMAN = 'PENDING_CHAIRMAN'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_SOURCING = 'SOURCING'
    STATUS_SOURCED = 'SOURCED'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    ALL_STATUSES = (
        STATUS_PENDING_PROCUREMENT,
        STATUS_PENDING_CHAIRMAN,
        STATUS_APPROVED,
        STATUS_REJECTED,
        STATUS_SOURCING,
        STATUS_SOURCED,
        STATUS_IN_PROGRESS,
        STATUS_COMPLETED,
        STATUS_CANCELLED,
    )
    PENDING_STATUSES = (STATUS_PENDING_PROCUREMENT, STATUS_PENDING_CHAIRMAN)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default=STATUS_PENDING_PROCUREMENT, index=True)
    required_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    remarks: Mapped[Optional[str]] = mapped_column(Text)
    requested_by_id: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False, index=True)
    # Stamp pairs: always written together by the workflow service
    procurement_approved_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'))
    procurement_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    chairman_approved_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'))
    chairman_approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    procurement_sourced_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'))
    procurement_sourced_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=text('CURRENT_TIMESTAMP'))

    project = relationship('Project')
    requested_by = relationship('User', foreign_keys=[requested_by_id])
    procurement_approver = relationship('User', foreign_keys=[procurement_approved_by])
    chairman_approver = relationship('User', foreign_keys=[chairman_approved_by])
    procurement_sourcer = relationship('User', foreign_keys=[procurement_sourced_by])
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan', order_by='OrderItem.id')
    deliveries = relationship('Delivery', back_populates='order', cascade='all, delete-orphan', order_by='Delivery.id')


class OrderItem(Base):
    __tablename__ = 'order_items'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    item_code: Mapped[str] = mapped_column(String(64), nullable=False, default='')
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default='units')
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    total_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(15, 2))
    remarks: Mapped[Optional[str]] = mapped_column(Text)
    order = relationship('Order', back_populates='items')


class Delivery(Base):
    __tablename__ = 'deliveries'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    supplier_name: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(32), nullable=False, default='PENDING')
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    remarks: Mapped[Optional[str]] = mapped_column(Text)
    order = relationship('Order', back_populates='deliveries')
