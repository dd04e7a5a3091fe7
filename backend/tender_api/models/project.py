from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, ForeignKey, DateTime, Numeric, text
from typing import Optional

from .authz import Base, utcnow


class Project(Base):
    __tablename__ = 'projects'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=text('CURRENT_TIMESTAMP'))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=text('CURRENT_TIMESTAMP'))


class OrderTemplate(Base):
    """Itemized proposal that approval requests are raised against."""
    __tablename__ = 'order_templates'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id'), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=text('CURRENT_TIMESTAMP'))
    items = relationship('OrderTemplateItem', back_populates='template', cascade='all, delete-orphan', order_by='OrderTemplateItem.id')

    def total_amount(self) -> Decimal:
        return sum((Decimal(i.amount or 0) for i in self.items), Decimal('0'))


class OrderTemplateItem(Base):
    __tablename__ = 'order_template_items'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    template_id: Mapped[int] = mapped_column(ForeignKey('order_templates.id', ondelete='CASCADE'), nullable=False, index=True)
    item: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    quantity: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, default='units')
    rate: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=0)
    template = relationship('OrderTemplate', back_populates='items')


def project_brief(project: Optional[Project]):
    if project is None:
        return None
    return {'id': project.id, 'title': project.title}


def money(value) -> Optional[str]:
    if value is None:
        return None
    return str(Decimal(value).quantize(Decimal('0.01')))


def template_json(template: Optional[OrderTemplate]):
    if template is None:
        return None
    return {
        'id': template.id,
        'title': template.title,
        'items': [
            {
                'item': i.item,
                'description': i.description,
                'quantity': money(i.quantity),
                'unit': i.unit,
                'rate': money(i.rate),
                'amount': money(i.amount),
            }
            for i in template.items
        ],
    }
