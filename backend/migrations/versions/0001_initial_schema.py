"""initial tender schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        *_timestamps()
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('projects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id')),
        *_timestamps()
    )
    op.create_index('ix_projects_title', 'projects', ['title'])

    op.create_table('site_supervisor_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_site_supervisor_assignments_project_id', 'site_supervisor_assignments', ['project_id'])

    op.create_table('order_templates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_order_templates_project_id', 'order_templates', ['project_id'])

    op.create_table('order_template_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('order_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('quantity', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='units'),
        sa.Column('rate', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False, server_default='0'),
    )
    op.create_index('ix_order_template_items_template_id', 'order_template_items', ['template_id'])

    op.create_table('orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='PENDING_PROCUREMENT'),
        sa.Column('required_date', sa.DateTime(timezone=True)),
        sa.Column('total_amount', sa.Numeric(15, 2)),
        sa.Column('remarks', sa.Text()),
        sa.Column('requested_by_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('procurement_approved_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('procurement_approved_at', sa.DateTime(timezone=True)),
        sa.Column('chairman_approved_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('chairman_approved_at', sa.DateTime(timezone=True)),
        sa.Column('procurement_sourced_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('procurement_sourced_at', sa.DateTime(timezone=True)),
        *_timestamps()
    )
    # unique constraint handled via batch for sqlite
    with op.batch_alter_table('orders') as batch_op:
        batch_op.create_unique_constraint('uq_orders_order_number', ['order_number'])
    op.create_index('ix_orders_project_id', 'orders', ['project_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_requested_by_id', 'orders', ['requested_by_id'])

    op.create_table('order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_code', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('unit', sa.String(length=32), nullable=False, server_default='units'),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(15, 2)),
        sa.Column('total_price', sa.Numeric(15, 2)),
        sa.Column('remarks', sa.Text()),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table('deliveries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('supplier_name', sa.String(length=255)),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='PENDING'),
        sa.Column('delivered_at', sa.DateTime(timezone=True)),
        sa.Column('remarks', sa.Text()),
    )
    op.create_index('ix_deliveries_order_id', 'deliveries', ['order_id'])

    op.create_table('approval_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_template_id', sa.Integer(), sa.ForeignKey('order_templates.id', ondelete='CASCADE')),
        sa.Column('project_id', sa.Integer(), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('total_amount', sa.Numeric(15, 2)),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='PENDING'),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='MEDIUM'),
        sa.Column('requested_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('reviewed_by', sa.Integer(), sa.ForeignKey('users.id')),
        sa.Column('reviewed_at', sa.DateTime(timezone=True)),
        sa.Column('comments', sa.Text()),
        *_timestamps()
    )
    op.create_index('ix_approval_requests_project_id', 'approval_requests', ['project_id'])
    op.create_index('ix_approval_requests_status', 'approval_requests', ['status'])
    op.create_index('ix_approval_requests_priority', 'approval_requests', ['priority'])
    op.create_index('ix_approval_requests_requested_by', 'approval_requests', ['requested_by'])

    op.create_table('approval_notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('approval_request_id', sa.Integer(), sa.ForeignKey('approval_requests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        *_timestamps()
    )
    op.create_index('ix_approval_notifications_approval_request_id', 'approval_notifications', ['approval_request_id'])
    op.create_index('ix_approval_notifications_user_id', 'approval_notifications', ['user_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('actor_role', sa.String(length=32)),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64)),
        sa.Column('entity_id', sa.String(length=64)),
        sa.Column('meta', sa.JSON()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())
    )
    op.create_index('ix_audit_logs_actor_user_id', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade():
    for tbl in ['audit_logs', 'approval_notifications', 'approval_requests', 'deliveries', 'order_items', 'orders',
                'order_template_items', 'order_templates', 'site_supervisor_assignments', 'projects', 'users']:
        op.drop_table(tbl)
