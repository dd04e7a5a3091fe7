#!/usr/bin/env python
"""Idempotent seed script for a demo tender workspace.

Creates one user per role, a project, the site supervisor's project assignment and an
itemized order template.

Usage:
    python backend/scripts/seed_demo.py               # seed normally
    python backend/scripts/seed_demo.py --show-users  # print seeded users after ensuring seed
    python backend/scripts/seed_demo.py --dry-run     # run logic then rollback (no DB changes)
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from decimal import Decimal
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError

# Allow running from a source checkout without installing the package
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tender_api import create_app, get_db  # type: ignore
from tender_api.constants.permissions import ALL_ROLES, SITE_SUPERVISOR
from tender_api.models.authz import Base, User, SiteSupervisorAssignment
from tender_api.models.project import Project, OrderTemplate, OrderTemplateItem
import tender_api.models.order  # noqa: F401
import tender_api.models.approval  # noqa: F401
import tender_api.models.audit  # noqa: F401

DEMO_PROJECT = 'Riverside Residences Phase 1'
DEMO_TEMPLATE = 'Foundation materials'
DEMO_TEMPLATE_ITEMS = [
    ('Cement OPC 53', 'bags', Decimal('400'), Decimal('6.50')),
    ('TMT bar 12mm', 'tonnes', Decimal('12'), Decimal('720.00')),
    ('River sand', 'm3', Decimal('60'), Decimal('28.00')),
]


def ensure_users(session, password: str):
    created = 0
    users = {}
    for role in ALL_ROLES:
        email = f"{role.lower().replace('_', '.')}@example.com"
        user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if not user:
            user = User(name=role.replace('_', ' ').title(), email=email, role=role, password_hash='')
            user.set_password(password)
            session.add(user)
            created += 1
        users[role] = user
    session.flush()
    return users, created


def ensure_project(session, chairman: User):
    project = session.execute(select(Project).where(Project.title == DEMO_PROJECT)).scalar_one_or_none()
    if not project:
        project = Project(title=DEMO_PROJECT, description='Demo project seeded for local development', created_by=chairman.id)
        session.add(project)
        session.flush()
    return project


def ensure_assignment(session, supervisor: User, project: Project):
    existing = session.execute(
        select(SiteSupervisorAssignment).where(SiteSupervisorAssignment.user_id == supervisor.id)
    ).scalar_one_or_none()
    if existing:
        if existing.project_id != project.id:
            print(f"[WARN] {supervisor.email} already assigned to project {existing.project_id}; leaving as is")
        return existing
    assignment = SiteSupervisorAssignment(user_id=supervisor.id, project_id=project.id)
    session.add(assignment)
    return assignment


def ensure_template(session, project: Project, author: User):
    template = session.execute(
        select(OrderTemplate).where(OrderTemplate.project_id == project.id, OrderTemplate.title == DEMO_TEMPLATE)
    ).scalar_one_or_none()
    if template:
        return template
    template = OrderTemplate(project_id=project.id, title=DEMO_TEMPLATE, created_by=author.id)
    for item, unit, qty, rate in DEMO_TEMPLATE_ITEMS:
        template.items.append(OrderTemplateItem(item=item, unit=unit, quantity=qty, rate=rate, amount=qty * rate))
    session.add(template)
    return template


def print_users(users):
    name_w = max(len(u.email) for u in users.values())
    print(f"{'Email'.ljust(name_w)} | Role")
    print('-' * (name_w + 24))
    for role, user in users.items():
        print(f"{user.email.ljust(name_w)} | {role}")


def parse_args():
    p = argparse.ArgumentParser(
        description="Seed demo users, project and order template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_demo.py\n  dry run: seed_demo.py --dry-run\n  show users: seed_demo.py --show-users\n""")
    )
    p.add_argument('--show-users', action='store_true', help='Print seeded users after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--password', default=os.getenv('SEED_DEMO_PASSWORD', 'ChangeMe123!'), help='Password for newly created users')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            # Ensure tables exist (lightweight fallback if migrations not run yet)
            session.execute(text('SELECT 1 FROM users LIMIT 1'))
        except SQLAlchemyError:
            session.rollback()
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

        users, created_u = ensure_users(session, args.password)
        project = ensure_project(session, users['CHAIRMAN'])
        ensure_assignment(session, users[SITE_SUPERVISOR], project)
        ensure_template(session, project, users['PROCUREMENT'])
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Users would create: {created_u}")
        else:
            session.commit()
            print(f"[DONE] Users created: {created_u}, project: {project.title}")
        if args.show_users:
            print_users(users)


if __name__ == '__main__':
    main()
