from __future__ import annotations
"""Role-based authorization guard.

All role decisions go through this module and the declarative tables in
tender_api.constants.permissions; handlers call the assert_* helpers and never
branch on role strings themselves.
"""
from dataclasses import dataclass
from typing import Optional
from flask_jwt_extended import get_jwt, get_jwt_identity
from tender_api.constants.permissions import (
    ALL_ROLES, OWN_RECORD_ONLY, STATUS_UPDATE_TARGETS, roles_for,
)
from tender_api.errors import Forbidden, Unauthenticated

# Feature flag name (must align with create_app config)
FLAG_ENFORCE_STATUS_GRAPH = 'ORDER_ENFORCE_STATUS_GRAPH'


@dataclass(frozen=True)
class Actor:
    id: int
    email: Optional[str]
    role: str


def current_actor() -> Actor:
    """Resolve the acting user from the verified JWT of the current request."""
    claims = get_jwt()
    ident = get_jwt_identity()
    role = claims.get('role')
    if ident is None or role not in ALL_ROLES:
        raise Unauthenticated('Invalid or expired token')
    return Actor(id=int(ident), email=claims.get('email'), role=role)


def is_allowed(role: str, operation: str) -> bool:
    return role in roles_for(operation)


def assert_allowed(actor: Actor, operation: str, message: str = 'Access denied'):
    if not is_allowed(actor.role, operation):
        raise Forbidden(message, details=f"role {actor.role} may not perform {operation}")


def can_set_status(actor: Actor, target_status: str, owner_user_id: int) -> bool:
    """Generic status update allow-list, including the own-order restriction."""
    if actor.role not in STATUS_UPDATE_TARGETS:
        return False
    if actor.role in OWN_RECORD_ONLY and owner_user_id != actor.id:
        return False
    targets = STATUS_UPDATE_TARGETS[actor.role]
    return targets is None or target_status in targets


def can_delete_order(actor: Actor, owner_user_id: int) -> bool:
    return owner_user_id == actor.id or is_allowed(actor.role, 'ORDER.DELETE_ANY')


def assert_owns_record(actor: Actor, owner_user_id: int, message: str = 'Access denied'):
    if actor.role in OWN_RECORD_ONLY and owner_user_id != actor.id:
        raise Forbidden(message)


def enforce_status_graph_enabled(app_config) -> bool:
    return bool(app_config.get(FLAG_ENFORCE_STATUS_GRAPH, True))
