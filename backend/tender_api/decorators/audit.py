from __future__ import annotations
"""Audit logging decorator to reduce repetitive add_audit() calls in route handlers.

Usage examples:

@audit_log('ORDER.CREATE', entity='Order', entity_id_key='id', meta_keys=['order_number'])
def create_order():
    ... return _order_json(order), 201

@audit_log('ORDER.DELETE', entity='Order', entity_id_arg='order_id')
def delete_order(order_id): ...

Parameters:
  action: required audit action code (e.g. ORDER.SOURCE)
  entity: optional entity label (Order, ApprovalRequest)
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: name of the path parameter to use for entity_id (fallback if entity_id_key absent,
                 and the only source for bodiless responses such as 204).
  meta_keys: list of keys to project from returned JSON into meta dict (shallow copy).
  diff_keys / pre_fetch: pre_fetch(args, kwargs) returns a snapshot before the handler runs;
                 differing diff_keys are recorded under meta['changes'].

The audit entry is written after the handler returned successfully and is committed separately.
A failure while auditing is logged and never changes the response.
"""

from functools import wraps
from typing import Any, Callable, Iterable, Optional, Dict

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from tender_api.services.audit import add_audit
from tender_api import get_db


def _extract_payload(rv: Any):
    """Return the JSON-able dict of a view return value, if any."""
    if isinstance(rv, tuple) and rv:
        return rv[0]
    return rv


def _build_meta(data: Any, meta_keys, diff_keys, before_snapshot) -> Optional[Dict[str, Any]]:
    if not isinstance(data, dict):
        return None
    meta = {k: data.get(k) for k in (meta_keys or []) if k in data} or None
    if diff_keys and isinstance(before_snapshot, dict):
        changes = {}
        for k in diff_keys:
            if k in before_snapshot and k in data and before_snapshot.get(k) != data.get(k):
                changes[k] = {'before': before_snapshot.get(k), 'after': data.get(k)}
        if changes:
            meta = meta or {}
            meta['changes'] = changes
    return meta


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before_snapshot = pre_fetch(args, kwargs) if (diff_keys and pre_fetch) else None
            rv = fn(*args, **kwargs)
            data = _extract_payload(rv)
            entity_id = None
            if entity_id_key and isinstance(data, dict) and entity_id_key in data:
                entity_id = data.get(entity_id_key)
            elif entity_id_arg and entity_id_arg in kwargs:
                entity_id = kwargs.get(entity_id_arg)
            session = get_db()
            try:
                add_audit(action, entity, entity_id, _build_meta(data, meta_keys, diff_keys, before_snapshot))
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                current_app.logger.warning('Audit write failed for %s %s', action, entity_id, exc_info=True)
            return rv
        return wrapper
    return outer
