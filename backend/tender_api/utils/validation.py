from __future__ import annotations
"""Reusable validation helpers for request payloads.

Focuses on enum membership and loose numeric/date coercion so that handlers raise a
consistent ValidationError (400) instead of leaking conversion errors as 500s.
"""
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional
from tender_api.errors import ValidationError


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises ValidationError.
    """
    if new_status not in allowed:
        raise ValidationError(f"{field_name} invalid", details=f"expected one of {', '.join(allowed)}")
    return new_status


def json_object(payload: Any) -> Mapping[str, Any]:
    """Request body as a mapping; a missing or unparsable body counts as empty."""
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise ValidationError('JSON object body required')
    return payload


def require_fields(data: Mapping[str, Any], *names: str, message: Optional[str] = None):
    missing = [n for n in names if not data.get(n)]
    if missing:
        raise ValidationError(message or f"{' and '.join(names)} required", details=f"missing: {', '.join(missing)}")


def optional_str(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value


def optional_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    return result


def loose_int(value: Any, field_name: str, default: int = 0) -> int:
    if value is None or value == '':
        return default
    try:
        result = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if result < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return result


def optional_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        try:
            parsed = datetime.combine(date.fromisoformat(str(value)), datetime.min.time())
        except ValueError:
            raise ValidationError(f"{field_name} must be an ISO date")
    return parsed


__all__ = [
    'validate_status', 'json_object', 'require_fields', 'optional_str', 'optional_decimal', 'loose_int',
    'optional_datetime',
]
