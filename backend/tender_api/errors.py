from __future__ import annotations
"""HTTP error taxonomy shared by routes and services.

Each class is a Werkzeug HTTPException so it can be raised anywhere inside a
request and is rendered by the application error handler as
{"error": description, "details": details}.
"""
from typing import Optional
from werkzeug import exceptions as wz


class _DetailMixin:
    details: Optional[str] = None

    def __init__(self, description: Optional[str] = None, details: Optional[str] = None):
        super().__init__(description)  # type: ignore[call-arg]
        self.details = details


class ValidationError(_DetailMixin, wz.BadRequest):
    description = 'Invalid request'


class InvalidTransition(_DetailMixin, wz.BadRequest):
    description = 'Invalid status transition'


class Unauthenticated(_DetailMixin, wz.Unauthorized):
    description = 'Unauthorized'


class Forbidden(_DetailMixin, wz.Forbidden):
    description = 'Access denied'


class NotFound(_DetailMixin, wz.NotFound):
    description = 'Not found'


class Conflict(_DetailMixin, wz.Conflict):
    description = 'Conflict'


class InternalError(_DetailMixin, wz.InternalServerError):
    description = 'Internal server error'


__all__ = [
    'ValidationError', 'InvalidTransition', 'Unauthenticated', 'Forbidden',
    'NotFound', 'Conflict', 'InternalError',
]
