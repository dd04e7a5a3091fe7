from __future__ import annotations
from decimal import Decimal
from flask import Blueprint, request, jsonify
from sqlalchemy import select
from tender_api import get_db
from tender_api.models.project import Project, OrderTemplate, OrderTemplateItem, project_brief, template_json
from tender_api.decorators.auth import require_auth, require_operation
from tender_api.decorators.audit import audit_log
from tender_api.services.policy import current_actor
from tender_api.errors import NotFound, ValidationError
from tender_api.utils.validation import json_object, optional_decimal, optional_str, require_fields

projects_bp = Blueprint('projects', __name__)


@projects_bp.get('/public')
def list_public_projects():
    """Id/title pairs for the signup form (no token required)."""
    rows = get_db().execute(select(Project).order_by(Project.title.asc())).scalars().all()
    return jsonify([project_brief(p) for p in rows])


@projects_bp.get('')
@require_auth
def list_projects():
    rows = get_db().execute(select(Project).order_by(Project.created_at.desc(), Project.id.desc())).scalars().all()
    return jsonify([_project_json(p) for p in rows])


@projects_bp.post('')
@require_operation('PROJECT.MANAGE')
@audit_log('PROJECT.CREATE', entity='Project', entity_id_key='id', meta_keys=['title'])
def create_project():
    data = json_object(request.get_json(silent=True))
    require_fields(data, 'title')
    session = get_db()
    p = Project(
        title=optional_str(data['title'], 'title'),
        description=optional_str(data.get('description'), 'description'),
        created_by=current_actor().id,
    )
    session.add(p)
    session.commit()
    return _project_json(p), 201


@projects_bp.post('/<int:project_id>/templates')
@require_operation('TEMPLATE.MANAGE')
@audit_log('TEMPLATE.CREATE', entity='OrderTemplate', entity_id_key='id', meta_keys=['title'])
def create_template(project_id: int):
    session = get_db()
    if session.get(Project, project_id) is None:
        raise NotFound('Project not found')
    data = json_object(request.get_json(silent=True))
    require_fields(data, 'title')
    raw_items = data.get('items') or []
    if not isinstance(raw_items, list):
        raise ValidationError('items must be a list')
    template = OrderTemplate(project_id=project_id, title=optional_str(data['title'], 'title'), created_by=current_actor().id)
    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, dict) or not raw.get('item'):
            raise ValidationError(f'items[{idx}].item required')
        quantity = optional_decimal(raw.get('quantity'), f'items[{idx}].quantity') or Decimal('0')
        rate = optional_decimal(raw.get('rate'), f'items[{idx}].rate') or Decimal('0')
        amount = optional_decimal(raw.get('amount'), f'items[{idx}].amount')
        template.items.append(OrderTemplateItem(
            item=optional_str(raw['item'], f'items[{idx}].item'),
            description=optional_str(raw.get('description'), f'items[{idx}].description'),
            quantity=quantity,
            unit=optional_str(raw.get('unit'), f'items[{idx}].unit') or 'units',
            rate=rate,
            amount=amount if amount is not None else quantity * rate,
        ))
    session.add(template)
    session.commit()
    body = template_json(template)
    body['project_id'] = project_id
    return body, 201


def _project_json(p: Project):
    return {
        'id': p.id,
        'title': p.title,
        'description': p.description,
        'created_by': p.created_by,
        'created_at': p.created_at.isoformat() if p.created_at else None,
    }
