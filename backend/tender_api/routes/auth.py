from flask import Blueprint, request
from flask_jwt_extended import create_access_token
from sqlalchemy import select
from tender_api import get_db
from tender_api.constants.permissions import ALL_ROLES, SITE_SUPERVISOR
from tender_api.decorators.auth import require_auth
from tender_api.models.authz import User, SiteSupervisorAssignment
from tender_api.models.project import Project
from tender_api.services.policy import current_actor
from tender_api.errors import Conflict, NotFound, Unauthenticated, ValidationError
from tender_api.utils.validation import json_object, optional_str, require_fields, validate_status

auth_bp = Blueprint('auth', __name__)


def issue_token(user: User) -> str:
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    return create_access_token(identity=str(user.id), additional_claims={'email': user.email, 'role': user.role})


@auth_bp.post('/signup')
def signup():
    data = json_object(request.get_json(silent=True))
    require_fields(data, 'email', 'name', 'role', 'password', message='Email, name, role and password are required')
    for field in ('email', 'name', 'password'):
        optional_str(data[field], field)
    role = validate_status(data['role'], ALL_ROLES, 'role')
    session = get_db()
    if session.execute(select(User).where(User.email == data['email'])).scalar_one_or_none():
        raise Conflict('User already exists')
    project = None
    if role == SITE_SUPERVISOR:
        if not data.get('project_id'):
            raise ValidationError('project_id required for site supervisors')
        try:
            project = session.get(Project, int(data['project_id']))
        except (TypeError, ValueError):
            raise ValidationError('project_id must be an integer')
        if project is None:
            raise NotFound('Project not found')
    user = User(name=data['name'], email=data['email'], role=role, password_hash='')
    user.set_password(data['password'])
    session.add(user)
    session.flush()
    if project is not None:
        session.add(SiteSupervisorAssignment(user_id=user.id, project_id=project.id))
    session.commit()
    return {'access_token': issue_token(user), 'user': _user_json(user)}, 201


@auth_bp.post('/login')
def login():
    data = json_object(request.get_json(silent=True))
    email = data.get('email'); password = data.get('password')
    if not email or not password:
        raise ValidationError('Email and password are required')
    optional_str(email, 'email'); optional_str(password, 'password')
    session = get_db()
    user = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if not user or not user.is_active or not user.verify_password(password):
        raise Unauthenticated('Invalid credentials')
    return {'access_token': issue_token(user), 'user': _user_json(user)}


@auth_bp.get('/me')
@require_auth
def me():
    actor = current_actor()
    user = get_db().get(User, actor.id)
    if not user:
        raise NotFound('User not found')
    return {'user': _user_json(user)}


def _user_json(user: User):
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'role': user.role,
        'project_id': user.assignment.project_id if user.assignment else None,
    }
