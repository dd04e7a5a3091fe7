from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from datetime import timedelta
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(days=int(os.getenv('JWT_EXPIRES_DAYS', '7')))
    app.config['ORDER_ENFORCE_STATUS_GRAPH'] = _env_flag('ORDER_ENFORCE_STATUS_GRAPH', True)
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)
    _register_jwt_callbacks()

    from .routes.auth import auth_bp
    from .routes.projects import projects_bp
    from .routes.orders import orders_bp
    from .routes.approvals import approvals_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(projects_bp, url_prefix='/projects')
    app.register_blueprint(orders_bp, url_prefix='/orders')
    app.register_blueprint(approvals_bp, url_prefix='/approvals')

    # One session per request; the identity map must not leak between requests
    @app.teardown_request
    def remove_session(exc=None):
        SessionLocal.remove()

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing {"error": ..., "details"?: ...}
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {'error': e.description}
            details = getattr(e, 'details', None)
            if details:
                payload['details'] = details
            return payload, e.code
        app.logger.exception('Unhandled exception')
        SessionLocal.rollback()
        return {'error': 'Internal server error'}, 500

    return app


def _register_jwt_callbacks():
    # 401 bodies use the same {"error", "details"} shape
    @jwt.unauthorized_loader
    def _missing_token(reason):
        return {'error': 'Unauthorized', 'details': reason}, 401

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return {'error': 'Invalid or expired token', 'details': reason}, 401

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return {'error': 'Invalid or expired token'}, 401


def get_db():
    return SessionLocal()
