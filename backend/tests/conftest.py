import os, sys, pytest
# Ensure the backend directory is on path so 'tender_api' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
import tender_api
from tender_api import create_app, get_db
from tender_api.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import tender_api.models.project  # noqa: F401
import tender_api.models.order  # noqa: F401
import tender_api.models.approval  # noqa: F401
import tender_api.models.audit  # noqa: F401

@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'JWT_SECRET_KEY': 'test-secret-key-with-enough-length-for-hs256',
        'ORDER_ENFORCE_STATUS_GRAPH': True,
    })
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app

@pytest.fixture(autouse=True)
def clean_tables(app_instance):
    yield
    with app_instance.app_context():
        session = get_db()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        tender_api.SessionLocal.remove()

@pytest.fixture()
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance

@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()
