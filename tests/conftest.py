"""Shared test fixtures.

Provides:
- a throwaway SQLite file database, recreated for every test
- db: a SQLAlchemy session bound to it
- client: TestClient with the app lifespan running (hub, tables)
- make_user / auth_headers helpers
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="helpdesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BOOTSTRAP_ADMIN"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
for _name in ("AD_URL", "AD_BIND_DN", "AD_BIND_PW", "AD_BASE_DN"):
    os.environ[_name] = ""

import pytest
from fastapi.testclient import TestClient

from helpdesk.core.database import Base, SessionLocal, engine
from helpdesk.core.deps import get_directory
from helpdesk.core.directory import DirectoryClient
from helpdesk.core.security import create_access_token, get_password_hash
from helpdesk.main import app
from helpdesk.models.user import User
import helpdesk.models  # noqa: F401


@pytest.fixture(autouse=True)
def database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def unconfigured_directory():
    return DirectoryClient()


@pytest.fixture
def client(unconfigured_directory):
    app.dependency_overrides[get_directory] = lambda: unconfigured_directory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(username, password=None, display_name=None, external=False):
        user = User(
            username=username,
            password_hash=get_password_hash(password) if password else None,
            display_name=display_name or username,
            external=external,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.username)}"}

    return _auth_headers
