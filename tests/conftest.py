"""
Shared test fixtures for all test modules.

Provides:
- Test environment setup (TESTING=true, secrets, in-memory database URL)
- session_factory / db_session: in-memory SQLite shared by the app and the test
- client: TestClient with get_db overridden
- make_user / auth_headers / create_problem helpers
"""

import os
import uuid

# =============================================================================
# Test Environment Configuration
# =============================================================================

# Must be set before the app (and its settings) are imported
os.environ['TESTING'] = 'true'
os.environ['JWT_SECRET'] = os.environ.get('JWT_SECRET', 'test-jwt-secret-for-testing-only')
os.environ['JWT_REFRESH_SECRET'] = os.environ.get('JWT_REFRESH_SECRET', 'test-refresh-secret-for-testing-only')
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['CODECREW_ENVIRONMENT'] = 'development'

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from codecrew.auth import create_access_token
from codecrew.database import get_db
from codecrew.db_models import Base, DBUser
from codecrew.main import app

# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def engine():
    """
    Fresh in-memory SQLite database per test.

    StaticPool keeps a single connection so every session sees the same data.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Direct database access for arranging data and checking results."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """Test client whose requests use the test database."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

# =============================================================================
# Data Helpers
# =============================================================================

@pytest.fixture
def make_user(db_session):
    """Create a user directly in the database."""
    def _make_user(name="Test User", email=None, password="secret123", roles=None):
        user = DBUser(
            name=name,
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            roles=roles or ["user"],
            oauth_providers=[],
            interests=[],
        )
        user.password = password
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    """Bearer header for a user."""
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers


@pytest.fixture
def create_problem(client, auth_headers):
    """Create a problem through the API and return its JSON."""
    def _create_problem(user, **overrides):
        payload = {
            "title": "Null pointer in list comprehension",
            "descriptionMarkdown": "Crashes when the list is empty.",
            "severity": "HIGH",
            "difficulty": "BEGINNER",
            "tags": ["python"],
        }
        payload.update(overrides)
        response = client.post("/api/problems", json=payload, headers=auth_headers(user))
        assert response.status_code == 201, response.text
        return response.json()

    return _create_problem
