# backend/tests/conftest.py
"""
Pytest configuration for roomchat.

Settings are read at import time, so the environment is prepared BEFORE
any roomchat import: a fixed signing secret, an in-memory SQLite store
(shared through a static pool), and a known origin allow-list.
"""

import os
import sys

# CRITICAL: Set test configuration BEFORE any app imports!
os.environ["SECRET_KEY"] = "roomchat-test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"
os.environ["CLIENT_URL"] = "https://chat.example.com"
os.environ["IS_TESTING"] = "true"

# Add the backend directory to Python path so imports work
backend_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if backend_dir not in sys.path:
    sys.path.insert(0, backend_dir)

from types import SimpleNamespace
from typing import Callable

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from roomchat.auth import create_access_token, get_password_hash
from roomchat.database import Base, SessionLocal, engine
from roomchat.main import create_app
from roomchat.models.user import User

TEST_PASSWORD = "TestPassword123!"

# Hashing once keeps user fixtures fast
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def app(db: Session):
    return create_app()


@pytest.fixture
def client(app):
    """
    TestClient entered as a context manager so the lifespan runs and every
    WebSocket session shares one event loop with the broadcast core.
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def test_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def make_user(db: Session) -> Callable[..., SimpleNamespace]:
    """Factory that inserts a user and returns its id, token and auth headers."""

    def _make_user(username: str, email: str | None = None) -> SimpleNamespace:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            hashed_password=_TEST_PASSWORD_HASH,
        )
        db.add(user)
        db.flush()
        user_id, user_email = user.id, user.email
        db.commit()

        token = create_access_token(user_id)
        return SimpleNamespace(
            id=user_id,
            username=username,
            email=user_email,
            token=token,
            headers={"Authorization": f"Bearer {token}"},
        )

    return _make_user


@pytest.fixture
def alice(make_user) -> SimpleNamespace:
    return make_user("alice")


@pytest.fixture
def bob(make_user) -> SimpleNamespace:
    return make_user("bob")


@pytest.fixture
def carol(make_user) -> SimpleNamespace:
    return make_user("carol")
