"""Shared fixtures: SQLite session, fake identity service, authenticated client."""

import os

# Settings are read at import time; these must exist before `app` is imported.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import get_settings
from app.core.errors import ConflictError
from app.core.identity import get_identity_service
from app.database import get_session
from app.main import app

settings = get_settings()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


# ---------------------------------------------------------------------------
# Identity service double
# ---------------------------------------------------------------------------


class FakeIdentityService:
    """Records create/delete calls instead of talking to Supabase Auth."""

    def __init__(self, fail_delete: bool = False):
        self.users: dict[uuid.UUID, str] = {}
        self.created: list[uuid.UUID] = []
        self.deleted: list[uuid.UUID] = []
        self.fail_delete = fail_delete

    def create_user(self, email: str, password: str, full_name: str) -> uuid.UUID:
        if email in self.users.values():
            raise ConflictError("This email is already registered")
        user_id = uuid.uuid4()
        self.users[user_id] = email
        self.created.append(user_id)
        return user_id

    def delete_user(self, user_id: uuid.UUID) -> None:
        if self.fail_delete:
            raise RuntimeError("identity service unavailable")
        self.users.pop(user_id, None)
        self.deleted.append(user_id)


@pytest.fixture
def identity():
    return FakeIdentityService()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


def make_token(user_id: uuid.UUID, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Supabase-style access token signed with the test secret."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "aud": "authenticated",
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG)


def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def client(session, identity):
    def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_identity_service] = lambda: identity
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
