import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient


# Point the app at a throwaway in-memory database before anything imports it.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENVIRONMENT"] = "development"

from app.main import app  # noqa: E402
from app.db.base import Base, engine, SessionLocal  # noqa: E402
from app.auth.models import User, UserSession  # noqa: E402
from app.verses.models import Verse  # noqa: E402
from app.core.clock import utcnow  # noqa: E402


T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    app.state.magic_link_limiter.reset()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_user(db, email: str) -> User:
    user = User(email=email, created_at=utcnow())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_session(db, user: User) -> str:
    token = f"token-{user.id}-{user.email}"
    now = utcnow()
    db.add(UserSession(token=token, user_id=user.id, created_at=now, expires_at=now + timedelta(hours=1)))
    db.commit()
    return token


def add_verse(db, user: User, reference: str = "John 3:16", text: str = "For God so loved the world") -> None:
    db.add(Verse(user_id=user.id, reference=reference, text=text, translation="NIV", status="not_started", created_at=utcnow()))
    db.commit()


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(db):
    return create_user(db, "reader@example.com")


@pytest.fixture
def headers(db, user):
    return auth_headers(create_session(db, user))
