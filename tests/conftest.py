"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, build_engine, get_db
from app.main import app
from app.models import User
from app.services.webhook_cache import WebhookIdCache, get_webhook_cache


class ClockedRedis:
    """Redis stand-in with a controllable clock for expiry tests."""

    def __init__(self):
        self.now = 0.0
        self._store = {}

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def set(self, key, value, ex=None):
        expires_at = self.now + ex if ex is not None else None
        self._store[key] = (value, expires_at)
        return True

    def get(self, key):
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.now >= expires_at:
            del self._store[key]
            return None
        return value

    def delete(self, *keys):
        return sum(1 for key in keys if self._store.pop(key, None) is not None)


@pytest.fixture
def test_db():
    """Create a test database for testing."""
    # In-memory SQLite shared across threads
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        try:
            db = TestingSessionLocal()
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    yield TestingSessionLocal

    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.pop(get_db, None)
    engine.dispose()


@pytest.fixture
def db_session(test_db):
    session = test_db()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def cache(redis_client):
    """Webhook id cache backed by fakeredis, also injected into the app."""
    webhook_cache = WebhookIdCache(redis_client, ttl_seconds=3600)
    app.dependency_overrides[get_webhook_cache] = lambda: webhook_cache
    yield webhook_cache
    app.dependency_overrides.pop(get_webhook_cache, None)


@pytest.fixture
def client(test_db, cache):
    return TestClient(app)


@pytest.fixture
def user(db_session):
    user = User(email="owner@example.com", name="Owner")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_headers(user):
    return {"X-User-Id": user.id}


@pytest.fixture
def clocked_redis():
    return ClockedRedis()
