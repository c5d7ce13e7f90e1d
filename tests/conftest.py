"""Pytest fixtures."""

import os

os.environ["DATABASE_URL"] = "sqlite:///./test_fitchallenge.db"
os.environ["SWEEP_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from fitchallenge.core.config import settings
from fitchallenge.core.deps import get_now
from fitchallenge.db.base import Base
from fitchallenge.db.session import build_engine, get_db
from fitchallenge.main import app
from fitchallenge.models import (  # noqa: F401 - register for create_all
    Challenge,
    ChallengeTask,
    Enrollment,
    Profile,
    ProgressRecord,
    RankingEntry,
    RewardClaim,
    RewardTier,
)
from tests.helpers import START

TEST_DATABASE_URL = os.environ["DATABASE_URL"]

engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_db():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(settings, "read_retry_backoff_seconds", 0.0)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


class FrozenClock:
    """Mutable request time for API tests."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(START)


@pytest.fixture
def client(clock):
    """Test client with overridden DB and clock."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
