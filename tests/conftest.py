import os

os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite://")
os.environ["TELEGRAM_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest

from app.config import get_settings
from app.db import Base, SessionLocal, engine
import app.models  # noqa: F401

from tests.fixtures.fake_adapter import FakeAdapter
from tests.fixtures.participant_fixtures import (  # noqa: F401
    chatting_pair,
    make_participant,
)


@pytest.fixture(scope="function")
def db():
    """Fresh schema per test on the shared in-memory SQLite connection."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def adapter():
    return FakeAdapter()
