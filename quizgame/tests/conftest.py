"""
Shared fixtures.

Environment is configured before any quizgame module is imported so the
app binds to an in-memory database and a temporary log directory.
"""
import os
import random
import tempfile

os.environ.setdefault("QUIZGAME_DATABASE_URL", "sqlite://")
os.environ.setdefault("QUIZGAME_LOG_DIR", tempfile.mkdtemp(prefix="quizgame-logs-"))
os.environ.setdefault("QUIZGAME_API_KEY", "test-api-key")

import pytest
from datetime import datetime
from unittest.mock import patch
from sqlalchemy.orm import sessionmaker

from quizgame.database import Base, create_db_engine
from quizgame.repositories.storage_repository import InMemoryKeyValueStore, SqlKeyValueStore
from quizgame.services.game_services import build_services


@pytest.fixture
def db_session():
    """Fresh in-memory SQLite session per test"""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def store(db_session):
    return SqlKeyValueStore(db_session)


@pytest.fixture
def memory_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def services(memory_store):
    return build_services(memory_store, rng=random.Random(1234))


@pytest.fixture
def user(services):
    return services.users.register("alice")


@pytest.fixture
def clock():
    """Patched clock; set clock.now.return_value to move time"""
    with patch('quizgame.services.date_service.datetime') as mock_dt:
        mock_dt.now.return_value = datetime(2026, 10, 18, 9, 0, 0)
        mock_dt.side_effect = lambda *args, **kwargs: datetime(*args, **kwargs)
        yield mock_dt
