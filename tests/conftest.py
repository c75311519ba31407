"""Pytest configuration and shared fixtures."""

import asyncio
import os
from typing import Generator, List

# Keep the module-level engine off the working directory
os.environ.setdefault("SOULLINK_DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from soullink_sync.data.game_versions import get_game_version
from soullink_sync.domain.factory import create_tracker_document
from soullink_sync.domain.models import TrackerDocument
from soullink_sync.remote.memory_impl import MemoryDocumentStore
from soullink_sync.store.document_store import LocalDocumentStore
from soullink_sync.store.retry import RetryPolicy


async def _settle(rounds: int = 10) -> None:
    """Let scheduled callbacks and writer tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class RecordingSleep:
    """Replacement for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def two_player_doc() -> TrackerDocument:
    """Gen 5 tracker for two players with ten level caps."""
    return create_tracker_document(get_game_version("gen5_sw"), ["Ash", "Misty"], now=1_700_000_000_000)


@pytest.fixture
def three_player_doc() -> TrackerDocument:
    return create_tracker_document(get_game_version("gen4_hgss"), ["Ash", "Misty", "Brock"], now=0)


@pytest.fixture
def local_store() -> LocalDocumentStore:
    return LocalDocumentStore()


@pytest.fixture
def memory_remote() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fast_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay=0.5, max_delay=4.0, jitter_ratio=0.0)


@pytest.fixture
def test_db():
    """Session factory over a private in-memory database."""
    from soullink_sync.db.database import init_db

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield TestingSessionLocal

    engine.dispose()


@pytest.fixture
def app(test_db):
    """FastAPI app with the database dependency pointed at ``test_db``."""
    from soullink_sync.main import app
    from soullink_sync.db.database import get_db

    def override_get_db():
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    # Clear overrides to avoid affecting other tests
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def settle():
    """Awaitable that lets scheduled callbacks and writer tasks run."""
    return _settle
