"""
Songbook Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the whole suite.
How:   Store and resolver tests run against an in-memory SQLite database
       (aiosqlite, single static connection); API tests drive a fresh app
       through HTTPX's ASGITransport.

Fixture Hierarchy:
    engine ─▶ db_session ─▶ seeded_users ─▶ song_store
    test_app ─▶ test_client, error_client
    mock_db_session (no database at all)
"""

import os

# Settings are read at import time; point them at SQLite before any songbook import.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from songbook.config import Settings
from songbook.database import Base, build_engine
from songbook.models import Collaboration, User
from songbook.services.song_store import SongStore

SQLITE_URL = "sqlite+aiosqlite://"

USERS = [
    {"id": "user-alice", "username": "alice", "fullname": "Alice Liddell"},
    {"id": "user-bob", "username": "bob", "fullname": "Bob Dylan"},
    {"id": "user-carol", "username": "carol", "fullname": "Carol King"},
    {"id": "user-banana", "username": "banana_fan", "fullname": "Banana Fan"},
    {"id": "user-anais", "username": "Anaïs", "fullname": "Anaïs Mitchell"},
]


class FakeClock:
    """Deterministic clock: each call returns the previous reading plus `step`."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


async def insert_users(session: AsyncSession) -> None:
    await session.execute(insert(User), USERS)


async def grant(session: AsyncSession, song_id: str, user_id: str) -> None:
    await session.execute(
        insert(Collaboration).values(
            id=f"collab-{song_id}-{user_id}",
            song_id=song_id,
            user_id=user_id,
        )
    )


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database with every table created and foreign keys enforced."""
    engine = build_engine(Settings(database_url=SQLITE_URL, log_level="WARNING"))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_users(db_session):
    await insert_users(db_session)
    await db_session.commit()
    return USERS


@pytest.fixture
def grant_collaboration(db_session):
    """
    Inserts a collaborations row.

    Usage:
        await grant_collaboration(song_id, "user-bob")
    """
    async def _grant(song_id: str, user_id: str) -> None:
        await grant(db_session, song_id, user_id)

    return _grant


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def song_store(db_session, seeded_users, clock):
    return SongStore(db_session, clock=clock)


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for tests that must control what the driver returns.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# API Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_app():
    """
    An app with its own in-memory database, tables created and users seeded.

    ASGITransport does not send lifespan events, so the engine is disposed here.
    """
    from songbook.main import create_app

    app = create_app(Settings(database_url=SQLITE_URL, log_level="WARNING"))
    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with app.state.session_factory() as session:
        await insert_users(session)
        await session.commit()

    yield app

    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient talking to `test_app`.

    Usage:
        response = await test_client.get("/songs", headers={"X-User-Id": "user-alice"})
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def error_client(test_app):
    """
    Like `test_client`, but unhandled exceptions come back as the 500 response
    the app sends instead of being re-raised into the test.
    """
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    test_app.dependency_overrides.clear()
