"""
Songbook Backend: Database Engine & Session Management
======================================================

What:  Async SQLAlchemy engine construction, session factory, declarative Base
       and the per-request session dependency.
How:   `build_engine()` turns Settings into a pooled async engine. The
       application factory stores the engine and its session factory on
       `app.state`; `get_db_session()` opens one session per request from there,
       commits on success and rolls back on error.
Who:   The application factory, FastAPI dependencies, Alembic and tests.

Connection Pooling Strategy:
    PostgreSQL (asyncpg):
        pool_size / max_overflow from Settings, pool_pre_ping on,
        pool_recycle=3600 so long-lived connections are replaced hourly.
    SQLite (aiosqlite):
        StaticPool, a single shared connection. An in-memory database only
        exists for the lifetime of its connection, so tests need all sessions
        to share one. SQLite ignores foreign keys unless every connection
        turns them on, so `build_engine` issues `PRAGMA foreign_keys=ON` on
        connect.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from songbook.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers on this metadata, which Alembic reads for
    autogenerate and tests use for `create_all`.
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine (and therefore the connection pool) for `settings`.

    Creating the engine does not open a connection; the first query does.
    """
    echo = settings.log_level == "DEBUG"

    if settings.is_sqlite:
        engine = create_async_engine(
            settings.database_url,
            poolclass=StaticPool,
            echo=echo,
        )
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps loaded attributes readable after the request
    transaction commits.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Opens a session from the factory stored on `app.state`
        2. Yields it to the route's services
        3. On success: commits the transaction
        4. On error: rolls back and re-raises so the exception handlers respond
        5. Always: closes the session (returns the connection to the pool)
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: AsyncEngine) -> None:
    """Closes every pooled connection. Called from the application lifespan on shutdown."""
    await engine.dispose()
