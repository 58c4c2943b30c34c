"""Database configuration and session management."""

import threading
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from subway.core.config import settings
from subway.core.utils import is_sqlite_url

# Module-level globals for lazy initialization (fork-safety)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

# Thread locks for thread-safe singleton initialization
_engine_lock = threading.Lock()
_session_factory_lock = threading.Lock()


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """
    Turn on foreign key enforcement for every new SQLite connection.

    SQLite ignores REFERENCES clauses unless ``PRAGMA foreign_keys`` is set
    per connection, which would let sections point at deleted stations.

    Args:
        engine: Async engine bound to a SQLite database
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:  # noqa: ANN401
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine() -> AsyncEngine:
    """
    Get or create database engine (lazy initialization).

    Lazy initialization prevents forked worker processes from inheriting
    the parent's engine with asyncio primitives bound to the parent's event loop.

    This matters when running uvicorn with --workers > 1, which forks worker
    processes after the module is imported.

    Thread-safe implementation using double-checked locking ensures only one
    engine instance is created even with concurrent access.

    Returns:
        AsyncEngine: SQLAlchemy async engine
    """
    global _engine  # noqa: PLW0603
    if _engine is None:
        with _engine_lock:
            if _engine is None:  # Double-checked locking
                sqlite = is_sqlite_url(settings.DATABASE_URL)
                if settings.DEBUG or sqlite:
                    # NullPool in DEBUG mode avoids event loop issues with pytest-asyncio;
                    # SQLite gains nothing from pooling
                    # NullPool doesn't accept pool_size/max_overflow parameters
                    _engine = create_async_engine(
                        settings.DATABASE_URL,
                        echo=settings.DATABASE_ECHO,
                        poolclass=NullPool,
                    )
                else:
                    # Connection pooling in production
                    _engine = create_async_engine(
                        settings.DATABASE_URL,
                        echo=settings.DATABASE_ECHO,
                        pool_size=settings.DATABASE_POOL_SIZE,
                        max_overflow=settings.DATABASE_MAX_OVERFLOW,
                    )
                # SQLite ignores foreign keys unless every connection opts in
                if sqlite:
                    enable_sqlite_foreign_keys(_engine)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get or create session factory (lazy initialization).

    Thread-safe implementation using double-checked locking ensures only one
    session factory instance is created even with concurrent access.

    Returns:
        async_sessionmaker[AsyncSession]: SQLAlchemy async session factory
    """
    global _session_factory  # noqa: PLW0603
    if _session_factory is None:
        with _session_factory_lock:
            if _session_factory is None:  # Double-checked locking
                _session_factory = async_sessionmaker(
                    get_engine(),
                    class_=AsyncSession,
                    expire_on_commit=False,
                    autoflush=False,
                )
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession]:
    """
    Dependency for getting async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()
