"""Pytest configuration and fixtures."""

import os

# Set test settings BEFORE any subway imports
# This must be done before subway.core.config loads settings
os.environ["DEBUG"] = "true"
os.environ["OTEL_ENABLED"] = "false"
os.environ["SECRET_DATABASE_URL"] = "sqlite+aiosqlite://"

from collections.abc import AsyncGenerator
from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from subway.core.database import enable_sqlite_foreign_keys, get_db
from subway.main import app
from subway.models import Base

from tests.helpers.network_helpers import TestNetwork, build_network

pytest_plugins = ["tests.fixtures.otel"]


@dataclass
class TestDatabaseContext:
    """
    Structured container for test database resources.

    Contains the async engine and session factory for use across test fixtures.
    """

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]


@pytest.fixture
async def db_engine() -> AsyncGenerator[TestDatabaseContext]:
    """
    Create a private in-memory SQLite database for one test.

    StaticPool keeps the single in-memory connection alive so every session
    sees the same schema. Foreign keys are enforced as in production.

    Yields:
        TestDatabaseContext: Engine and session factory
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield TestDatabaseContext(engine=engine, session_factory=session_factory)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: TestDatabaseContext) -> AsyncGenerator[AsyncSession]:
    """
    Database session bound to the per-test database.

    Yields:
        Async SQLAlchemy session
    """
    async with db_engine.session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """
    FastAPI asynchronous HTTP client using the test database session.

    Yields:
        Async HTTP client with ASGI transport
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def network(db_session: AsyncSession) -> TestNetwork:
    """
    Small persisted network: stations A-E and line "Green" with path A -> B -> C.

    Distances: A->B 5, B->C 7. Stations D and E exist but are on no line.
    """
    return await build_network(db_session)
