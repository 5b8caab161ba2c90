"""Shared pytest fixtures for the ad targeting service tests.

Fixture summary
---------------
test_database_url  — DSN of the per-test database (SQLite file by default).
test_engine        — AsyncEngine with the schema created for one test.
session_factory    — async_sessionmaker bound to ``test_engine``.
client             — httpx.AsyncClient against the FastAPI app, wired to
                     ``session_factory``.
count_rows         — helper returning the row count of a mapped table.

Integration tests run against a fresh SQLite database (via ``aiosqlite``)
in the test's temporary directory.  Set ``TEST_DATABASE_URL`` to run them
against PostgreSQL instead; the tables are then dropped after each test.
Unit tests mock all storage and need no database.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
import sqlalchemy as sa
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set required env vars before any application modules are imported so that
# Settings() does not raise a ValidationError during collection.

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "DATABASE_URL": "sqlite+aiosqlite:///./ad_targeting_test.db",
    "LOG_LEVEL": "INFO",
    "METRICS_ENABLED": "true",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from ad_targeting.api.main import app  # noqa: E402
from ad_targeting.config.settings import get_settings  # noqa: E402
from ad_targeting.core.database import Base, build_engine, build_session_factory  # noqa: E402

# Clear the lru_cache so Settings() re-reads from the patched environment.
get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Test database engine and session factory
# ---------------------------------------------------------------------------


@pytest.fixture
def test_database_url(tmp_path: Path) -> str:
    """Return the DSN for the current test's database."""
    return os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'ad_targeting.db'}",
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ARG001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest_asyncio.fixture
async def test_engine(test_database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine on the current test's event loop with a fresh schema.

    SQLite only enforces foreign keys when asked to, once per connection.

    Yields:
        AsyncEngine with all tables created.
    """
    engine = build_engine(test_database_url, pool_size=2, max_overflow=2)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return the application's session factory bound to the test engine."""
    return build_session_factory(test_engine)


@pytest.fixture
def count_rows(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[type], Awaitable[int]]:
    """Return a coroutine function counting the rows of a mapped class."""

    async def _count(model: type) -> int:
        async with session_factory() as session:
            return await session.scalar(sa.select(sa.func.count()).select_from(model))

    return _count


# ---------------------------------------------------------------------------
# FastAPI test client
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx.AsyncClient against the FastAPI app.

    httpx's ASGITransport does not run startup events, so the session
    factory the startup handler would create is placed on ``app.state``
    directly.

    Yields:
        :class:`httpx.AsyncClient` configured for the test app.
    """
    app.state.session_factory = session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
