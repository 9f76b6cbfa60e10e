"""Integration fixtures against a real PostgreSQL database.

Migrations run through Alembic before each test and every table is truncated
afterwards. Tests are skipped when the database is unreachable.
"""

import socket
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.escrow.core import db
from src.escrow.core.config import get_settings
from src.escrow.core.db import run_migrations_async

TABLES = (
    "chain_events",
    "notifications",
    "timeline_entries",
    "payments",
    "projects",
    "mfa_codes",
    "users",
)


def _database_reachable() -> bool:
    url = make_url(get_settings().database_url)
    try:
        with socket.create_connection((url.host or "localhost", url.port or 5432), timeout=1):
            return True
    except OSError:
        return False


@pytest.fixture(autouse=True)
def _require_database() -> None:
    if not _database_reachable():
        pytest.skip("PostgreSQL not reachable")


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine with the schema migrated to head."""
    await db.dispose_engine()

    test_engine = create_async_engine(get_settings().database_url, poolclass=NullPool)
    await run_migrations_async()

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.execute(text(f"TRUNCATE {', '.join(TABLES)} CASCADE"))
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session that never autocommits; tests commit explicitly."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session

