"""
Pytest fixtures for breakroom tests.

Most tests patch the query functions and hand the coordinator a fake
connection. Tests marked with the db_conn fixture run against a real
PostgreSQL and are skipped when DATABASE_URL is not set.
"""

import importlib
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

# Modules that open connections through breakroom.database
_DB_MODULES = [
    "breakroom.participants",
    "breakroom.remote_status",
    "breakroom.sessions",
]


@pytest.fixture
def fake_conn():
    """
    Patch get_connection()/get_transaction() with a fake connection.

    Returns the AsyncMock connection every context manager yields.
    """
    conn = AsyncMock()

    @asynccontextmanager
    async def _fake():
        yield conn

    patches = []
    for module in _DB_MODULES:
        for name in ("get_connection", "get_transaction"):
            if not hasattr(importlib.import_module(module), name):
                continue
            p = patch(f"{module}.{name}", _fake)
            p.start()
            patches.append(p)

    yield conn

    for p in patches:
        p.stop()


@pytest.fixture
def frozen_now():
    """Pin breakroom.clock.now() to NOW."""
    with patch("breakroom.clock.now", return_value=NOW):
        yield NOW


@pytest_asyncio.fixture
async def db_conn():
    """
    Provide a DB connection that rolls back after each test.

    Creates a fresh engine per test and injects it into breakroom.database
    so that get_connection()/get_transaction() share it.
    """
    from breakroom.database import set_engine

    database_url = os.environ.get("DATABASE_URL", "")
    if not database_url:
        pytest.skip("DATABASE_URL not set")
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(
        database_url,
        connect_args={"statement_cache_size": 0},
    )
    set_engine(engine)

    async with engine.connect() as conn:
        txn = await conn.begin()
        try:
            yield conn
        finally:
            await txn.rollback()

    set_engine(None)
    await engine.dispose()


# Participant IDs owned by committed-data tests; db_engine deletes them afterwards
COMMITTED_IDS = list(range(9_100_001, 9_100_011))


@pytest_asyncio.fixture
async def db_engine():
    """
    Real engine for tests that need work committed across connections.

    Unlike db_conn nothing is rolled back: every coordinator call commits on
    its own connection, as in production. Rows belonging to COMMITTED_IDS
    are deleted afterwards. Skipped when DATABASE_URL is not set or when a
    break is already active in the target database.
    """
    from sqlalchemy import delete, select

    from breakroom.database import _get_database_url, set_engine
    from breakroom.enums import SessionStatus
    from breakroom.tables import break_sessions, participants

    if not os.environ.get("DATABASE_URL"):
        pytest.skip("DATABASE_URL not set")

    engine = create_async_engine(
        _get_database_url(),
        pool_size=len(COMMITTED_IDS),
        connect_args={"statement_cache_size": 0},
    )

    async with engine.connect() as conn:
        active = await conn.scalar(
            select(break_sessions.c.session_id).where(
                break_sessions.c.status == SessionStatus.active
            )
        )
    if active is not None:
        await engine.dispose()
        pytest.skip("Database already has an active break")

    set_engine(engine)
    try:
        yield engine
    finally:
        set_engine(None)
        async with engine.begin() as conn:
            # Responses go with their session or participant (ON DELETE CASCADE)
            await conn.execute(
                delete(break_sessions).where(
                    break_sessions.c.initiator_id.in_(COMMITTED_IDS)
                )
            )
            await conn.execute(
                delete(participants).where(
                    participants.c.participant_id.in_(COMMITTED_IDS)
                )
            )
        await engine.dispose()
