"""Tests for break session and response queries."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from breakroom.enums import ResponseKind, SessionStatus

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def _mock_conn(first=None, rows=None, rowcount=0):
    mock_conn = AsyncMock()
    mock_result = MagicMock()
    mock_result.mappings.return_value.first.return_value = first
    mock_result.mappings.return_value.one.return_value = first
    mock_result.mappings.return_value.__iter__.return_value = iter(rows or [])
    mock_result.rowcount = rowcount
    mock_conn.execute.return_value = mock_result
    return mock_conn


def _sql(mock_conn) -> str:
    stmt = mock_conn.execute.call_args[0][0]
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestCreateActiveSession:
    @pytest.mark.asyncio
    async def test_insert_skips_on_active_conflict(self):
        """The insert targets the partial unique index and does nothing on conflict."""
        from breakroom.queries.sessions import create_active_session

        mock_conn = _mock_conn(first=None)

        result = await create_active_session(mock_conn, 100)

        assert result is None
        sql = _sql(mock_conn)
        assert "ON CONFLICT (status) WHERE" in sql
        assert "DO NOTHING" in sql
        assert "RETURNING" in sql

    @pytest.mark.asyncio
    async def test_returns_created_row(self):
        from breakroom.queries.sessions import create_active_session

        row = {"session_id": 5, "initiator_id": 100, "status": SessionStatus.active}
        mock_conn = _mock_conn(first=row)

        assert await create_active_session(mock_conn, 100) == row


class TestMarkSessionClosed:
    @pytest.mark.asyncio
    async def test_update_only_matches_active(self):
        from breakroom.queries.sessions import mark_session_closed

        mock_conn = _mock_conn(first=None)

        result = await mark_session_closed(mock_conn, 1, SessionStatus.completed, NOW)

        assert result is None
        sql = _sql(mock_conn)
        assert "break_sessions.session_id =" in sql
        assert "break_sessions.status =" in sql


class TestUpsertResponse:
    @pytest.mark.asyncio
    async def test_upsert_replaces_on_session_participant_key(self):
        from breakroom.queries.responses import upsert_response

        row = {"session_id": 1, "participant_id": 200, "response": ResponseKind.denied}
        mock_conn = _mock_conn(first=row)

        result = await upsert_response(mock_conn, 1, 200, ResponseKind.denied, NOW)

        assert result == row
        sql = _sql(mock_conn)
        assert "ON CONFLICT ON CONSTRAINT session_responses_session_participant_unique" in sql
        assert "DO UPDATE SET" in sql


class TestClearExpiredRemote:
    @pytest.mark.asyncio
    async def test_returns_rowcount(self):
        from breakroom.queries.participants import clear_expired_remote

        mock_conn = _mock_conn(rowcount=2)

        assert await clear_expired_remote(mock_conn, NOW) == 2


# =============================================================================
# Against a real database (skipped without DATABASE_URL)
# =============================================================================


class TestBreakQueriesDatabase:
    @pytest.mark.asyncio
    async def test_only_one_active_session(self, db_conn):
        from breakroom.queries import create_participant, create_active_session

        await create_participant(db_conn, 9_000_001, "alice")
        await create_participant(db_conn, 9_000_002, "bob")

        first = await create_active_session(db_conn, 9_000_001)
        second = await create_active_session(db_conn, 9_000_002)

        assert first is not None
        assert first["status"] == SessionStatus.active
        assert second is None

    @pytest.mark.asyncio
    async def test_closing_twice_only_succeeds_once(self, db_conn):
        from breakroom.queries import (
            create_active_session,
            create_participant,
            mark_session_closed,
        )

        await create_participant(db_conn, 9_000_001, "alice")
        session = await create_active_session(db_conn, 9_000_001)

        closed = await mark_session_closed(
            db_conn, session["session_id"], SessionStatus.completed, NOW
        )
        again = await mark_session_closed(
            db_conn, session["session_id"], SessionStatus.cancelled, NOW
        )

        assert closed["status"] == SessionStatus.completed
        assert closed["completed_at"] == NOW
        assert again is None

    @pytest.mark.asyncio
    async def test_new_session_allowed_after_close(self, db_conn):
        from breakroom.queries import (
            create_active_session,
            create_participant,
            mark_session_closed,
        )

        await create_participant(db_conn, 9_000_001, "alice")
        session = await create_active_session(db_conn, 9_000_001)
        await mark_session_closed(
            db_conn, session["session_id"], SessionStatus.cancelled, NOW
        )

        assert await create_active_session(db_conn, 9_000_001) is not None

    @pytest.mark.asyncio
    async def test_response_is_replaced_not_duplicated(self, db_conn):
        from breakroom.queries import (
            create_active_session,
            create_participant,
            list_responses,
            upsert_response,
        )

        await create_participant(db_conn, 9_000_001, "alice")
        await create_participant(db_conn, 9_000_002, "bob")
        session = await create_active_session(db_conn, 9_000_001)
        sid = session["session_id"]

        await upsert_response(db_conn, sid, 9_000_002, ResponseKind.accepted, NOW)
        await upsert_response(
            db_conn, sid, 9_000_002, ResponseKind.denied, NOW + timedelta(minutes=1)
        )

        responses = await list_responses(db_conn, sid)
        assert len(responses) == 1
        assert responses[0]["response"] == ResponseKind.denied
        assert responses[0]["username"] == "bob"

    @pytest.mark.asyncio
    async def test_expired_remote_flags_are_cleared(self, db_conn):
        from breakroom.queries import (
            clear_expired_remote,
            create_participant,
            get_participant,
            set_remote_until,
        )

        await create_participant(db_conn, 9_000_001, "alice")
        await create_participant(db_conn, 9_000_002, "bob")
        await set_remote_until(db_conn, 9_000_001, NOW - timedelta(minutes=1))
        await set_remote_until(db_conn, 9_000_002, NOW + timedelta(hours=8))

        await clear_expired_remote(db_conn, NOW)

        assert (await get_participant(db_conn, 9_000_001))["is_remote_today"] is False
        assert (await get_participant(db_conn, 9_000_002))["is_remote_today"] is True

    @pytest.mark.asyncio
    async def test_get_response_for_one_participant(self, db_conn):
        from breakroom.queries import (
            create_active_session,
            create_participant,
            get_response,
            upsert_response,
        )

        await create_participant(db_conn, 9_000_001, "alice")
        await create_participant(db_conn, 9_000_002, "bob")
        session = await create_active_session(db_conn, 9_000_001)
        sid = session["session_id"]
        await upsert_response(db_conn, sid, 9_000_002, ResponseKind.remote, NOW)

        assert (await get_response(db_conn, sid, 9_000_002))["response"] == ResponseKind.remote
        assert await get_response(db_conn, sid, 9_000_001) is None

    @pytest.mark.asyncio
    async def test_update_session_fields(self, db_conn):
        from breakroom.queries import (
            create_active_session,
            create_participant,
            update_session,
        )

        await create_participant(db_conn, 9_000_001, "alice")
        session = await create_active_session(db_conn, 9_000_001)

        updated = await update_session(
            db_conn, session["session_id"], created_at=NOW - timedelta(hours=2)
        )

        assert updated["created_at"] == NOW - timedelta(hours=2)
        assert await update_session(db_conn, -1, created_at=NOW) is None

    @pytest.mark.asyncio
    async def test_delete_participant(self, db_conn):
        from breakroom.queries import (
            create_participant,
            delete_participant,
            get_participant,
        )

        await create_participant(db_conn, 9_000_003, "carol")

        assert await delete_participant(db_conn, 9_000_003) is True
        assert await get_participant(db_conn, 9_000_003) is None
        assert await delete_participant(db_conn, 9_000_003) is False
