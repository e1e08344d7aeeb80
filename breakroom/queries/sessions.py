"""Break session queries using SQLAlchemy Core."""

from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import SessionStatus
from ..tables import break_sessions


async def create_active_session(
    conn: AsyncConnection,
    initiator_id: int,
) -> dict[str, Any] | None:
    """
    Atomically create a new active session.

    Uses INSERT ... ON CONFLICT DO NOTHING against the partial unique index
    on status = 'active', so two concurrent callers cannot both succeed.

    Returns:
        The created session, or None if another session is already active
    """
    stmt = (
        pg_insert(break_sessions)
        .values(initiator_id=initiator_id, status=SessionStatus.active)
        .on_conflict_do_nothing(
            index_elements=["status"],
            index_where=break_sessions.c.status == SessionStatus.active,
        )
        .returning(break_sessions)
    )
    result = await conn.execute(stmt)
    row = result.mappings().first()
    return dict(row) if row else None


async def get_session(
    conn: AsyncConnection,
    session_id: int,
    for_update: bool = False,
) -> dict[str, Any] | None:
    """
    Get a session by ID.

    With for_update=True the row stays locked until the caller's
    transaction ends.
    """
    query = select(break_sessions).where(break_sessions.c.session_id == session_id)
    if for_update:
        query = query.with_for_update()
    result = await conn.execute(query)
    row = result.mappings().first()
    return dict(row) if row else None


async def get_active_session(conn: AsyncConnection) -> dict[str, Any] | None:
    """Get the single active session, if there is one."""
    result = await conn.execute(
        select(break_sessions)
        .where(break_sessions.c.status == SessionStatus.active)
        .order_by(break_sessions.c.created_at.desc())
        .limit(1)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def update_session(
    conn: AsyncConnection,
    session_id: int,
    **updates: Any,
) -> dict[str, Any] | None:
    """Update a session and return the updated record."""
    result = await conn.execute(
        update(break_sessions)
        .where(break_sessions.c.session_id == session_id)
        .values(**updates)
        .returning(break_sessions)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def mark_session_closed(
    conn: AsyncConnection,
    session_id: int,
    status: SessionStatus,
    closed_at: datetime,
) -> dict[str, Any] | None:
    """
    Move an active session to a terminal status.

    The update only matches while the session is still active, so when the
    reaper and a user race to close the same session exactly one of them
    gets the row back.

    Returns:
        The closed session, or None if it was missing or already closed
    """
    result = await conn.execute(
        update(break_sessions)
        .where(break_sessions.c.session_id == session_id)
        .where(break_sessions.c.status == SessionStatus.active)
        .values(status=status, completed_at=closed_at)
        .returning(break_sessions)
    )
    row = result.mappings().first()
    return dict(row) if row else None
