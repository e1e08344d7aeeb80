"""Session response queries using SQLAlchemy Core."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import ResponseKind
from ..tables import participants, session_responses


async def upsert_response(
    conn: AsyncConnection,
    session_id: int,
    participant_id: int,
    kind: ResponseKind,
    now: datetime,
) -> dict[str, Any]:
    """
    Record a participant's response, replacing any earlier one.

    INSERT ... ON CONFLICT (session_id, participant_id) DO UPDATE keeps one
    row per participant per session; created_at stays at the first answer.
    """
    stmt = pg_insert(session_responses).values(
        session_id=session_id,
        participant_id=participant_id,
        response=kind,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        constraint="session_responses_session_participant_unique",
        set_={
            "response": stmt.excluded.response,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(session_responses)

    result = await conn.execute(stmt)
    row = result.mappings().one()
    return dict(row)


async def list_responses(
    conn: AsyncConnection,
    session_id: int,
) -> list[dict[str, Any]]:
    """
    Get all responses for a session with the responder's directory fields.

    Ordered by first response time so summaries are stable.
    """
    query = (
        select(
            session_responses.c.response_id,
            session_responses.c.session_id,
            session_responses.c.participant_id,
            session_responses.c.response,
            session_responses.c.created_at,
            session_responses.c.updated_at,
            participants.c.username,
            participants.c.first_name,
            participants.c.is_hidden,
        )
        .select_from(
            session_responses.join(
                participants,
                session_responses.c.participant_id == participants.c.participant_id,
            )
        )
        .where(session_responses.c.session_id == session_id)
        .order_by(session_responses.c.created_at, session_responses.c.response_id)
    )
    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]


async def get_response(
    conn: AsyncConnection,
    session_id: int,
    participant_id: int,
) -> dict[str, Any] | None:
    """Get one participant's response to a session."""
    result = await conn.execute(
        select(session_responses)
        .where(session_responses.c.session_id == session_id)
        .where(session_responses.c.participant_id == participant_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None
