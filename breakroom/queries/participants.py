"""Participant-related database queries using SQLAlchemy Core."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import participants


async def get_participant(
    conn: AsyncConnection,
    participant_id: int,
) -> dict[str, Any] | None:
    """Get a participant by their Discord user ID."""
    result = await conn.execute(
        select(participants).where(participants.c.participant_id == participant_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_all_participants(conn: AsyncConnection) -> list[dict[str, Any]]:
    """Get every participant, ordered by username then ID."""
    result = await conn.execute(
        select(participants).order_by(
            participants.c.username, participants.c.participant_id
        )
    )
    return [dict(row) for row in result.mappings()]


async def create_participant(
    conn: AsyncConnection,
    participant_id: int,
    username: str | None,
    first_name: str = "",
    last_name: str | None = None,
    is_hidden: bool = False,
) -> dict[str, Any]:
    """Create a new participant and return the created record."""
    result = await conn.execute(
        insert(participants)
        .values(
            participant_id=participant_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            is_hidden=is_hidden,
        )
        .returning(participants)
    )
    row = result.mappings().first()
    return dict(row)


async def update_participant(
    conn: AsyncConnection,
    participant_id: int,
    **updates: Any,
) -> dict[str, Any] | None:
    """Update a participant and return the updated record."""
    updates["updated_at"] = func.now()
    result = await conn.execute(
        update(participants)
        .where(participants.c.participant_id == participant_id)
        .values(**updates)
        .returning(participants)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def delete_participant(conn: AsyncConnection, participant_id: int) -> bool:
    """Delete a participant. Returns True if a row was removed."""
    result = await conn.execute(
        delete(participants).where(participants.c.participant_id == participant_id)
    )
    return result.rowcount > 0


async def set_remote_until(
    conn: AsyncConnection,
    participant_id: int,
    until: datetime,
) -> dict[str, Any] | None:
    """Mark a participant remote until the given instant."""
    return await update_participant(
        conn, participant_id, is_remote_today=True, remote_until=until
    )


async def clear_expired_remote(conn: AsyncConnection, now: datetime) -> int:
    """
    Clear the remote flag for everyone whose remote_until has passed.

    Returns:
        Number of participants whose flag was cleared
    """
    result = await conn.execute(
        update(participants)
        .where(participants.c.is_remote_today.is_(True))
        .where(participants.c.remote_until < now)
        .values(is_remote_today=False, remote_until=None, updated_at=func.now())
    )
    return result.rowcount
