"""
Participant directory.

Every inbound interaction upserts the participant here. The directory also
owns the hidden-participant policy: some usernames are always hidden from
summaries and notifications, no matter what the stored flag says.
"""

import logging
from typing import Any

from .config import get_hidden_usernames
from .database import get_connection, get_transaction
from .queries import participants as participant_queries

logger = logging.getLogger(__name__)


class CoordinationError(Exception):
    """Base class for expected, user-facing coordination errors."""

    pass


class ParticipantNotFoundError(CoordinationError):
    """Raised when a participant is not in the directory."""

    pass


def apply_hidden_policy(username: str | None, is_hidden: bool = False) -> bool:
    """
    Decide the stored is_hidden flag for a participant.

    Reserved usernames are forced hidden; anyone else keeps their flag.
    """
    if username and username.lower() in get_hidden_usernames():
        return True
    return is_hidden


def display_name(participant: dict[str, Any]) -> str:
    """Username if set, otherwise first name, otherwise a stable placeholder."""
    return (
        participant.get("username")
        or participant.get("first_name")
        or f"user{participant['participant_id']}"
    )


async def register_participant(
    participant_id: int,
    username: str | None,
    first_name: str | None = None,
    last_name: str | None = None,
) -> dict[str, Any]:
    """
    Create or update a participant from transport profile data.

    Args:
        participant_id: Transport user ID
        username: Transport username; stored as NULL when empty so
            display_name() falls back to the first name
        first_name: Given / display name
        last_name: Family name, if the transport has one

    Returns:
        The stored participant
    """
    username = username or None
    first_name = first_name or ""

    async with get_transaction() as conn:
        existing = await participant_queries.get_participant(conn, participant_id)

        if existing:
            return await participant_queries.update_participant(
                conn,
                participant_id,
                username=username,
                first_name=first_name,
                last_name=last_name,
                is_hidden=apply_hidden_policy(username, existing["is_hidden"]),
            )

        logger.info(f"Registering participant {participant_id} ({username})")
        return await participant_queries.create_participant(
            conn,
            participant_id,
            username=username,
            first_name=first_name,
            last_name=last_name,
            is_hidden=apply_hidden_policy(username),
        )


async def get_participant(participant_id: int) -> dict[str, Any] | None:
    """Get a participant by ID, or None if unknown."""
    async with get_connection() as conn:
        return await participant_queries.get_participant(conn, participant_id)


async def require_participant(participant_id: int) -> dict[str, Any]:
    """
    Get a participant by ID.

    Raises:
        ParticipantNotFoundError: If the participant is unknown
    """
    participant = await get_participant(participant_id)
    if not participant:
        raise ParticipantNotFoundError(f"Participant not found: {participant_id}")
    return participant


async def get_all_participants() -> list[dict[str, Any]]:
    """Get the whole roster in stable order."""
    async with get_connection() as conn:
        return await participant_queries.get_all_participants(conn)
