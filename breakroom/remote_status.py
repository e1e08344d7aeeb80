"""
Remote ("not in the office today") status.

A remote participant gets no invitations until the end of their local day.
Expired flags are cleared lazily, right before invitees are computed, so
there is no separate timer for it.
"""

import logging
from typing import Any

from . import clock
from .database import get_transaction
from .participants import ParticipantNotFoundError
from .queries import participants as participant_queries

logger = logging.getLogger(__name__)


async def set_remote(participant_id: int) -> dict[str, Any]:
    """
    Mark a participant remote until 23:59:59 of the current local day.

    Raises:
        ParticipantNotFoundError: If the participant is unknown
    """
    until = clock.end_of_local_day(clock.now())

    async with get_transaction() as conn:
        participant = await participant_queries.set_remote_until(
            conn, participant_id, until
        )

    if not participant:
        raise ParticipantNotFoundError(f"Participant not found: {participant_id}")

    logger.info(f"Participant {participant_id} is remote until {until.isoformat()}")
    return participant


async def clear_remote(participant_id: int) -> dict[str, Any]:
    """
    Opt a participant back in to invitations ("back in the office").

    Raises:
        ParticipantNotFoundError: If the participant is unknown
    """
    async with get_transaction() as conn:
        participant = await participant_queries.update_participant(
            conn, participant_id, is_remote_today=False, remote_until=None
        )

    if not participant:
        raise ParticipantNotFoundError(f"Participant not found: {participant_id}")

    return participant


async def expire_stale() -> int:
    """
    Clear remote flags whose remote_until has passed.

    Returns:
        Number of participants cleared
    """
    async with get_transaction() as conn:
        cleared = await participant_queries.clear_expired_remote(conn, clock.now())

    if cleared:
        logger.info(f"Cleared expired remote status for {cleared} participant(s)")
    return cleared
