"""
Break session coordination.

The state machine for a break: active -> completed | cancelled. Both
terminal states are final. This module is the only writer of sessions and
responses; callers get back what happened and decide who to tell.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

from . import clock, remote_status
from .database import get_connection, get_transaction
from .enums import ResponseKind, SessionStatus
from .participants import (
    CoordinationError,
    ParticipantNotFoundError,
    display_name,
    get_all_participants,
)
from .queries import participants as participant_queries
from .queries import responses as response_queries
from .queries import sessions as session_queries

logger = logging.getLogger(__name__)


class SessionAlreadyActiveError(CoordinationError):
    """Raised when starting a session while another one is active."""

    pass


class SessionNotFoundError(CoordinationError):
    """Raised when a session cannot be found."""

    pass


class SessionNotActiveError(CoordinationError):
    """Raised when a session is already completed or cancelled."""

    pass


class NotInitiatorError(CoordinationError):
    """Raised when someone other than the initiator tries to cancel."""

    pass


@dataclass
class LaunchResult:
    """Outcome of launch_session()."""

    session: dict[str, Any]
    invitees: list[dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False


def _require_active(session: dict[str, Any] | None, session_id: int) -> dict[str, Any]:
    if not session:
        raise SessionNotFoundError(f"Session not found: {session_id}")
    if session["status"] != SessionStatus.active:
        raise SessionNotActiveError(
            f"Session {session_id} is already {SessionStatus(session['status']).value}"
        )
    return session


# =============================================================================
# Lifecycle
# =============================================================================


async def start_session(initiator_id: int) -> dict[str, Any]:
    """
    Start a new break session.

    Args:
        initiator_id: Participant proposing the break

    Returns:
        The new active session

    Raises:
        SessionAlreadyActiveError: If another session is active
    """
    async with get_transaction() as conn:
        session = await session_queries.create_active_session(conn, initiator_id)

    if not session:
        raise SessionAlreadyActiveError("There is already an active break session")

    logger.info(f"Session {session['session_id']} started by {initiator_id}")
    return session


async def launch_session(initiator_id: int) -> LaunchResult:
    """
    Start a session and work out who to invite.

    When nobody is eligible the session is cancelled straight away, so it
    never blocks the next /smoke.

    Raises:
        SessionAlreadyActiveError: If another session is active
    """
    session = await start_session(initiator_id)

    try:
        invitees = await eligible_invitees(initiator_id)
    except Exception:
        await _close_session(session["session_id"], SessionStatus.cancelled)
        raise

    if invitees:
        return LaunchResult(session=session, invitees=invitees)

    closed = await _close_session(session["session_id"], SessionStatus.cancelled)
    logger.info(f"Session {session['session_id']} cancelled: nobody to invite")
    return LaunchResult(session=closed, cancelled=True)


async def respond_to_session(
    session_id: int,
    participant_id: int,
    kind: ResponseKind,
) -> dict[str, Any]:
    """
    Record a participant's response, replacing any earlier one.

    A "remote" response also marks the participant remote for the rest of
    the day. Both writes happen in the transaction that holds the session
    lock, so a session closed in the meantime leaves neither behind.

    Raises:
        SessionNotFoundError: If the session doesn't exist
        SessionNotActiveError: If the session is already closed
        ParticipantNotFoundError: If a remote responder is unknown
    """
    async with get_connection() as conn:
        session = await session_queries.get_session(conn, session_id)
    _require_active(session, session_id)

    async with get_transaction() as conn:
        # Lock the session row so a concurrent close waits for this write
        session = await session_queries.get_session(conn, session_id, for_update=True)
        _require_active(session, session_id)

        if kind == ResponseKind.remote:
            until = clock.end_of_local_day(clock.now())
            marked = await participant_queries.set_remote_until(
                conn, participant_id, until
            )
            if not marked:
                raise ParticipantNotFoundError(f"Participant not found: {participant_id}")

        response = await response_queries.upsert_response(
            conn, session_id, participant_id, kind, clock.now()
        )

    logger.info(f"Participant {participant_id} answered {kind.value} to {session_id}")
    return response


async def _close_session(session_id: int, status: SessionStatus) -> dict[str, Any]:
    """
    Move a session to a terminal status.

    Raises:
        SessionNotFoundError: If the session doesn't exist
        SessionNotActiveError: If it was already closed (possibly by a racing caller)
    """
    async with get_transaction() as conn:
        closed = await session_queries.mark_session_closed(
            conn, session_id, status, clock.now()
        )
        if closed:
            return closed
        existing = await session_queries.get_session(conn, session_id)

    _require_active(existing, session_id)
    raise SessionNotActiveError(f"Session {session_id} could not be closed")


async def cancel_session(session_id: int, requested_by: int) -> dict[str, Any]:
    """
    Cancel an active session. Only its initiator may do this.

    Raises:
        SessionNotFoundError: If the session doesn't exist
        SessionNotActiveError: If it is already closed
        NotInitiatorError: If requested_by didn't start it
    """
    async with get_connection() as conn:
        session = await session_queries.get_session(conn, session_id)
    _require_active(session, session_id)

    if session["initiator_id"] != requested_by:
        raise NotInitiatorError("Only the initiator can cancel the break")

    closed = await _close_session(session_id, SessionStatus.cancelled)
    logger.info(f"Session {session_id} cancelled by {requested_by}")
    return closed


async def complete_session(session_id: int) -> dict[str, Any]:
    """
    Mark an active session completed.

    Raises:
        SessionNotFoundError: If the session doesn't exist
        SessionNotActiveError: If it is already closed
    """
    closed = await _close_session(session_id, SessionStatus.completed)
    logger.info(f"Session {session_id} completed")
    return closed


async def auto_complete_stale(threshold: timedelta) -> dict[str, Any] | None:
    """
    Complete the active session if it is older than threshold.

    Returns:
        The session this call completed, or None if nothing was stale or
        someone else closed it first
    """
    session = await get_active_session()
    if not session:
        return None

    if clock.now() - session["created_at"] <= threshold:
        return None

    try:
        return await complete_session(session["session_id"])
    except SessionNotActiveError:
        logger.info(f"Session {session['session_id']} was closed concurrently")
        return None


# =============================================================================
# Queries
# =============================================================================


async def get_session(session_id: int) -> dict[str, Any]:
    """
    Get a session by ID.

    Raises:
        SessionNotFoundError: If session doesn't exist
    """
    async with get_connection() as conn:
        session = await session_queries.get_session(conn, session_id)

    if not session:
        raise SessionNotFoundError(f"Session not found: {session_id}")
    return session


async def get_active_session() -> dict[str, Any] | None:
    """Get the active session, if any."""
    async with get_connection() as conn:
        return await session_queries.get_active_session(conn)


async def get_session_responses(session_id: int) -> list[dict[str, Any]]:
    """All responses for a session, with responder directory fields."""
    async with get_connection() as conn:
        return await response_queries.list_responses(conn, session_id)


def partition_responses(
    responses: list[dict[str, Any]],
) -> dict[ResponseKind, list[str]]:
    """
    Group visible responders' display names by response kind.

    Hidden participants are dropped. Order follows the input order.
    """
    groups: dict[ResponseKind, list[str]] = {kind: [] for kind in ResponseKind}
    for response in responses:
        if response.get("is_hidden"):
            continue
        groups[response["response"]].append(display_name(response))
    return groups


async def get_summary(session_id: int) -> str:
    """Render the live status of a session."""
    # Import here to avoid circular imports
    from .notifications.templates import render_status_summary

    responses = await get_session_responses(session_id)
    return render_status_summary(partition_responses(responses))


async def eligible_invitees(initiator_id: int) -> list[dict[str, Any]]:
    """
    Participants who should get an invitation from initiator_id.

    Expired remote flags are cleared first so people who were remote
    yesterday are invited again today.
    """
    await remote_status.expire_stale()
    roster = await get_all_participants()
    return [
        participant
        for participant in roster
        if participant["participant_id"] != initiator_id
        and not participant["is_remote_today"]
        and not participant["is_hidden"]
    ]
