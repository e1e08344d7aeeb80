"""
High-level notification actions.

These functions are called after the coordinator changes state. They load
the state the plans need, plan the messages, and deliver them.

Messages addressed to the participant who triggered the event are returned
instead of sent, so the transport can show them as the reply to that
participant's own interaction.
"""

import logging
from datetime import timedelta
from typing import Any

from breakroom.enums import ResponseKind
from breakroom.notifications.dispatcher import dispatch
from breakroom.notifications.plans import (
    Outbound,
    plan_auto_completed,
    plan_cancelled,
    plan_invitations,
    plan_launch_confirmation,
    plan_no_invitees,
    plan_response,
)
from breakroom.participants import get_participant
from breakroom.sessions import LaunchResult, get_session, get_session_responses

logger = logging.getLogger(__name__)


async def _deliver(
    outbounds: list[Outbound],
    actor_id: int | None = None,
) -> list[Outbound]:
    """Dispatch everything not addressed to actor_id; return the rest."""
    direct = [o for o in outbounds if o.recipient_id == actor_id]
    others = [o for o in outbounds if o.recipient_id != actor_id]
    if others:
        await dispatch(others)
    return direct


async def announce_launch(result: LaunchResult, actor_id: int) -> list[Outbound]:
    """
    Announce a freshly launched break.

    Invitations go out as DMs. The initiator's confirmation (or the
    "nobody around" note when the break was cancelled for lack of
    invitees) is returned for the interaction reply.
    """
    session = result.session
    initiator = await get_participant(session["initiator_id"])

    if result.cancelled:
        return await _deliver(plan_no_invitees(session, initiator), actor_id)

    outbounds = plan_launch_confirmation(session, initiator, len(result.invitees))
    outbounds += plan_invitations(session, initiator, result.invitees)
    logger.info(
        f"Inviting {len(result.invitees)} participant(s) to session {session['session_id']}"
    )
    return await _deliver(outbounds, actor_id)


async def announce_response(
    session_id: int,
    responder_id: int,
    kind: ResponseKind,
    actor_id: int | None = None,
) -> list[Outbound]:
    """Tell the initiator (and, for "coming", the others coming) about a response."""
    session = await get_session(session_id)
    initiator = await get_participant(session["initiator_id"])
    responder = await get_participant(responder_id)
    if not responder:
        logger.warning(f"Responder {responder_id} not in directory, nothing to announce")
        return []

    responses = await get_session_responses(session_id)
    outbounds = plan_response(session, initiator, responder, kind, responses)
    return await _deliver(outbounds, actor_id)


async def announce_cancelled(
    session: dict[str, Any],
    cancelled_by: int,
) -> list[Outbound]:
    """Tell everyone who responded that the break was cancelled."""
    responses = await get_session_responses(session["session_id"])
    outbounds = plan_cancelled(session, cancelled_by, responses)
    return await _deliver(outbounds, cancelled_by)


async def announce_auto_completed(
    session: dict[str, Any],
    threshold: timedelta,
) -> dict:
    """
    Send the final summary of a break the reaper closed.

    Returns:
        Delivery counts from dispatch()
    """
    initiator = await get_participant(session["initiator_id"])
    responses = await get_session_responses(session["session_id"])
    minutes = int(threshold.total_seconds() // 60)
    outbounds = plan_auto_completed(session, initiator, responses, minutes)
    return await dispatch(outbounds)
