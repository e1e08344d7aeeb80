"""
Who hears about what.

Pure functions from (session, participants, responses) to a list of
Outbound messages. Nothing here touches the database or the transport, so
the fan-out rules can be tested on plain dicts.

Hidden participants never receive anything from here and their names never
appear in the rendered text.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from breakroom.enums import ATTENDING_KINDS, ResponseKind
from breakroom.notifications.templates import get_message, render_completed_summary
from breakroom.participants import display_name
from breakroom.sessions import partition_responses


ACTION_PREFIX = "breakroom"
CANCEL_ACTION = "cancel"

# Button action -> response kind
RESPONSE_ACTIONS = {
    "accept": ResponseKind.accepted,
    "delayed": ResponseKind.accepted_delayed,
    "deny": ResponseKind.denied,
    "remote": ResponseKind.remote,
}

INVITATION_BUTTONS = [
    ("✅ Coming!", "accept"),
    ("⏱ In 5 minutes", "delayed"),
    ("❌ No thanks", "deny"),
    ("🏠 I'm remote today", "remote"),
]

RESPONSE_MESSAGE_TYPES = {
    ResponseKind.accepted: "response_accepted",
    ResponseKind.accepted_delayed: "response_delayed",
    ResponseKind.denied: "response_denied",
    ResponseKind.remote: "response_remote",
}

# What the responder sees in place of the buttons they clicked
RESPONSE_ACK_TYPES = {
    ResponseKind.accepted: "response_ack_accepted",
    ResponseKind.accepted_delayed: "response_ack_delayed",
    ResponseKind.denied: "response_ack_denied",
    ResponseKind.remote: "response_ack_remote",
}


@dataclass(frozen=True)
class Action:
    """A selectable button: label shown to the user + opaque token."""

    label: str
    token: str


@dataclass
class Outbound:
    """One message to one recipient."""

    recipient_id: int
    message_type: str
    body: str
    actions: list[Action] = field(default_factory=list)


# =============================================================================
# Action tokens
# =============================================================================


def encode_action_token(action: str, session_id: int) -> str:
    """Build the opaque token carried by a button, e.g. "breakroom:accept:12"."""
    return f"{ACTION_PREFIX}:{action}:{session_id}"


def is_action_token(token: str | None) -> bool:
    """Check whether a component custom_id belongs to us."""
    return bool(token) and token.startswith(f"{ACTION_PREFIX}:")


def parse_action_token(token: str) -> tuple[str, int]:
    """
    Split a token into (action, session_id).

    Raises:
        ValueError: If the token is malformed or the action is unknown
    """
    parts = token.split(":")
    if len(parts) != 3 or parts[0] != ACTION_PREFIX:
        raise ValueError(f"Invalid action token: {token!r}")

    _, action, raw_session_id = parts
    if action != CANCEL_ACTION and action not in RESPONSE_ACTIONS:
        raise ValueError(f"Unknown action: {action!r}")

    return action, int(raw_session_id)


def invitation_actions(session_id: int) -> list[Action]:
    """The four response buttons attached to an invitation."""
    return [
        Action(label, encode_action_token(action, session_id))
        for label, action in INVITATION_BUTTONS
    ]


def cancel_actions(session_id: int) -> list[Action]:
    """The cancel button attached to the initiator's confirmation."""
    return [Action("❌ Cancel break", encode_action_token(CANCEL_ACTION, session_id))]


# =============================================================================
# Recipient helpers
# =============================================================================


def _is_visible(participant: dict[str, Any] | None) -> bool:
    # Unknown participants (no directory row) are not hidden
    return not (participant and participant.get("is_hidden"))


def _unique(ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    result = []
    for participant_id in ids:
        if participant_id not in seen:
            seen.add(participant_id)
            result.append(participant_id)
    return result


def _outbounds(
    recipient_ids: Iterable[int],
    message_type: str,
    body: str,
    actions: list[Action] | None = None,
) -> list[Outbound]:
    return [
        Outbound(
            recipient_id=recipient_id,
            message_type=message_type,
            body=body,
            actions=list(actions or []),
        )
        for recipient_id in _unique(recipient_ids)
    ]


# =============================================================================
# Plans, one per coordinator event
# =============================================================================


def plan_launch_confirmation(
    session: dict[str, Any],
    initiator: dict[str, Any] | None,
    invitee_count: int,
) -> list[Outbound]:
    """Tell the initiator the break is on, with a cancel button."""
    if not _is_visible(initiator):
        return []
    body = get_message("session_started", context={"invitee_count": invitee_count})
    return _outbounds(
        [session["initiator_id"]],
        "session_started",
        body,
        cancel_actions(session["session_id"]),
    )


def plan_invitations(
    session: dict[str, Any],
    initiator: dict[str, Any] | None,
    invitees: list[dict[str, Any]],
) -> list[Outbound]:
    """Invite every eligible invitee, with the four response buttons."""
    if _is_visible(initiator) and initiator:
        message_type = "session_invitation"
        body = get_message(
            message_type, context={"initiator_name": display_name(initiator)}
        )
    else:
        message_type = "session_invitation_anonymous"
        body = get_message(message_type)

    recipients = [
        invitee["participant_id"]
        for invitee in invitees
        if _is_visible(invitee)
        and invitee["participant_id"] != session["initiator_id"]
    ]
    return _outbounds(
        recipients, message_type, body, invitation_actions(session["session_id"])
    )


def plan_no_invitees(
    session: dict[str, Any],
    initiator: dict[str, Any] | None,
) -> list[Outbound]:
    """Nobody to invite: only the initiator hears about it."""
    if not _is_visible(initiator):
        return []
    return _outbounds(
        [session["initiator_id"]],
        "session_no_invitees",
        get_message("session_no_invitees"),
    )


def plan_response(
    session: dict[str, Any],
    initiator: dict[str, Any] | None,
    responder: dict[str, Any],
    kind: ResponseKind,
    responses: list[dict[str, Any]],
) -> list[Outbound]:
    """
    Announce a response.

    The initiator always hears about it. For "coming" answers, everybody
    else who is coming hears too, so the group knows who to wait for.
    """
    if not _is_visible(responder):
        return []

    responder_id = responder["participant_id"]
    initiator_id = session["initiator_id"]
    message_type = RESPONSE_MESSAGE_TYPES[kind]
    body = get_message(message_type, context={"name": display_name(responder)})

    recipients = []
    if initiator_id != responder_id and _is_visible(initiator):
        recipients.append(initiator_id)

    if kind in ATTENDING_KINDS:
        recipients.extend(
            response["participant_id"]
            for response in responses
            if response["participant_id"] not in (responder_id, initiator_id)
            and response["response"] in ATTENDING_KINDS
            and _is_visible(response)
        )

    return _outbounds(recipients, message_type, body)


def plan_cancelled(
    session: dict[str, Any],
    cancelled_by: int,
    responses: list[dict[str, Any]],
) -> list[Outbound]:
    """Tell everybody who answered (in any way) that the break is off."""
    recipients = [
        response["participant_id"]
        for response in responses
        if response["participant_id"] != cancelled_by and _is_visible(response)
    ]
    return _outbounds(
        recipients, "session_cancelled", get_message("session_cancelled")
    )


def plan_auto_completed(
    session: dict[str, Any],
    initiator: dict[str, Any] | None,
    responses: list[dict[str, Any]],
    minutes: int,
) -> list[Outbound]:
    """Send the past-tense summary to the initiator and everybody who came."""
    summary = render_completed_summary(partition_responses(responses))
    body = get_message(
        "session_completed", context={"minutes": minutes, "summary": summary}
    )

    recipients = []
    if _is_visible(initiator):
        recipients.append(session["initiator_id"])
    recipients.extend(
        response["participant_id"]
        for response in responses
        if response["response"] in ATTENDING_KINDS and _is_visible(response)
    )
    return _outbounds(recipients, "session_completed", body)
