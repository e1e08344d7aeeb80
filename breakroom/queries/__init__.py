"""Query layer for database operations using SQLAlchemy Core."""

from .participants import (
    clear_expired_remote,
    create_participant,
    delete_participant,
    get_all_participants,
    get_participant,
    set_remote_until,
    update_participant,
)
from .responses import get_response, list_responses, upsert_response
from .sessions import (
    create_active_session,
    get_active_session,
    get_session,
    mark_session_closed,
    update_session,
)

__all__ = [
    # Participants
    "get_participant",
    "get_all_participants",
    "create_participant",
    "update_participant",
    "delete_participant",
    "set_remote_until",
    "clear_expired_remote",
    # Sessions
    "create_active_session",
    "get_session",
    "get_active_session",
    "update_session",
    "mark_session_closed",
    # Responses
    "upsert_response",
    "list_responses",
    "get_response",
]
