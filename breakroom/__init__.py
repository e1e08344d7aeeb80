"""
Break coordination logic - transport-agnostic.
Used by the Discord bot, the reaper and the web API.
"""

# Database (SQLAlchemy)
from .database import get_connection, get_transaction, get_engine, close_engine, is_configured, ping

# Enums
from .enums import SessionStatus, ResponseKind, ATTENDING_KINDS

# Participant directory
from .participants import (
    CoordinationError, ParticipantNotFoundError,
    register_participant, get_participant, require_participant, get_all_participants,
    apply_hidden_policy, display_name,
)

# Remote status
from .remote_status import set_remote, clear_remote, expire_stale

# Session coordination
from .sessions import (
    SessionAlreadyActiveError, SessionNotFoundError, SessionNotActiveError, NotInitiatorError,
    LaunchResult,
    start_session, launch_session, respond_to_session, cancel_session,
    complete_session, auto_complete_stale,
    get_session, get_active_session, get_session_responses, get_summary,
    eligible_invitees, partition_responses,
)

__all__ = [
    # Database
    'get_connection', 'get_transaction', 'get_engine', 'close_engine', 'is_configured', 'ping',
    # Enums
    'SessionStatus', 'ResponseKind', 'ATTENDING_KINDS',
    # Participants
    'CoordinationError', 'ParticipantNotFoundError',
    'register_participant', 'get_participant', 'require_participant', 'get_all_participants',
    'apply_hidden_policy', 'display_name',
    # Remote status
    'set_remote', 'clear_remote', 'expire_stale',
    # Sessions
    'SessionAlreadyActiveError', 'SessionNotFoundError', 'SessionNotActiveError', 'NotInitiatorError',
    'LaunchResult',
    'start_session', 'launch_session', 'respond_to_session', 'cancel_session',
    'complete_session', 'auto_complete_stale',
    'get_session', 'get_active_session', 'get_session_responses', 'get_summary',
    'eligible_invitees', 'partition_responses',
]
