"""
Notification system for break sessions.

Public API:
    dispatch(outbounds) - Deliver planned messages as Discord DMs
    init_scheduler() / shutdown_scheduler() - Run the stale-session reaper
    recover_stale_session() - One-shot cleanup at startup

High-level actions:
    announce_launch(result, actor_id) - Confirmation + invitations
    announce_response(session_id, responder_id, kind) - Response fan-out
    announce_cancelled(session, cancelled_by) - Tell respondents it's off
    announce_auto_completed(session, threshold) - Final summary
"""

from .dispatcher import dispatch
from .scheduler import (
    init_scheduler,
    shutdown_scheduler,
    reap_stale_sessions,
    recover_stale_session,
)
from .actions import (
    announce_launch,
    announce_response,
    announce_cancelled,
    announce_auto_completed,
)

__all__ = [
    # Low-level
    "dispatch",
    "init_scheduler",
    "shutdown_scheduler",
    "reap_stale_sessions",
    "recover_stale_session",
    # High-level actions
    "announce_launch",
    "announce_response",
    "announce_cancelled",
    "announce_auto_completed",
]
