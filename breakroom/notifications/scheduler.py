"""
APScheduler-based reaper for stale break sessions.

One interval job closes the active session once it is older than the stale
threshold and sends the final summary. The job is re-registered at every
startup, so it lives in the in-memory job store; a one-shot recovery pass
handles a session left over from an unclean shutdown.
"""

import logging
from datetime import timedelta

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from breakroom.config import (
    get_reaper_interval_seconds,
    get_recovery_session_threshold,
    get_stale_session_threshold,
)

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None

REAPER_JOB_ID = "break_session_reaper"


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def init_scheduler(interval_seconds: int | None = None) -> AsyncIOScheduler:
    """
    Initialize and start the APScheduler with the reaper job.

    Call this during app startup (in FastAPI lifespan).
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,
        },
    )
    _scheduler.add_job(
        reap_stale_sessions,
        trigger="interval",
        seconds=interval_seconds or get_reaper_interval_seconds(),
        id=REAPER_JOB_ID,
        replace_existing=True,
    )
    _scheduler.start()
    logger.info("Break session reaper started")

    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Break session reaper stopped")


# =============================================================================
# Jobs
# =============================================================================


async def reap_stale_sessions(threshold: timedelta | None = None) -> dict | None:
    """
    Complete the active session if it is stale and announce the result.

    This is the job function called by APScheduler. It never raises: a
    failure is logged and reported, and the next tick tries again.

    Returns:
        Delivery counts when a session was closed, otherwise None
    """
    from breakroom.notifications.actions import announce_auto_completed
    from breakroom.sessions import auto_complete_stale

    threshold = threshold or get_stale_session_threshold()

    try:
        session = await auto_complete_stale(threshold)
        if not session:
            return None

        logger.info(f"Reaper completed session {session['session_id']}")
        return await announce_auto_completed(session, threshold)

    except Exception as e:
        logger.error(f"Reaper run failed: {e}")
        sentry_sdk.capture_exception(e)
        return None


async def recover_stale_session(threshold: timedelta | None = None) -> dict | None:
    """
    Complete a session left active by a previous run.

    Runs once at startup, before the reaper. Nothing is announced: the
    session is long over and its participants have moved on.

    Returns:
        The completed session, or None
    """
    from breakroom.sessions import auto_complete_stale

    threshold = threshold or get_recovery_session_threshold()

    try:
        session = await auto_complete_stale(threshold)
    except Exception as e:
        logger.error(f"Startup recovery failed: {e}")
        sentry_sdk.capture_exception(e)
        return None

    if session:
        logger.info(f"Recovered stale session {session['session_id']}")
    return session
