"""
Time source and local-day helpers.

Everything that needs "now" goes through clock.now() so tests can patch
breakroom.clock.now instead of sleeping.
"""

from datetime import datetime, timezone

import pytz

from .config import get_local_timezone


def now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def end_of_local_day(at: datetime, tz_name: str | None = None) -> datetime:
    """
    Return 23:59:59 of the local calendar day containing `at`, as UTC.

    Args:
        at: Timezone-aware instant
        tz_name: Timezone string (defaults to BREAK_TIMEZONE)

    Returns:
        Timezone-aware UTC datetime
    """
    tz = pytz.timezone(tz_name or get_local_timezone())
    local = at.astimezone(tz)
    # localize() picks the right UTC offset for that wall-clock time (DST)
    end_local = tz.localize(
        datetime(local.year, local.month, local.day, 23, 59, 59)
    )
    return end_local.astimezone(pytz.UTC)


def local_hour(at: datetime, tz_name: str | None = None) -> int:
    """Hour of day (0-23) of `at` in the local timezone."""
    tz = pytz.timezone(tz_name or get_local_timezone())
    return at.astimezone(tz).hour
