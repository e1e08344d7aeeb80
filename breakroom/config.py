"""
Centralized configuration for Breakroom.

All settings come from environment variables (loaded from .env / .env.local
by main.py and the root conftest.py).
"""

import os
from datetime import timedelta


def is_dev_mode() -> bool:
    """Check if running in development mode (--dev flag or DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_local_timezone() -> str:
    """Timezone used for "today" (remote status) and working hours."""
    return os.getenv("BREAK_TIMEZONE", "UTC")


def get_working_hours() -> tuple[int, int]:
    """
    Get the (start_hour, end_hour) window in which breaks can be called.

    end_hour is exclusive: (9, 23) allows 09:00-22:59.
    """
    start = int(os.getenv("WORKING_HOURS_START", "9"))
    end = int(os.getenv("WORKING_HOURS_END", "23"))
    return start, end


def is_working_hours(hour: int) -> bool:
    """Check whether a local hour falls inside working hours."""
    start, end = get_working_hours()
    return start <= hour < end


def get_reaper_interval_seconds() -> int:
    """How often the reaper looks for stale sessions."""
    return int(os.getenv("REAPER_INTERVAL_SECONDS", "60"))


def get_stale_session_threshold() -> timedelta:
    """Age after which the recurring reaper completes an active session."""
    return timedelta(minutes=int(os.getenv("STALE_SESSION_MINUTES", "15")))


def get_recovery_session_threshold() -> timedelta:
    """Age after which the startup recovery pass completes a leftover session."""
    return timedelta(minutes=int(os.getenv("RECOVERY_SESSION_MINUTES", "60")))


def get_hidden_usernames() -> frozenset[str]:
    """
    Usernames that are always hidden from summaries and notifications.

    Comma-separated, case-insensitive.
    """
    raw = os.getenv("HIDDEN_USERNAMES", "eyerise")
    return frozenset(name.strip().lower() for name in raw.split(",") if name.strip())


# Required environment variables
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("DISCORD_BOT_TOKEN", "Discord bot token", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        if os.environ.get(name):
            continue
        if required_in_dev or not in_dev:
            errors.append(f"  ✗ {name}: Not set ({description})")
        else:
            warnings.append(f"  ⚠ {name}: Not set ({description})")

    return not errors, errors + warnings
