"""Root pytest configuration."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)


@pytest.fixture(autouse=True)
def no_discord_bot():
    """Make sure no test can reach a real Discord bot."""
    from breakroom.notifications.channels.discord import set_bot

    set_bot(None)
    yield
    set_bot(None)
