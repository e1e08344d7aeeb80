"""Discord notification delivery channel (DMs with optional buttons)."""

import asyncio
import logging

import discord
from discord import Client

from breakroom.notifications.plans import Action

logger = logging.getLogger(__name__)


# Set by main.py when bot starts
_bot: Client | None = None

# Serialize DMs to stay under Discord's rate limits
_dm_semaphore: asyncio.Semaphore | None = None

DM_DELAY_SECONDS = 0.2


def set_bot(bot: Client | None) -> None:
    """Set the Discord bot instance for sending messages."""
    global _bot, _dm_semaphore
    _bot = bot
    _dm_semaphore = asyncio.Semaphore(1) if bot else None


def get_bot() -> Client | None:
    return _bot


def build_action_view(actions: list[Action] | None) -> discord.ui.View | None:
    """
    Build a persistent view with one button per action.

    The button custom_id is the action token; clicks are routed by the
    bot's interaction listener, not by callbacks on the view, so the
    buttons keep working after a restart.
    """
    if not actions:
        return None

    view = discord.ui.View(timeout=None)
    for action in actions:
        view.add_item(
            discord.ui.Button(
                label=action.label,
                custom_id=action.token,
                style=discord.ButtonStyle.secondary,
            )
        )
    return view


async def _send(participant_id: int, message: str, view: discord.ui.View | None):
    user = await _bot.fetch_user(int(participant_id))
    if view is not None:
        await user.send(message, view=view)
    else:
        await user.send(message)


async def send_discord_dm(
    participant_id: int,
    message: str,
    actions: list[Action] | None = None,
) -> bool:
    """
    Send a direct message to a Discord user.

    Args:
        participant_id: Discord user ID
        message: Message content
        actions: Buttons to attach, if any

    Returns:
        True if sent successfully, False otherwise
    """
    if not _bot:
        logger.warning("Discord bot not configured for notifications")
        return False

    view = build_action_view(actions)

    try:
        if _dm_semaphore:
            async with _dm_semaphore:
                await _send(participant_id, message, view)
                await asyncio.sleep(DM_DELAY_SECONDS)
        else:
            await _send(participant_id, message, view)
        return True

    except Exception as e:
        logger.warning(f"Failed to send DM to {participant_id}: {e}")
        return False
