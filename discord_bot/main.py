"""
Breakroom Discord bot.

This bot rounds up colleagues for smoke breaks: one person calls a break,
everybody in the office gets an invitation with answer buttons.
"""

import logging
import os

import discord
from discord.ext import commands
from dotenv import load_dotenv

from breakroom.notifications.channels.discord import set_bot

logger = logging.getLogger(__name__)


def create_bot() -> commands.Bot:
    """Bot with default intents; everything runs through slash commands."""
    intents = discord.Intents.default()

    bot = commands.Bot(command_prefix="!", intents=intents)
    return bot


bot = create_bot()


# List of cogs to load (thin adapters, business logic in breakroom/)
COGS = [
    "cogs.breaks_cog",
]


@bot.event
async def on_ready():
    """Register the bot for DMs, load the cog and publish slash commands."""
    logger.info(f"Bot is ready! Logged in as {bot.user}")

    # Let the notification dispatcher send DMs through this bot
    set_bot(bot)

    # Load all cogs
    for cog in COGS:
        try:
            if cog not in bot.extensions:
                await bot.load_extension(cog)
                logger.info(f"Loaded {cog}")
        except Exception:
            logger.exception(f"Error loading {cog}")

    try:
        synced = await bot.tree.sync()
        logger.info(f"Synced {len(synced)} command(s)")
    except Exception:
        logger.exception("Error syncing commands")


def main():
    """Run the bot on its own, without the web server or reaper."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.error("DISCORD_BOT_TOKEN environment variable not set!")
        raise SystemExit(1)

    bot.run(token)


if __name__ == "__main__":
    main()
