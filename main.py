"""
Breakroom server.

FastAPI, the Discord bot and the stale-session reaper share one asyncio
loop in one process. The FastAPI lifespan starts the other two and tears
them down again, and uvicorn takes care of signals.

Usage: python main.py [--no-bot] [--port PORT]
"""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Paths first: breakroom/ and discord_bot/ must be importable below
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))
# Appended so "cogs.*" resolves while this main.py keeps precedence
sys.path.append(str(project_root / "discord_bot"))

from dotenv import load_dotenv

# .env.local wins over .env because it is loaded first
load_dotenv(project_root / ".env.local")
load_dotenv()

import sentry_sdk
from fastapi import FastAPI

from breakroom.config import check_required_env_vars, get_api_port
from breakroom.database import close_engine, is_configured, ping
from breakroom.notifications.scheduler import (
    init_scheduler,
    recover_stale_session,
    shutdown_scheduler,
)
from breakroom.sessions import get_active_session, get_summary

from discord_bot.main import bot

logger = logging.getLogger(__name__)

_bot_task: asyncio.Task | None = None


def init_sentry() -> None:
    """Enable Sentry error reporting when SENTRY_DSN is set."""
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
        traces_sample_rate=0.0,
    )
    logger.info("Sentry enabled")


def bot_disabled() -> bool:
    return os.getenv("DISABLE_DISCORD_BOT", "").lower() in ("true", "1", "yes")


async def start_bot():
    """
    Connect the bot to Discord.

    bot.start() returns control to the loop, unlike bot.run(), so the bot
    can live next to uvicorn.
    """
    if bot_disabled():
        logger.info("Discord bot disabled (--no-bot or DISABLE_DISCORD_BOT)")
        return

    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.warning("DISCORD_BOT_TOKEN not set, Discord bot will not start")
        return

    try:
        await bot.start(token)
    except Exception as e:
        logger.error(f"Discord bot error: {e}")
        raise


async def stop_bot():
    if bot and not bot.is_closed():
        await bot.close()
        logger.info("Discord bot stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Start and stop the bot and the reaper around the web server.

    A break left active by a crash is closed before the reaper starts.
    """
    global _bot_task

    ok, messages = check_required_env_vars()
    for message in messages:
        logger.warning(message)
    if not ok:
        logger.error("Missing required environment variables")

    if is_configured():
        await recover_stale_session()
        init_scheduler()
    else:
        logger.warning("DATABASE_URL not set, reaper will not start")

    logger.info("Starting Discord bot...")
    _bot_task = asyncio.create_task(start_bot())

    yield

    logger.info("Shutting down reaper, bot and database pool...")
    shutdown_scheduler()
    await stop_bot()
    if _bot_task:
        _bot_task.cancel()
        try:
            await _bot_task
        except asyncio.CancelledError:
            pass
    await close_engine()


app = FastAPI(
    title="Breakroom",
    lifespan=lifespan,
)


@app.get("/api/status")
async def api_status():
    """Bot state plus the active break, if any."""
    session = await get_active_session() if is_configured() else None
    active = None
    if session:
        active = {
            "session_id": session["session_id"],
            "initiator_id": session["initiator_id"],
            "created_at": session["created_at"].isoformat(),
            "summary": await get_summary(session["session_id"]),
        }
    return {
        "status": "ok",
        "bot_ready": bot.is_ready(),
        "active_session": active,
    }


@app.get("/health")
async def health():
    """Liveness plus bot and database reachability."""
    database_ok = await ping() if is_configured() else None
    bot_ready = bot.is_ready()
    return {
        "status": "healthy" if database_ok is not False else "degraded",
        "database_connected": database_ok,
        "bot_connected": bot_ready,
        "bot_latency_ms": round(bot.latency * 1000) if bot_ready else None,
    }


if __name__ == "__main__":
    import argparse
    import uvicorn

    parser = argparse.ArgumentParser(description="Breakroom Server")
    parser.add_argument(
        "--no-bot",
        action="store_true",
        help="Run the API and reaper without connecting to Discord",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=get_api_port(),
        help="HTTP port (default: API_PORT or 8000)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_sentry()

    # Read by start_bot() inside the lifespan
    if args.no_bot:
        os.environ["DISABLE_DISCORD_BOT"] = "true"

    # The app object, not an import string, so main.py is not imported twice
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
    )
