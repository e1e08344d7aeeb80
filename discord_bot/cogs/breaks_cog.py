"""
Breaks Cog - Discord adapter for break sessions.

Slash commands plus the invitation buttons. All business logic lives in
breakroom/; this cog registers the user, calls the coordinator, and turns
the outcome into replies.
"""

import logging

import discord
import sentry_sdk
from discord import app_commands
from discord.ext import commands

from breakroom import clock
from breakroom.config import (
    get_stale_session_threshold,
    get_working_hours,
    is_working_hours,
)
from breakroom.notifications.actions import (
    announce_cancelled,
    announce_launch,
    announce_response,
)
from breakroom.notifications.channels.discord import build_action_view
from breakroom.notifications.plans import (
    CANCEL_ACTION,
    RESPONSE_ACK_TYPES,
    RESPONSE_ACTIONS,
    Outbound,
    is_action_token,
    parse_action_token,
)
from breakroom.notifications.templates import get_message
from breakroom.participants import (
    CoordinationError,
    ParticipantNotFoundError,
    display_name,
    get_participant,
    register_participant,
)
from breakroom.remote_status import clear_remote
from breakroom.sessions import (
    NotInitiatorError,
    SessionAlreadyActiveError,
    SessionNotActiveError,
    SessionNotFoundError,
    cancel_session,
    get_active_session,
    get_summary,
    launch_session,
    respond_to_session,
)

logger = logging.getLogger(__name__)


# Expected errors -> user-facing message type
ERROR_MESSAGES = {
    SessionAlreadyActiveError: "error_already_active",
    SessionNotFoundError: "error_session_not_found",
    SessionNotActiveError: "error_session_not_active",
    NotInitiatorError: "error_not_initiator",
    ParticipantNotFoundError: "error_participant_not_found",
}


def error_message(error: CoordinationError) -> str:
    """User-facing text for an expected coordination error."""
    return get_message(ERROR_MESSAGES.get(type(error), "error_generic"))


class BreaksCog(commands.Cog):
    """Cog for calling smoke breaks and answering invitations."""

    def __init__(self, bot):
        self.bot = bot

    async def _register(self, user: discord.abc.User) -> dict:
        """Upsert the interacting user into the participant directory."""
        return await register_participant(
            user.id,
            user.name,
            first_name=getattr(user, "global_name", None) or user.display_name,
        )

    async def _reply(
        self,
        interaction: discord.Interaction,
        content: str,
        view: discord.ui.View | None = None,
        ephemeral: bool = True,
    ):
        """Send a response, using followup if the interaction was already responded to."""
        kwargs = {"ephemeral": ephemeral}
        if view is not None:
            kwargs["view"] = view
        if interaction.response.is_done():
            await interaction.followup.send(content, **kwargs)
        else:
            await interaction.response.send_message(content, **kwargs)

    async def _reply_outbounds(
        self,
        interaction: discord.Interaction,
        outbounds: list[Outbound],
        fallback: str | None = None,
    ):
        """Deliver messages addressed to the interacting user as replies."""
        if not outbounds:
            if fallback:
                await self._reply(interaction, fallback)
            return
        for outbound in outbounds:
            await self._reply(
                interaction, outbound.body, view=build_action_view(outbound.actions)
            )

    async def _fail(self, interaction: discord.Interaction, error: Exception, what: str):
        """Handle an error raised while serving an interaction."""
        if isinstance(error, CoordinationError):
            await self._reply(interaction, error_message(error))
            return

        logger.exception(f"Error handling {what} from {interaction.user.id}")
        sentry_sdk.capture_exception(error)
        await self._reply(interaction, get_message("error_generic"))

    # =========================================================================
    # Slash commands
    # =========================================================================

    @app_commands.command(name="start", description="Register and show the welcome message")
    async def start(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            participant = await self._register(interaction.user)
            await self._reply(
                interaction,
                get_message("welcome", context={"name": display_name(participant)}),
            )
        except Exception as e:
            await self._fail(interaction, e, "/start")

    @app_commands.command(name="help", description="How Breakroom works")
    async def help_command(self, interaction: discord.Interaction):
        start_hour, end_hour = get_working_hours()
        minutes = int(get_stale_session_threshold().total_seconds() // 60)
        await self._reply(
            interaction,
            get_message(
                "help",
                context={
                    "start_hour": start_hour,
                    "end_hour": end_hour,
                    "minutes": minutes,
                },
            ),
        )

    @app_commands.command(name="smoke", description="Invite colleagues for a smoke break")
    async def smoke(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        user_id = interaction.user.id
        try:
            await self._register(interaction.user)

            if not is_working_hours(clock.local_hour(clock.now())):
                start_hour, end_hour = get_working_hours()
                await self._reply(
                    interaction,
                    get_message(
                        "outside_working_hours",
                        context={"start_hour": start_hour, "end_hour": end_hour},
                    ),
                )
                return

            result = await launch_session(user_id)
            direct = await announce_launch(result, user_id)
            await self._reply_outbounds(interaction, direct, get_message("done"))
        except Exception as e:
            await self._fail(interaction, e, "/smoke")

    @app_commands.command(name="status", description="Show the current break status")
    async def status(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            await self._register(interaction.user)
            session = await get_active_session()
            if not session:
                await self._reply(interaction, get_message("no_active_session"))
                return
            await self._reply(interaction, await get_summary(session["session_id"]))
        except Exception as e:
            await self._fail(interaction, e, "/status")

    @app_commands.command(name="cancel", description="Cancel the current break (initiator only)")
    async def cancel(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            await self._register(interaction.user)
            session = await get_active_session()
            if not session:
                await self._reply(interaction, get_message("no_active_session"))
                return
            await self._cancel(interaction, session["session_id"])
        except Exception as e:
            await self._fail(interaction, e, "/cancel")

    @app_commands.command(name="office", description="Back in the office (get invitations again)")
    async def office(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            await self._register(interaction.user)
            participant = await get_participant(interaction.user.id)
            if not participant or not participant["is_remote_today"]:
                await self._reply(interaction, get_message("not_remote"))
                return
            await clear_remote(interaction.user.id)
            await self._reply(interaction, get_message("back_in_office"))
        except Exception as e:
            await self._fail(interaction, e, "/office")

    async def _cancel(self, interaction: discord.Interaction, session_id: int):
        user_id = interaction.user.id
        session = await cancel_session(session_id, user_id)
        direct = await announce_cancelled(session, user_id)
        await self._reply_outbounds(
            interaction, direct, get_message("session_cancelled_ack")
        )

    # =========================================================================
    # Buttons
    # =========================================================================

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction):
        """Route clicks on invitation / cancel buttons."""
        if interaction.type != discord.InteractionType.component:
            return

        token = (interaction.data or {}).get("custom_id")
        if not is_action_token(token):
            return

        await self.handle_action(interaction, token)

    async def _mark_source(self, interaction: discord.Interaction, text: str):
        """Append text to the clicked message and remove its buttons."""
        message = interaction.message
        if message is None:
            await self._reply(interaction, text)
            return
        await message.edit(content=f"{message.content}\n\n{text}", view=None)

    async def handle_action(self, interaction: discord.Interaction, token: str):
        """Apply a button action encoded in token."""
        try:
            action, session_id = parse_action_token(token)
        except ValueError:
            logger.warning(f"Ignoring malformed action token {token!r}")
            await self._reply(interaction, get_message("error_invalid_action"))
            return

        await interaction.response.defer()
        user_id = interaction.user.id

        try:
            await self._register(interaction.user)

            if action == CANCEL_ACTION:
                await self._cancel(interaction, session_id)
                await self._mark_source(
                    interaction, get_message("session_cancelled_marker")
                )
                return

            kind = RESPONSE_ACTIONS[action]
            await respond_to_session(session_id, user_id, kind)
            direct = await announce_response(session_id, user_id, kind, actor_id=user_id)
            await self._mark_source(interaction, get_message(RESPONSE_ACK_TYPES[kind]))
            await self._reply_outbounds(interaction, direct)

        except (SessionNotFoundError, SessionNotActiveError):
            await self._mark_source(interaction, get_message("session_inactive_marker"))
        except Exception as e:
            await self._fail(interaction, e, f"action {action}")


async def setup(bot):
    await bot.add_cog(BreaksCog(bot))
