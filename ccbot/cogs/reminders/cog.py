"""Scheduled reminder and reaction response cog."""

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ccbot.core.guards import admin_only
from ccbot.scheduling import ReactionEvent, ReactionOutcome, SchedulingEngine

logger = logging.getLogger(__name__)

# Discord message length limit
MAX_MESSAGE_LENGTH = 2000


class RemindersCog(commands.Cog):
    """Feeds gateway events into the scheduling engine"""

    def __init__(self, bot: commands.Bot, engine: SchedulingEngine):
        self.bot = bot
        self.engine = engine

    async def cog_load(self) -> None:
        # Reloaded while connected: on_ready will not fire again
        if self.bot.is_ready():
            self._start_engine()

    async def cog_unload(self) -> None:
        await self.engine.stop()

    def _start_engine(self) -> None:
        if self.engine.started:
            return
        armed = self.engine.start()
        logger.info(f"Scheduler started with {len(armed)} armed triggers")

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        self._start_engine()

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        author_id = payload.message_author_id
        event = ReactionEvent(
            message_id=str(payload.message_id),
            channel_id=str(payload.channel_id),
            user_id=str(payload.user_id),
            emoji=str(payload.emoji),
            message_author_id=str(author_id) if author_id else None,
        )
        outcome = await self.engine.handle_reaction(event)
        if outcome is not ReactionOutcome.IGNORED:
            logger.debug(f"Reaction on {payload.message_id} by {payload.user_id}: {outcome.value}")

    # ==================== Commands ====================

    @app_commands.command(name="schedules", description="List armed reminder triggers")
    @admin_only()
    async def list_schedules(self, interaction: discord.Interaction):
        triggers = self.engine.runner.triggers
        if not triggers:
            await interaction.response.send_message("No reminders are armed.", ephemeral=True)
            return

        lines = ["**Armed reminders:**"]
        for trigger in sorted(triggers, key=lambda t: t.next_fire_at or discord.utils.utcnow()):
            when = (
                discord.utils.format_dt(trigger.next_fire_at, "F")
                if trigger.next_fire_at
                else "firing"
            )
            lines.append(f"- {trigger.definition.name} ({trigger.kind}) → {when}")

        text = "\n".join(lines)
        if len(text) > MAX_MESSAGE_LENGTH:
            text = text[: MAX_MESSAGE_LENGTH - 1] + "…"
        await interaction.response.send_message(text, ephemeral=True)

    @app_commands.command(name="schedules-reload", description="Reload reminders from the schedule file")
    @admin_only()
    async def reload_schedules(self, interaction: discord.Interaction):
        armed = self.engine.reload()
        message = f"Reloaded: {len(armed)} triggers armed."
        if self.engine.store.last_error:
            message += f"\nSchedule file error: {self.engine.store.last_error[:500]}"
        await interaction.response.send_message(message, ephemeral=True)
        logger.info(f"Schedules reloaded by {interaction.user} ({len(armed)} triggers)")
