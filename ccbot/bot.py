"""
ccbot Discord bot
discord.py 2.x with slash commands
"""

import asyncio
import logging

import discord
from discord import app_commands
from discord.ext import commands
from dotenv import load_dotenv

from ccbot.cogs.reminders.constants import DEFAULT_SCHEDULES
from ccbot.config import PROJECT_DIR, Settings, get_settings
from ccbot.core import DiscordGateway, setup_logging
from ccbot.core.rate_limiter import RateLimiter
from ccbot.http_server import ApiServer
from ccbot.scheduling import SchedulingEngine
from ccbot.shared.repositories import ChannelListStore, ImageStore, ScheduleStore

logger = logging.getLogger(__name__)


class CommunityBot(commands.Bot):
    """Community bot client owning the scheduling engine and the file stores"""

    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        intents.message_content = True  # image mirror reads attachments and embeds
        intents.members = True  # welcome greeting
        intents.reactions = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )

        self.settings = settings
        self.initial_extensions = [
            "ccbot.cogs.reminders",
            "ccbot.cogs.welcome",
            "ccbot.cogs.channels",
            "ccbot.cogs.images",
        ]

        self.schedule_store = ScheduleStore(
            settings.schedules_path,
            defaults=DEFAULT_SCHEDULES,
            poll_interval=settings.schedule_poll_interval,
        )
        self.channel_list = ChannelListStore(settings.channels_path)
        self.image_store = ImageStore(settings.assets_path, settings.public_base_url)
        self.engine = SchedulingEngine(
            self.schedule_store,
            DiscordGateway(self),
            default_timezone=settings.default_timezone,
            marker_emoji=settings.marker_emoji,
        )
        self.http_server = ApiServer(
            self.schedule_store,
            self.image_store,
            bot=self,
            host=settings.http_host,
            port=settings.port,
            api_token=settings.api_token,
            cors_origins=settings.cors_origins,
            rate_limiter=RateLimiter(settings.rate_limit_requests, settings.rate_limit_window),
        )

    async def setup_hook(self):
        """Load cogs, sync slash commands and start the HTTP server"""
        loaded = []
        failed = []

        for extension in self.initial_extensions:
            try:
                await self.load_extension(extension)
                loaded.append(extension.split(".")[-1])
            except Exception as e:
                logger.exception(f"Failed to load extension {extension}: {e}")
                failed.append(f"{extension.split('.')[-1]} ({e})")

        if loaded:
            logger.info(f"Loaded cogs: {', '.join(loaded)}")
        if failed:
            logger.error(f"Failed to load: {', '.join(failed)}")

        self.tree.error(self.on_app_command_error)

        logger.info("Syncing slash commands...")
        guild_id = self.settings.discord_guild_id
        if guild_id:
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info(f"Slash commands synced to guild {guild_id}")
        else:
            await self.tree.sync()
            logger.info("Slash commands synced globally")

        await self.http_server.start()
        logger.info("Connecting to Discord...")

    async def on_ready(self):
        await self.change_presence(
            status=self.settings.get_status(), activity=self.settings.get_activity()
        )

        activity = self.settings.get_activity()
        logger.info(f"Bot ready: {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guilds | discord.py {discord.__version__}")
        logger.info(
            f"Presence: {self.settings.get_status().name} | "
            f"{activity.name if activity else 'none'}"
        )

    async def on_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ):
        """Reply ephemerally to failed slash commands"""
        if isinstance(error, app_commands.CheckFailure):
            message = str(error) or "You do not have permission to use this command."
        else:
            command = interaction.command.name if interaction.command else "unknown"
            logger.exception(f"Slash command '{command}' failed: {error}", exc_info=error)
            message = "An error occurred while running this command."

        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Could not report command error: {e}")

    async def close(self):
        await self.engine.stop()
        await self.http_server.stop()
        await super().close()


async def main():
    """Bot entry point"""
    load_dotenv(dotenv_path=PROJECT_DIR / ".env", encoding="utf-8")
    settings = get_settings()
    setup_logging(settings.log_level)

    if not settings.discord_bot_token:
        logger.error("DISCORD_BOT_TOKEN environment variable not found")
        logger.error("Set it in the .env file: DISCORD_BOT_TOKEN=your_token_here")
        return

    async with CommunityBot(settings) as bot:
        try:
            await bot.start(settings.discord_bot_token)
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()
