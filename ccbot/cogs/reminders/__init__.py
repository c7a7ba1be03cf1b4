"""Scheduled reminder feature module."""

from discord.ext import commands

from .cog import RemindersCog

__all__ = ["RemindersCog", "setup"]


async def setup(bot: commands.Bot) -> None:
    """Extension entry point."""
    await bot.add_cog(RemindersCog(bot, bot.engine))  # type: ignore[attr-defined]
