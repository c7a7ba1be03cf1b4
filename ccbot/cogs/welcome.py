"""
Welcome Cog
Greets new members in the configured welcome channel
"""

import logging

import discord
from discord.ext import commands

from ccbot.config import get_settings

logger = logging.getLogger(__name__)

WELCOME_COLOR = discord.Color.from_str("#00FF00")


def build_welcome_embed(member: discord.Member) -> discord.Embed:
    embed = discord.Embed(
        title="Welcome!",
        description=(
            f"Hello {member.mention}, welcome to **{member.guild.name}**! "
            "We're happy to have you."
        ),
        color=WELCOME_COLOR,
    )
    embed.set_thumbnail(url=member.display_avatar.url)
    return embed


class Welcome(commands.Cog):
    """New member greetings"""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_member_join(self, member: discord.Member):
        channel_id = get_settings().welcome_channel_id
        if not channel_id:
            logger.error("WELCOME_CHANNEL_ID is not set, skipping welcome message")
            return

        try:
            channel = member.guild.get_channel(channel_id) or await member.guild.fetch_channel(
                channel_id
            )
        except (discord.NotFound, discord.Forbidden, discord.HTTPException) as e:
            logger.error(f"Welcome channel {channel_id} unavailable: {e}")
            return

        if not isinstance(channel, discord.TextChannel):
            logger.error("Welcome channel not found or is not a text channel")
            return

        try:
            await channel.send(embed=build_welcome_embed(member))
            logger.info(f"Welcomed {member} in {member.guild.name}")
        except (discord.Forbidden, discord.HTTPException) as e:
            logger.error(f"Error sending welcome message: {e}")


async def setup(bot: commands.Bot):
    """Load the cog"""
    await bot.add_cog(Welcome(bot))
