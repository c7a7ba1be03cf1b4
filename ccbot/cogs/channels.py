"""
Image channel list Cog
Admin commands for the list of channels the image mirror scans
"""

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ccbot.core.guards import admin_only
from ccbot.shared.repositories import ChannelListStore

logger = logging.getLogger(__name__)


class Channels(commands.Cog):
    """Image channel list management"""

    def __init__(self, bot: commands.Bot, channel_list: ChannelListStore):
        self.bot = bot
        self.channel_list = channel_list

    @app_commands.command(name="pic-channel-add", description="Add a channel for image processing")
    @app_commands.describe(channel="Text channel to mirror images from")
    @admin_only()
    async def add_channel(self, interaction: discord.Interaction, channel: discord.TextChannel):
        if not self.channel_list.add(channel.id):
            await interaction.response.send_message("Channel is already added.", ephemeral=True)
            return

        await interaction.response.send_message("Channel is successfully added.", ephemeral=True)
        logger.info(f"Image channel added | #{channel.name} ({channel.id}) | by {interaction.user}")

    @app_commands.command(
        name="pic-channel-remove", description="Remove a channel from image processing"
    )
    @app_commands.describe(channel_id="ID of the channel to remove")
    @admin_only()
    async def remove_channel(self, interaction: discord.Interaction, channel_id: str):
        if not self.channel_list.remove(channel_id.strip()):
            await interaction.response.send_message("Channel not found in the list.", ephemeral=True)
            return

        await interaction.response.send_message("Channel successfully removed.", ephemeral=True)
        logger.info(f"Image channel removed | {channel_id} | by {interaction.user}")

    @app_commands.command(name="pic-channel-list", description="List channels added for image processing")
    @admin_only()
    async def list_channels(self, interaction: discord.Interaction):
        channel_ids = self.channel_list.list_all()
        if not channel_ids:
            await interaction.response.send_message("No channels have been added yet.", ephemeral=True)
            return

        lines = ["**Channels added for image processing:**"]
        for channel_id in channel_ids:
            channel = (
                interaction.guild.get_channel(int(channel_id))
                if interaction.guild and channel_id.isdigit()
                else None
            )
            name = channel.name if channel else "Unknown Channel"
            lines.append(f"- {name} (ID: {channel_id})")

        await interaction.response.send_message("\n".join(lines), ephemeral=True)


async def setup(bot: commands.Bot):
    """Load the cog"""
    await bot.add_cog(Channels(bot, bot.channel_list))  # type: ignore[attr-defined]
