"""
Image mirror Cog
Copies images posted in listed channels into the static asset store
"""

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import aiohttp
import discord
from discord import app_commands
from discord.ext import commands

from ccbot.core.guards import admin_only
from ccbot.shared.repositories import ChannelListStore, ImageStore, orientation_for

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = aiohttp.ClientTimeout(total=30)


class ImageMirror:
    """Downloads message images and records them in an ImageStore"""

    def __init__(self, store: ImageStore):
        self.store = store

    async def download(self, session: aiohttp.ClientSession, url: str, path: Path) -> bool:
        try:
            async with session.get(url, timeout=DOWNLOAD_TIMEOUT) as resp:
                if resp.status != 200:
                    logger.warning(f"Failed to fetch image {url}: HTTP {resp.status}")
                    return False
                path.write_bytes(await resp.read())
        except (aiohttp.ClientError, TimeoutError, OSError) as e:
            logger.error(f"Error downloading image from {url}: {e}")
            return False

        logger.debug(f"Image downloaded: {path}")
        return True

    async def extract_infos(
        self, session: aiohttp.ClientSession, message: discord.Message, channel_name: str
    ) -> list[dict[str, Any]]:
        """Mirror a message's image attachments and embed images; returns their infos."""
        directory = self.store.channel_dir(channel_name)
        candidates: list[tuple[str, str, str | None]] = []

        for attachment in message.attachments:
            if not (attachment.content_type or "").startswith("image/"):
                continue
            ext = Path(attachment.filename).suffix or ".jpg"
            candidates.append(
                (
                    attachment.url,
                    f"{message.id}_{attachment.id}{ext}",
                    orientation_for(attachment.width, attachment.height),
                )
            )

        for index, embed in enumerate(e for e in message.embeds if e.image and e.image.url):
            url = str(embed.image.url)
            ext = Path(urlparse(url).path).suffix or ".jpg"
            candidates.append(
                (
                    url,
                    f"{message.id}_embed_{index}{ext}",
                    orientation_for(embed.image.width, embed.image.height),
                )
            )

        infos = []
        for url, filename, orientation in candidates:
            if orientation is None:
                logger.warning(f"Skipping image without dimensions: {url}")
                continue
            if await self.download(session, url, directory / filename):
                infos.append(
                    {"url": self.store.public_url(channel_name, filename), "orientation": orientation}
                )
        return infos

    async def mirror_message(self, message: discord.Message) -> list[dict[str, Any]]:
        channel_name = getattr(message.channel, "name", str(message.channel.id))
        async with aiohttp.ClientSession() as session:
            infos = await self.extract_infos(session, message, channel_name)
        if infos:
            self.store.save_infos(channel_name, infos)
        return infos

    async def rescan_channel(self, channel: discord.TextChannel) -> list[dict[str, Any]]:
        """Mirror every image in a channel's history and replace its index."""
        all_infos: list[dict[str, Any]] = []
        seen: set[str] = set()
        async with aiohttp.ClientSession() as session:
            async for message in channel.history(limit=None):
                for info in await self.extract_infos(session, message, channel.name):
                    if info["url"] not in seen:
                        seen.add(info["url"])
                        all_infos.append(info)

        self.store.save_infos(channel.name, all_infos, full_update=True)
        return all_infos


class Images(commands.Cog):
    """Image mirror commands"""

    def __init__(self, bot: commands.Bot, channel_list: ChannelListStore, image_store: ImageStore):
        self.bot = bot
        self.channel_list = channel_list
        self.mirror = ImageMirror(image_store)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot or not message.guild:
            return
        if not (message.attachments or message.embeds):
            return
        if not self.channel_list.contains(message.channel.id):
            return

        try:
            infos = await self.mirror.mirror_message(message)
            if infos:
                logger.info(f"Mirrored {len(infos)} images from #{message.channel}")
        except Exception as e:
            logger.exception(f"Error mirroring images from message {message.id}: {e}")

    @app_commands.command(name="pics", description="Rescan a listed channel's images")
    @app_commands.describe(channel="Channel to rescan")
    @admin_only()
    async def update_images(self, interaction: discord.Interaction, channel: discord.TextChannel):
        if not self.channel_list.contains(channel.id):
            await interaction.response.send_message(
                f"The channel {channel.name} is not added for image processing.", ephemeral=True
            )
            return

        await interaction.response.send_message(
            f"Updating image URLs for channel: {channel.name} (ID: {channel.id}), "
            "this may take a while...",
            ephemeral=True,
        )
        try:
            infos = await self.mirror.rescan_channel(channel)
        except (discord.Forbidden, discord.HTTPException, OSError) as e:
            logger.exception(f"Error updating images for #{channel.name}: {e}")
            await interaction.followup.send(
                "An error occurred while updating image URLs. Please check the logs.",
                ephemeral=True,
            )
            return

        await interaction.followup.send(
            f"Image URLs have been updated for channel: {channel.name} ({len(infos)} images).",
            ephemeral=True,
        )

    @app_commands.command(name="picsall", description="Rescan images of all listed channels")
    @admin_only()
    async def update_all_images(self, interaction: discord.Interaction):
        guild = interaction.guild
        if not guild:
            await interaction.response.send_message(
                "This command can only be used in a server.", ephemeral=True
            )
            return

        channels: list[discord.TextChannel] = []
        for channel_id in self.channel_list.list_all():
            channel = guild.get_channel(int(channel_id)) if channel_id.isdigit() else None
            if not isinstance(channel, discord.TextChannel):
                continue
            perms = channel.permissions_for(guild.me)
            if perms.view_channel and perms.read_message_history:
                channels.append(channel)

        if not channels:
            await interaction.response.send_message(
                "No channels are added for image processing.", ephemeral=True
            )
            return

        await interaction.response.send_message(
            "Updating image URLs for all added channels, this may take a while...", ephemeral=True
        )
        for channel in channels:
            try:
                infos = await self.mirror.rescan_channel(channel)
                logger.info(f"Updated {len(infos)} images for #{channel.name}")
            except (discord.Forbidden, discord.HTTPException, OSError) as e:
                logger.error(f"Error updating images for channel {channel.name}: {e}")

        await interaction.followup.send(
            "Image URLs have been updated for all added channels.", ephemeral=True
        )


async def setup(bot: commands.Bot):
    """Load the cog"""
    await bot.add_cog(Images(bot, bot.channel_list, bot.image_store))  # type: ignore[attr-defined]
