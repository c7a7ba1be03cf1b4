"""discord.py implementation of the scheduling engine's chat gateway."""

import logging

import discord
from discord.ext import commands

from ccbot.scheduling.errors import ChannelUnavailable, DeliveryFailed
from ccbot.scheduling.gateway import ChannelRef

logger = logging.getLogger(__name__)


class DiscordGateway:
    """Resolves channels and sends messages through a running bot"""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def bot_user_id(self) -> str | None:
        return str(self.bot.user.id) if self.bot.user else None

    async def fetch_channel(self, channel_id: str) -> ChannelRef | None:
        try:
            snowflake = int(channel_id)
        except (TypeError, ValueError):
            return None

        channel = self.bot.get_channel(snowflake)
        if channel is None:
            try:
                channel = await self.bot.fetch_channel(snowflake)
            except discord.NotFound:
                return None
            except (discord.Forbidden, discord.HTTPException) as e:
                raise ChannelUnavailable(channel_id, f"unreadable ({e})") from e

        return ChannelRef(
            id=str(channel.id),
            name=getattr(channel, "name", str(channel.id)),
            postable=isinstance(channel, discord.abc.Messageable),
            handle=channel,
        )

    async def send_message(
        self,
        channel: ChannelRef,
        content: str,
        *,
        image_url: str | None = None,
    ) -> str:
        embed = None
        if image_url:
            embed = discord.Embed(color=discord.Color.red())
            embed.set_image(url=image_url)

        try:
            message = await channel.handle.send(content=content or None, embed=embed)
        except (discord.Forbidden, discord.HTTPException) as e:
            raise DeliveryFailed(f"send to #{channel.name} rejected: {e}") from e
        return str(message.id)

    async def add_reaction(self, channel: ChannelRef, message_id: str, emoji: str) -> None:
        try:
            await channel.handle.get_partial_message(int(message_id)).add_reaction(emoji)
        except (discord.Forbidden, discord.NotFound, discord.HTTPException) as e:
            raise DeliveryFailed(f"reaction on {message_id} rejected: {e}") from e

    async def fetch_message_author(self, channel_id: str, message_id: str) -> str | None:
        channel = await self.fetch_channel(channel_id)
        if channel is None or not channel.postable:
            raise ChannelUnavailable(channel_id)
        try:
            message = await channel.handle.fetch_message(int(message_id))
        except discord.NotFound:
            return None
        except (discord.Forbidden, discord.HTTPException) as e:
            raise DeliveryFailed(f"fetch of message {message_id} rejected: {e}") from e
        return str(message.author.id)
