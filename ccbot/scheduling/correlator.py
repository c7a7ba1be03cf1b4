"""Send scheduled reminders and remember which definition produced each message."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime

from ccbot.scheduling.compiler import Clock, utc_now
from ccbot.scheduling.errors import ChannelUnavailable, DeliveryFailed
from ccbot.scheduling.gateway import ChannelRef, ChatGateway
from ccbot.scheduling.render import render_message
from ccbot.shared.models.schedule import ScheduleDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendRecord:
    message_id: str
    channel_id: str
    definition: ScheduleDefinition
    sent_at: datetime


class SendCorrelator:
    """Maps outbound message ids to the definition that produced them.

    Records are kept for the lifetime of the process.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        marker_emoji: str,
        *,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
    ) -> None:
        self._gateway = gateway
        self._marker_emoji = marker_emoji
        self._clock = clock
        self._rng = rng or random.Random()
        self._records: dict[str, SendRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def lookup(self, message_id: str) -> SendRecord | None:
        return self._records.get(str(message_id))

    async def resolve_channel(self, channel_id: str) -> ChannelRef:
        """Fetch a channel and require it to accept messages.

        Raises:
            ChannelUnavailable: missing, unreadable, or not a text destination.
        """
        channel = await self._gateway.fetch_channel(channel_id)
        if channel is None:
            raise ChannelUnavailable(channel_id)
        if not channel.postable:
            raise ChannelUnavailable(channel_id, "not a text channel")
        return channel

    async def fire_and_record(self, definition: ScheduleDefinition) -> SendRecord:
        """Post the definition's reminder, record it, and seed the marker reaction.

        Raises:
            ChannelUnavailable: the source channel cannot be posted to.
            DeliveryFailed: the transport rejected the send.
        """
        channel = await self.resolve_channel(definition.source_channel)
        content = render_message(
            definition.message_content,
            mention_role=definition.mention_role,
            rng=self._rng,
        )
        message_id = await self._gateway.send_message(channel, content)

        record = SendRecord(
            message_id=str(message_id),
            channel_id=channel.id,
            definition=definition,
            sent_at=self._clock(),
        )
        self._records[record.message_id] = record
        logger.info(
            f"Scheduled message '{definition.name}' sent to #{channel.name} "
            f"(message {record.message_id})"
        )

        try:
            await self._gateway.add_reaction(channel, record.message_id, self._marker_emoji)
        except (DeliveryFailed, ChannelUnavailable) as e:
            logger.warning(f"Could not add marker reaction to message {record.message_id}: {e}")

        return record
