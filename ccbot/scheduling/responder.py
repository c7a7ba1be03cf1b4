"""Answer marker reactions on scheduled messages with one randomized response."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum

from ccbot.scheduling.correlator import SendCorrelator
from ccbot.scheduling.errors import ChannelUnavailable, DeliveryFailed
from ccbot.scheduling.gateway import ChatGateway
from ccbot.scheduling.render import render_message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactionEvent:
    message_id: str
    channel_id: str
    user_id: str
    emoji: str
    # Known up front for gateway events that carry it; fetched otherwise
    message_author_id: str | None = None


class ReactionOutcome(str, Enum):
    IGNORED = "ignored"
    ALREADY_RESPONDED = "already_responded"
    UNKNOWN_MESSAGE = "unknown_message"
    NO_RESPONSE = "no_response"
    CHANNEL_UNAVAILABLE = "channel_unavailable"
    DELIVERY_FAILED = "delivery_failed"
    SENT = "sent"


class ReactionResponder:
    """Resolves a reaction to the send that produced the message and responds at most once.

    The responded set is committed before any response I/O. A failed send
    still counts as responded.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        correlator: SendCorrelator,
        marker_emoji: str,
        *,
        rng: random.Random | None = None,
    ) -> None:
        self._gateway = gateway
        self._correlator = correlator
        self._marker_emoji = marker_emoji
        self._rng = rng or random.Random()
        self._responded: set[str] = set()

    def has_responded(self, message_id: str) -> bool:
        return str(message_id) in self._responded

    async def handle(self, event: ReactionEvent) -> ReactionOutcome:
        bot_user_id = self._gateway.bot_user_id
        if bot_user_id is not None and event.user_id == bot_user_id:
            return ReactionOutcome.IGNORED
        if event.emoji != self._marker_emoji:
            return ReactionOutcome.IGNORED

        author_id = event.message_author_id
        if author_id is None:
            try:
                author_id = await self._gateway.fetch_message_author(
                    event.channel_id, event.message_id
                )
            except (ChannelUnavailable, DeliveryFailed) as e:
                logger.error(f"Failed to fetch reacted message {event.message_id}: {e}")
                return ReactionOutcome.IGNORED
        if author_id is None or author_id != bot_user_id:
            return ReactionOutcome.IGNORED

        # Check and insert with no await in between
        if event.message_id in self._responded:
            return ReactionOutcome.ALREADY_RESPONDED
        self._responded.add(event.message_id)

        record = self._correlator.lookup(event.message_id)
        if record is None:
            logger.info(
                f"Reaction on message {event.message_id} has no send record "
                f"(not a scheduled send, or sent before this process started)"
            )
            return ReactionOutcome.UNKNOWN_MESSAGE

        definition = record.definition
        if not definition.enabled or not definition.responses:
            logger.info(f"Schedule '{definition.name}' is disabled or has no responses")
            return ReactionOutcome.NO_RESPONSE

        response = self._rng.choice(definition.responses)
        image_url = None
        if definition.images_enabled and definition.images:
            image_url = self._rng.choice(definition.images)

        content = render_message(
            response.content,
            mention_role=definition.mention_role,
            rng=self._rng,
        )
        if response.title:
            content = f"**{response.title}**\n{content}"

        try:
            channel = await self._correlator.resolve_channel(definition.response_channel_id)
        except ChannelUnavailable as e:
            logger.error(f"Response for '{definition.name}' not sent: {e}")
            return ReactionOutcome.CHANNEL_UNAVAILABLE

        try:
            await self._gateway.send_message(channel, content, image_url=image_url)
        except (ChannelUnavailable, DeliveryFailed) as e:
            logger.error(f"Response for '{definition.name}' failed to send to #{channel.name}: {e}")
            return ReactionOutcome.DELIVERY_FAILED

        logger.info(
            f"Automatic response for '{definition.name}' sent to #{channel.name} "
            f"(reaction on message {event.message_id})"
        )
        return ReactionOutcome.SENT
