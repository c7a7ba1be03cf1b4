"""Shared test fixtures and factories."""

import asyncio
import random
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from ccbot.scheduling import ChannelRef, DeliveryFailed
from ccbot.shared.models.schedule import ScheduleDefinition

BOT_USER_ID = "999"
SOURCE_CHANNEL = "100"
RESPONSE_CHANNEL = "200"

# =============================================================================
# Fakes
# =============================================================================


class FakeClock:
    """Manually advanced UTC clock; ``sleep`` moves time forward instead of waiting."""

    def __init__(self, now: datetime) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


class FakeGateway:
    """In-memory chat gateway recording every send and reaction."""

    def __init__(self, bot_user_id: str | None = BOT_USER_ID) -> None:
        self._bot_user_id = bot_user_id
        self.channels: dict[str, ChannelRef] = {}
        self.authors: dict[str, str] = {}
        self.sent: list[dict[str, Any]] = []
        self.reactions: list[tuple[str, str, str]] = []
        self.author_fetches = 0
        self.fail_send = False
        self.fail_reaction = False
        self._next_message_id = 5000

    @property
    def bot_user_id(self) -> str | None:
        return self._bot_user_id

    def add_channel(self, channel_id: str, name: str = "", postable: bool = True) -> ChannelRef:
        channel = ChannelRef(id=channel_id, name=name or f"channel-{channel_id}", postable=postable)
        self.channels[channel_id] = channel
        return channel

    async def fetch_channel(self, channel_id: str) -> ChannelRef | None:
        await asyncio.sleep(0)
        return self.channels.get(channel_id)

    async def send_message(
        self, channel: ChannelRef, content: str, *, image_url: str | None = None
    ) -> str:
        await asyncio.sleep(0)
        if self.fail_send:
            raise DeliveryFailed(f"send to #{channel.name} rejected")

        message_id = str(self._next_message_id)
        self._next_message_id += 1
        self.authors[message_id] = self._bot_user_id or ""
        self.sent.append(
            {
                "message_id": message_id,
                "channel_id": channel.id,
                "content": content,
                "image_url": image_url,
            }
        )
        return message_id

    async def add_reaction(self, channel: ChannelRef, message_id: str, emoji: str) -> None:
        await asyncio.sleep(0)
        if self.fail_reaction:
            raise DeliveryFailed(f"reaction on {message_id} rejected")
        self.reactions.append((channel.id, message_id, emoji))

    async def fetch_message_author(self, channel_id: str, message_id: str) -> str | None:
        self.author_fetches += 1
        await asyncio.sleep(0)
        return self.authors.get(message_id)


# =============================================================================
# Definition factories
# =============================================================================


def make_weekly(**overrides: Any) -> ScheduleDefinition:
    data: dict[str, Any] = {
        "name": "weekly-test",
        "type": "weekly",
        "sourceChannel": SOURCE_CHANNEL,
        "responseChannel": RESPONSE_CHANNEL,
        "hour": 9,
        "minute": 0,
        "second": 0,
        "dayOfWeek": 1,
        "timezone": "Europe/Stockholm",
        "messageContent": "Reminder for $(mention)",
        "responses": [{"title": "Event", "content": "Join us $(mention)!"}],
    }
    data.update(overrides)
    return ScheduleDefinition.model_validate(data)


def make_date(**overrides: Any) -> ScheduleDefinition:
    data: dict[str, Any] = {
        "name": "date-test",
        "type": "date",
        "sourceChannel": SOURCE_CHANNEL,
        "responseChannel": RESPONSE_CHANNEL,
        "year": 2025,
        "month": 1,
        "day": 10,
        "time": "12:00:00",
        "timezone": "Europe/Stockholm",
        "messageContent": "Event soon",
        "responses": [{"title": "", "content": "See you there"}],
    }
    data.update(overrides)
    return ScheduleDefinition.model_validate(data)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 0, 0, tzinfo=UTC))


@pytest.fixture
def gateway() -> FakeGateway:
    gw = FakeGateway()
    gw.add_channel(SOURCE_CHANNEL, "reminders")
    gw.add_channel(RESPONSE_CHANNEL, "social-media")
    return gw


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
