"""Chat-gateway boundary used by the scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class ChannelRef:
    """A resolved channel. ``handle`` is the transport's own channel object."""

    id: str
    name: str
    postable: bool = True
    handle: Any = field(default=None, compare=False, repr=False)


class ChatGateway(Protocol):
    """Transport primitives the engine needs.

    Implementations translate transport errors into ``ChannelUnavailable``
    and ``DeliveryFailed``; ids are strings throughout.
    """

    @property
    def bot_user_id(self) -> str | None: ...

    async def fetch_channel(self, channel_id: str) -> ChannelRef | None: ...

    async def send_message(
        self,
        channel: ChannelRef,
        content: str,
        *,
        image_url: str | None = None,
    ) -> str: ...

    async def add_reaction(self, channel: ChannelRef, message_id: str, emoji: str) -> None: ...

    async def fetch_message_author(self, channel_id: str, message_id: str) -> str | None: ...
