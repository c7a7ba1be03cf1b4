"""The scheduling engine: one object owning all scheduler and reaction state."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ccbot.scheduling.compiler import Clock, RecurrenceCompiler, utc_now
from ccbot.scheduling.correlator import SendCorrelator
from ccbot.scheduling.errors import ChannelUnavailable, DeliveryFailed
from ccbot.scheduling.gateway import ChatGateway
from ccbot.scheduling.responder import ReactionEvent, ReactionOutcome, ReactionResponder
from ccbot.scheduling.runner import ArmedTrigger, ScheduleRunner, Sleep
from ccbot.shared.models.schedule import ScheduleDefinition

if TYPE_CHECKING:
    from ccbot.shared.repositories.schedule import ScheduleStore

logger = logging.getLogger(__name__)


class SchedulingEngine:
    """Wires store → compiler → runner → correlator → responder.

    Constructed once at startup and handed to whatever receives gateway
    events. The responded set, the send records and the armed triggers
    are reachable only through this object.
    """

    def __init__(
        self,
        store: ScheduleStore,
        gateway: ChatGateway,
        *,
        default_timezone: str = "Europe/Stockholm",
        marker_emoji: str = "❤️",
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.compiler = RecurrenceCompiler(default_timezone, clock=clock)
        self.correlator = SendCorrelator(gateway, marker_emoji, clock=clock, rng=rng)
        self.responder = ReactionResponder(gateway, self.correlator, marker_emoji, rng=rng)
        self.runner = ScheduleRunner(self.compiler, self._on_fire, clock=clock, sleep=sleep)
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> list[ArmedTrigger]:
        """Load definitions, arm them, and begin watching the store. Idempotent."""
        if self._started:
            return list(self.runner.triggers)
        self._started = True
        armed = self.reload()
        self.store.start_watching(self.rearm)
        return armed

    def reload(self) -> list[ArmedTrigger]:
        """Rearm from the store. A malformed file leaves the current triggers armed."""
        definitions = self.store.load()
        if self.store.last_error:
            logger.error(
                f"Schedule reload aborted, keeping {len(self.runner.triggers)} armed triggers"
            )
            return list(self.runner.triggers)
        return self.rearm(definitions)

    def rearm(self, definitions: Sequence[ScheduleDefinition]) -> list[ArmedTrigger]:
        return self.runner.rearm(definitions)

    async def stop(self) -> None:
        await self.store.stop_watching()
        await self.runner.shutdown()
        self._started = False

    async def handle_reaction(self, event: ReactionEvent) -> ReactionOutcome:
        try:
            return await self.responder.handle(event)
        except Exception as e:
            logger.exception(f"Reaction handling failed for message {event.message_id}: {e}")
            return ReactionOutcome.DELIVERY_FAILED

    async def _on_fire(self, definition: ScheduleDefinition) -> None:
        try:
            await self.correlator.fire_and_record(definition)
        except ChannelUnavailable as e:
            logger.error(f"Scheduled message '{definition.name}' not sent: {e}")
        except DeliveryFailed as e:
            logger.error(f"Scheduled message '{definition.name}' failed to send: {e}")
