"""Own the armed triggers and rebuild them wholesale on every reload."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ccbot.scheduling.compiler import (
    Clock,
    OneShot,
    RecurrenceCompiler,
    RecurringRule,
    Trigger,
    utc_now,
)
from ccbot.scheduling.errors import SkippedDefinition
from ccbot.shared.models.schedule import ScheduleDefinition

logger = logging.getLogger(__name__)

FireCallback = Callable[[ScheduleDefinition], Awaitable[None]]
Sleep = Callable[[float], Awaitable[None]]

# Long waits are split so a wall-clock jump is noticed within this bound
MAX_SLEEP_SECONDS = 3600.0


class RunnerState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


@dataclass
class ArmedTrigger:
    definition: ScheduleDefinition
    trigger: Trigger
    next_fire_at: datetime | None
    task: asyncio.Task | None = field(default=None, repr=False)

    @property
    def kind(self) -> str:
        return "recurring" if isinstance(self.trigger, RecurringRule) else "one-shot"

    @property
    def active(self) -> bool:
        return self.task is not None and not self.task.done()


class ScheduleRunner:
    """Arms one trigger task per compiled trigger.

    ``rearm`` is synchronous: it cancels every existing trigger and creates
    the new ones without yielding to the event loop, so no other coroutine
    can observe a mix of old and new triggers and two reloads can never
    interleave.
    """

    def __init__(
        self,
        compiler: RecurrenceCompiler,
        on_fire: FireCallback,
        *,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._compiler = compiler
        self._on_fire = on_fire
        self._clock = clock
        self._sleep = sleep
        self._triggers: list[ArmedTrigger] = []
        self._inflight: set[asyncio.Task] = set()

    @property
    def triggers(self) -> tuple[ArmedTrigger, ...]:
        return tuple(t for t in self._triggers if t.active)

    @property
    def state(self) -> RunnerState:
        return RunnerState.ARMED if self.triggers else RunnerState.IDLE

    def rearm(self, definitions: Iterable[ScheduleDefinition]) -> list[ArmedTrigger]:
        """Replace all armed triggers with those compiled from ``definitions``."""
        self.cancel_all()

        now = self._clock()
        armed: list[ArmedTrigger] = []
        skipped = 0
        for definition in definitions:
            if not definition.enabled:
                logger.debug(f"Schedule '{definition.name}' is disabled, not armed")
                continue
            try:
                compiled = self._compiler.compile(definition, now=now)
            except SkippedDefinition as e:
                skipped += 1
                logger.warning(str(e))
                continue
            for trigger in compiled:
                armed.append(self._arm(definition, trigger, now))

        self._triggers = armed
        logger.info(f"Schedules armed: {len(armed)} triggers ({skipped} definitions skipped)")
        for trigger in armed:
            logger.debug(
                f"  {trigger.definition.name} [{trigger.kind}] next at "
                f"{trigger.next_fire_at.isoformat() if trigger.next_fire_at else '-'}"
            )
        return list(armed)

    def cancel_all(self) -> None:
        """Cancel every armed trigger. Sends already in flight still complete."""
        for trigger in self._triggers:
            if trigger.task is not None:
                trigger.task.cancel()
        self._triggers = []

    async def shutdown(self) -> None:
        self.cancel_all()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    # ==================== Trigger tasks ====================

    def _arm(self, definition: ScheduleDefinition, trigger: Trigger, now: datetime) -> ArmedTrigger:
        if isinstance(trigger, RecurringRule):
            armed = ArmedTrigger(definition, trigger, trigger.next_fire(now))
            coro = self._run_recurring(armed, trigger)
        else:
            armed = ArmedTrigger(definition, trigger, trigger.fire_at)
            coro = self._run_once(armed, trigger)

        armed.task = asyncio.get_running_loop().create_task(
            coro, name=f"schedule:{definition.name}:{armed.kind}"
        )
        return armed

    async def _run_recurring(self, armed: ArmedTrigger, rule: RecurringRule) -> None:
        while armed.next_fire_at is not None:
            fire_at = armed.next_fire_at
            await self._sleep_until(fire_at)
            await self._fire(armed)
            # Skip occurrences missed while the process was suspended
            armed.next_fire_at = rule.next_fire(max(fire_at, self._clock()))

    async def _run_once(self, armed: ArmedTrigger, shot: OneShot) -> None:
        await self._sleep_until(shot.fire_at)
        armed.next_fire_at = None
        await self._fire(armed)

    async def _sleep_until(self, target: datetime) -> None:
        while True:
            remaining = (target - self._clock()).total_seconds()
            if remaining <= 0:
                return
            await self._sleep(min(remaining, MAX_SLEEP_SECONDS))

    async def _fire(self, armed: ArmedTrigger) -> None:
        logger.info(f"Schedule '{armed.definition.name}' fired ({armed.kind})")
        # Shielded so a reload cancelling the trigger never aborts a send
        task = asyncio.get_running_loop().create_task(self._deliver(armed.definition))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        await asyncio.shield(task)

    async def _deliver(self, definition: ScheduleDefinition) -> None:
        try:
            await self._on_fire(definition)
        except Exception as e:
            logger.exception(f"Schedule '{definition.name}' fire handler failed: {e}")
