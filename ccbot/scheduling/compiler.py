"""Turn schedule definitions into concrete triggers."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from ccbot.scheduling.errors import SkippedDefinition
from ccbot.shared.models.schedule import ScheduleDefinition, ScheduleType

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class RecurringRule:
    """Weekly rule as a six-field cron expression (seconds last) in a named zone."""

    cron: str
    timezone: str

    def next_fire(self, after: datetime) -> datetime:
        """First fire time strictly after ``after``, as an aware datetime in the rule's zone."""
        tz = ZoneInfo(self.timezone)
        return croniter(self.cron, after.astimezone(tz)).get_next(datetime)


@dataclass(frozen=True)
class OneShot:
    """A single absolute fire timestamp; ``label`` is ``main`` or ``lead``."""

    fire_at: datetime
    label: str = "main"


Trigger = RecurringRule | OneShot


def parse_time_of_day(value: str) -> tuple[int, int, int]:
    """Parse ``HH:MM:SS``; missing trailing components default to zero."""
    parts = value.strip().split(":")
    if not parts or len(parts) > 3 or any(not p.strip().isdigit() for p in parts):
        raise ValueError(f"Invalid time '{value}', expected HH:MM:SS")

    numbers = [int(p) for p in parts] + [0] * (3 - len(parts))
    hour, minute, second = numbers
    if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
        raise ValueError(f"Time '{value}' out of range")
    return hour, minute, second


class RecurrenceCompiler:
    """Compile definitions into a recurring rule or up to two one-shot timestamps.

    Weekly definitions become a cron rule evaluated in the definition's
    ``timezone``. Date definitions become a main timestamp plus an optional
    lead-time reminder ``leadDays`` whole days earlier; timestamps that are
    not strictly in the future at compile time are dropped.

    Definitions without a ``timezone`` use ``default_timezone`` for both
    types, so there is exactly one fallback zone.
    """

    def __init__(self, default_timezone: str = "Europe/Stockholm", clock: Clock = utc_now) -> None:
        self.default_timezone = default_timezone
        self._clock = clock

    def compile(self, definition: ScheduleDefinition, now: datetime | None = None) -> list[Trigger]:
        """Return the triggers for a definition.

        Raises:
            SkippedDefinition: required fields are missing or invalid.
        """
        if definition.type is ScheduleType.WEEKLY:
            return [self.compile_weekly(definition)]
        return self.compile_date(definition, now=now)

    def compile_weekly(self, definition: ScheduleDefinition) -> RecurringRule:
        fields = {
            "hour": definition.hour,
            "minute": definition.minute,
            "second": definition.second,
            "dayOfWeek": definition.day_of_week,
        }
        missing = [key for key, value in fields.items() if value is None]
        if missing:
            raise SkippedDefinition(definition.name, f"weekly schedule missing {', '.join(missing)}")

        timezone = self._resolve_zone(definition)
        cron = (
            f"{definition.minute} {definition.hour} * * {definition.day_of_week} "
            f"{definition.second}"
        )
        return RecurringRule(cron=cron, timezone=timezone)

    def compile_date(
        self, definition: ScheduleDefinition, now: datetime | None = None
    ) -> list[OneShot]:
        fields = {
            "year": definition.year,
            "month": definition.month,
            "day": definition.day,
            "time": definition.time,
        }
        missing = [key for key, value in fields.items() if value is None]
        if missing:
            raise SkippedDefinition(definition.name, f"date schedule missing {', '.join(missing)}")

        try:
            hour, minute, second = parse_time_of_day(definition.time)  # type: ignore[arg-type]
            main_local = datetime(
                definition.year,  # type: ignore[arg-type]
                definition.month,  # type: ignore[arg-type]
                definition.day,  # type: ignore[arg-type]
                hour,
                minute,
                second,
                tzinfo=ZoneInfo(self._resolve_zone(definition)),
            )
        except ValueError as e:
            raise SkippedDefinition(definition.name, str(e)) from e

        now = now or self._clock()
        main_at = main_local.astimezone(UTC)
        candidates = [OneShot(fire_at=main_at, label="main")]
        if definition.lead_days:
            lead_at = main_at - timedelta(seconds=definition.lead_days * 86400)
            candidates.insert(0, OneShot(fire_at=lead_at, label="lead"))

        triggers = []
        for shot in candidates:
            if shot.fire_at > now:
                triggers.append(shot)
            else:
                logger.info(
                    f"Schedule '{definition.name}': {shot.label} reminder at "
                    f"{shot.fire_at.isoformat()} is in the past, dropped"
                )
        return triggers

    def _resolve_zone(self, definition: ScheduleDefinition) -> str:
        timezone = definition.timezone or self.default_timezone
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise SkippedDefinition(definition.name, f"unknown timezone '{timezone}'") from e
        return timezone
