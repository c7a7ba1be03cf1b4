"""JSON-file repository for schedule definitions."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import os
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ccbot.scheduling.errors import ConfigMalformed
from ccbot.shared.models.schedule import ScheduleDefinition

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[list[ScheduleDefinition]], Awaitable[None] | None]


class ScheduleStore:
    """Ordered list of schedule definitions persisted as a JSON array.

    The file is the single source of truth. CRUD methods write it directly
    and never rearm anything themselves; ``watch`` polls the file's
    modification signature and hands freshly parsed definitions to its
    callback, which is how both external edits and CRUD writes reach the
    scheduler.
    """

    def __init__(
        self,
        path: Path,
        *,
        defaults: Sequence[ScheduleDefinition] = (),
        poll_interval: float = 5.0,
    ) -> None:
        self.path = Path(path)
        self.poll_interval = poll_interval
        self.last_error: str | None = None
        self._defaults = [d.model_copy(deep=True) for d in defaults]
        self._last_signature: tuple[int, int] | None = None
        self._watch_task: asyncio.Task | None = None

    # ==================== Read ====================

    def load(self) -> list[ScheduleDefinition]:
        """Read the definition set, writing the default set first if the file is absent.

        Malformed content yields an empty list and sets ``last_error``.
        """
        if not self.path.exists():
            self._write(self._defaults)
            logger.info(
                f"Schedule file not found, created {self.path} with "
                f"{len(self._defaults)} default definitions"
            )

        self._last_signature = self._signature()
        try:
            definitions = self._read()
        except ConfigMalformed as e:
            self.last_error = str(e)
            logger.error(f"Schedule file is malformed, no schedules loaded: {e}")
            return []

        self.last_error = None
        logger.info(f"Loaded {len(definitions)} schedule definitions from {self.path}")
        return definitions

    def list_all(self) -> list[ScheduleDefinition]:
        """Return the current definitions; raises ConfigMalformed on bad content."""
        return self._read_for_update()

    # ==================== Write ====================

    def create(self, definition: ScheduleDefinition) -> int:
        """Append a definition and return its index."""
        definitions = self._read_for_update()
        definitions.append(definition)
        self._write(definitions)
        logger.info(f"Schedule '{definition.name}' created at index {len(definitions) - 1}")
        return len(definitions) - 1

    def replace(self, index: int, definition: ScheduleDefinition) -> ScheduleDefinition:
        """Replace the definition at ``index``; returns the previous one."""
        definitions = self._read_for_update()
        self._check_index(index, definitions)
        previous = definitions[index]
        definitions[index] = definition
        self._write(definitions)
        logger.info(f"Schedule at index {index} replaced: '{previous.name}' -> '{definition.name}'")
        return previous

    def delete(self, index: int) -> ScheduleDefinition:
        """Remove and return the definition at ``index``."""
        definitions = self._read_for_update()
        self._check_index(index, definitions)
        removed = definitions.pop(index)
        self._write(definitions)
        logger.info(f"Schedule '{removed.name}' deleted from index {index}")
        return removed

    # ==================== Watch ====================

    async def watch(self, on_change: ChangeCallback) -> None:
        """Poll the file and call ``on_change`` with the parsed set whenever it changes.

        A change that fails to parse is logged and ignored; the previous
        definitions stay in effect until the file is fixed.
        """
        if self._last_signature is None:
            self._last_signature = self._signature()

        while True:
            await asyncio.sleep(self.poll_interval)
            current = self._signature()
            if current == self._last_signature:
                continue
            self._last_signature = current

            try:
                definitions = self._read()
            except ConfigMalformed as e:
                self.last_error = str(e)
                logger.error(f"Schedule file changed but is malformed, keeping current schedules: {e}")
                continue

            self.last_error = None
            logger.info(f"Schedule file changed, {len(definitions)} definitions reloaded")
            try:
                result = on_change(definitions)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.exception(f"Schedule change handler failed: {e}")

    def start_watching(self, on_change: ChangeCallback) -> asyncio.Task:
        if self._watch_task is None or self._watch_task.done():
            self._watch_task = asyncio.create_task(self.watch(on_change))
        return self._watch_task

    async def stop_watching(self) -> None:
        if self._watch_task is None:
            return
        self._watch_task.cancel()
        try:
            await self._watch_task
        except asyncio.CancelledError:
            pass
        self._watch_task = None

    # ==================== Helpers ====================

    def _signature(self) -> tuple[int, int] | None:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return None
        return (stat.st_mtime_ns, stat.st_size)

    def _read(self, *, skip_invalid: bool = True) -> list[ScheduleDefinition]:
        """Parse the file.

        With ``skip_invalid`` an entry that fails validation is logged and
        dropped; otherwise it makes the whole file ``ConfigMalformed``.
        """
        try:
            raw: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigMalformed(f"{self.path}: {e}") from e

        if not isinstance(raw, list):
            raise ConfigMalformed(f"{self.path}: expected a JSON array of schedules")

        definitions = []
        for index, item in enumerate(raw):
            try:
                definitions.append(ScheduleDefinition.model_validate(item))
            except ValidationError as e:
                name = item.get("name", "?") if isinstance(item, dict) else "?"
                if not skip_invalid:
                    raise ConfigMalformed(
                        f"{self.path}: schedule {index} ('{name}') is invalid: {e}"
                    ) from e
                logger.warning(f"Schedule {index} ('{name}') skipped, invalid definition: {e}")
        return definitions

    def _read_for_update(self) -> list[ScheduleDefinition]:
        # Strict, so a rewrite never drops an invalid entry
        if not self.path.exists():
            return [d.model_copy(deep=True) for d in self._defaults]
        return self._read(skip_invalid=False)

    def _write(self, definitions: Sequence[ScheduleDefinition]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([d.to_json() for d in definitions], indent=2, ensure_ascii=False)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        tmp_path.write_text(payload + "\n", encoding="utf-8")
        os.replace(tmp_path, self.path)

    @staticmethod
    def _check_index(index: int, definitions: Sequence[ScheduleDefinition]) -> None:
        if not 0 <= index < len(definitions):
            raise IndexError(f"No schedule at index {index} (have {len(definitions)})")
