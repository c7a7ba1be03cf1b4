"""Repository for the admin-curated list of channels to mirror images from."""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class ChannelListStore:
    """``{"channelIds": [...]}`` JSON file; ids are kept as strings in insertion order."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def list_all(self) -> list[str]:
        """Return all listed channel ids (empty if the file does not exist)."""
        if not self.path.exists():
            return []
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return [str(channel_id) for channel_id in data.get("channelIds", [])]

    def contains(self, channel_id: str | int) -> bool:
        return str(channel_id) in self.list_all()

    def add(self, channel_id: str | int) -> bool:
        """Add a channel. Returns False if it was already listed."""
        channel_ids = self.list_all()
        if str(channel_id) in channel_ids:
            return False
        channel_ids.append(str(channel_id))
        self._save(channel_ids)
        logger.info(f"Channel {channel_id} added to image list")
        return True

    def remove(self, channel_id: str | int) -> bool:
        """Remove a channel. Returns False if it was not listed."""
        channel_ids = self.list_all()
        if str(channel_id) not in channel_ids:
            return False
        self._save([c for c in channel_ids if c != str(channel_id)])
        logger.info(f"Channel {channel_id} removed from image list")
        return True

    def _save(self, channel_ids: list[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"channelIds": channel_ids}, indent=2), encoding="utf-8")
