"""File store for mirrored channel images and their per-channel index."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from posixpath import basename
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-z0-9\-_]", re.IGNORECASE)


def sanitize_channel_name(channel_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", channel_name).lower()


def orientation_for(width: int | None, height: int | None) -> str | None:
    """horizontal / vertical / square, or None when dimensions are unknown."""
    if not width or not height:
        return None
    if width > height:
        return "horizontal"
    if height > width:
        return "vertical"
    return "square"


def _dedupe_by_url(infos: list[dict[str, Any]]) -> list[dict[str, Any]]:
    seen: set[str] = set()
    unique = []
    for info in infos:
        if info["url"] not in seen:
            seen.add(info["url"])
            unique.append(info)
    return unique


class ImageStore:
    """``<assets>/<channel>/`` holds the image files plus ``<channel>.json``,
    a list of ``{"url", "orientation"}`` served by the HTTP API."""

    def __init__(self, assets_dir: Path, public_base_url: str) -> None:
        self.assets_dir = Path(assets_dir)
        self.public_base_url = public_base_url.rstrip("/")

    def channel_dir(self, channel_name: str) -> Path:
        path = self.assets_dir / sanitize_channel_name(channel_name)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def data_file(self, channel_name: str) -> Path:
        safe_name = sanitize_channel_name(channel_name)
        return self.assets_dir / safe_name / f"{safe_name}.json"

    def public_url(self, channel_name: str, filename: str) -> str:
        return f"{self.public_base_url}/assets/{sanitize_channel_name(channel_name)}/{filename}"

    def load(self, channel_name: str) -> list[dict[str, Any]] | None:
        """Return a channel's image list, or None if it has none."""
        path = self.data_file(channel_name)
        if not path.exists():
            return None
        return list(json.loads(path.read_text(encoding="utf-8")))

    def save_infos(
        self,
        channel_name: str,
        new_infos: list[dict[str, Any]],
        full_update: bool = False,
    ) -> list[dict[str, Any]]:
        """Merge (or, with ``full_update``, replace) a channel's image list.

        A full update also deletes files whose URL is no longer listed.
        """
        directory = self.channel_dir(channel_name)
        existing = self.load(channel_name) or []

        if full_update:
            keep = {info["url"] for info in new_infos}
            for info in existing:
                if info["url"] in keep:
                    continue
                stale = directory / basename(urlparse(info["url"]).path)
                if stale.is_file():
                    stale.unlink()
                    logger.info(f"Deleted image file: {stale}")
            updated = _dedupe_by_url(list(new_infos))
        else:
            updated = _dedupe_by_url(existing + list(new_infos))

        self.data_file(channel_name).write_text(json.dumps(updated, indent=2), encoding="utf-8")
        logger.info(f"Image infos saved for channel '{channel_name}': {len(new_infos)} new")
        return updated

    def list_channels(self) -> list[str]:
        if not self.assets_dir.exists():
            return []
        return sorted(p.name for p in self.assets_dir.iterdir() if p.is_dir())

    def all_data(self) -> list[dict[str, Any]]:
        """Concatenate every channel's image list."""
        all_infos: list[dict[str, Any]] = []
        for name in self.list_channels():
            infos = self.load(name)
            if infos:
                all_infos.extend(infos)
        return all_infos
