"""Shared repository layer for the bot and its HTTP server."""

from .channel import ChannelListStore
from .images import ImageStore, orientation_for, sanitize_channel_name
from .schedule import ScheduleStore

__all__ = [
    "ChannelListStore",
    "ImageStore",
    "ScheduleStore",
    "orientation_for",
    "sanitize_channel_name",
]
