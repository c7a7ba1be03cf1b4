"""Data models shared by the bot and the HTTP server."""

from .schedule import ResponseTemplate, ScheduleDefinition, ScheduleType

__all__ = [
    "ResponseTemplate",
    "ScheduleDefinition",
    "ScheduleType",
]
