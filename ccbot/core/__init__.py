"""Core modules for the Discord bot."""

from .gateway import DiscordGateway
from .logging import setup_logging

__all__ = [
    "DiscordGateway",
    "setup_logging",
]
