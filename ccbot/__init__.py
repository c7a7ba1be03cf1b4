"""ccbot: community Discord bot with scheduled reminders and reaction responses."""

__version__ = "0.1.0"
