"""Error taxonomy for the scheduling engine."""


class SchedulingError(Exception):
    """Base class for recoverable scheduling failures."""


class ConfigMalformed(SchedulingError):
    """The persisted schedule definitions could not be parsed."""


class ChannelUnavailable(SchedulingError):
    """Target channel is missing, not a text destination, or unreadable."""

    def __init__(self, channel_id: str, reason: str = "not found") -> None:
        super().__init__(f"Channel {channel_id} unavailable: {reason}")
        self.channel_id = channel_id
        self.reason = reason


class DeliveryFailed(SchedulingError):
    """The transport rejected a send or react call."""


class SkippedDefinition(SchedulingError):
    """A definition lacks the fields its type requires; it is not armed."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Schedule '{name}' skipped: {reason}")
        self.name = name
        self.reason = reason
