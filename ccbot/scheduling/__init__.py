"""Scheduling subsystem: scheduled reminders and reaction-driven responses.

Public API:
- SchedulingEngine: owns the runner, correlator and responder
- RecurrenceCompiler: definition -> recurring rule or one-shot timestamps
- ScheduleRunner: armed triggers, rebuilt wholesale on rearm
- SendCorrelator: sends reminders, maps message id -> definition
- ReactionResponder: at-most-once randomized response per message
"""

from ccbot.scheduling.compiler import OneShot, RecurrenceCompiler, RecurringRule
from ccbot.scheduling.correlator import SendCorrelator, SendRecord
from ccbot.scheduling.engine import SchedulingEngine
from ccbot.scheduling.errors import (
    ChannelUnavailable,
    ConfigMalformed,
    DeliveryFailed,
    SchedulingError,
    SkippedDefinition,
)
from ccbot.scheduling.gateway import ChannelRef, ChatGateway
from ccbot.scheduling.responder import ReactionEvent, ReactionOutcome, ReactionResponder
from ccbot.scheduling.runner import ArmedTrigger, RunnerState, ScheduleRunner

__all__ = [
    "ArmedTrigger",
    "ChannelRef",
    "ChannelUnavailable",
    "ChatGateway",
    "ConfigMalformed",
    "DeliveryFailed",
    "OneShot",
    "ReactionEvent",
    "ReactionOutcome",
    "ReactionResponder",
    "RecurrenceCompiler",
    "RecurringRule",
    "RunnerState",
    "ScheduleRunner",
    "SchedulingEngine",
    "SchedulingError",
    "SendCorrelator",
    "SendRecord",
    "SkippedDefinition",
]
