"""Observability module for scheduling telemetry."""

from salon_os.observability.events import (
    EventType,
    ReflectionEvent,
    SchedulingEvent,
    ValidationEvent,
)
from salon_os.observability.logger import SchedulingEventLogger

__all__ = [
    "EventType",
    "ReflectionEvent",
    "SchedulingEvent",
    "SchedulingEventLogger",
    "ValidationEvent",
]
