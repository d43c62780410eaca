"""Structured events for booking validation and appointment reflection."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of scheduling events."""

    VALIDATION = "validation"
    REFLECTION_CREATED = "reflection_created"
    REFLECTION_UPDATED = "reflection_updated"
    REFLECTION_DELETED = "reflection_deleted"
    ORPHANS_CLEANED = "orphans_cleaned"
    REFLECTION_ERROR = "reflection_error"


class SchedulingEvent(BaseModel):
    """Base class for all scheduling events."""

    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: Optional[str] = None
    staff_id: Optional[str] = None
    appointment_id: Optional[str] = None
    duration_ms: Optional[float] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class ValidationEvent(SchedulingEvent):
    """Outcome of one booking validation."""

    event_type: EventType = EventType.VALIDATION
    location: str
    is_valid: bool
    error_count: int = 0
    warning_count: int = 0
    conflict_types: list[str] = Field(default_factory=list)


class ReflectionEvent(SchedulingEvent):
    """Shadow appointments created, updated, deleted or cleaned up."""

    count: int = 0
    reflected_ids: list[str] = Field(default_factory=list)

    # Error fields (populated for REFLECTION_ERROR)
    operation: Optional[str] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
