"""Pydantic models for the staff availability and reflection engine."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HOME_LOCATION = "home"

LocationType = Literal["home", "physical"]


def location_type(location: str) -> LocationType:
    """Classify a location id as the virtual home-service location or a branch."""
    return "home" if location == HOME_LOCATION else "physical"


def ensure_aware(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def location_display_name(location: str) -> str:
    return "Home Service" if location == HOME_LOCATION else location


class SchedulingError(Exception):
    """Base error for the scheduling engine."""


class AppointmentNotFoundError(SchedulingError):
    """Raised when an appointment id does not exist in the store."""

    def __init__(self, appointment_id: str):
        super().__init__(f"Appointment not found: {appointment_id}")
        self.appointment_id = appointment_id


class ReflectedAppointmentError(SchedulingError):
    """Raised when a caller tries to change or remove a reflected appointment directly."""

    def __init__(self, appointment_id: str):
        super().__init__(
            f"Appointment {appointment_id} is a reflected appointment; change its original instead"
        )
        self.appointment_id = appointment_id


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ARRIVED = "arrived"
    SERVICE_STARTED = "service-started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
)


class ReflectionType(str, Enum):
    """Direction that produced a reflected appointment."""

    PHYSICAL_TO_HOME = "physical-to-home"
    HOME_TO_PHYSICAL = "home-to-physical"


class CamelModel(BaseModel):
    """Base model serializing with the camelCase keys used by the booking UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimeSlot(BaseModel):
    """A half-open booking window; ``end`` is ``start + duration``."""

    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def default_to_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @classmethod
    def from_duration(cls, start: datetime, minutes: int) -> "TimeSlot":
        return cls(start=start, end=start + timedelta(minutes=minutes))


class Appointment(CamelModel):
    """An appointment, blocked-time entry, or reflected (shadow) appointment."""

    id: str
    client_id: Optional[str] = None
    staff_id: str
    staff_name: str = ""
    client_name: str = ""
    service: str = ""
    service_id: Optional[str] = None
    date: datetime
    duration: int = Field(ge=0, description="Length in minutes")
    location: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    type: Optional[str] = Field(default=None, description="'blocked' marks blocked time")
    title: Optional[str] = None
    notes: Optional[str] = None

    # Shadow bookkeeping
    is_reflected: bool = False
    original_appointment_id: Optional[str] = None
    reflection_type: Optional[ReflectionType] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower().replace("_", "-")
        return value

    @field_validator("date")
    @classmethod
    def default_to_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @property
    def end(self) -> datetime:
        return self.date + timedelta(minutes=self.duration)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot(start=self.date, end=self.end)

    @property
    def is_blocked_time(self) -> bool:
        return self.type == "blocked"

    @property
    def is_active(self) -> bool:
        """False for cancelled, completed and no-show appointments."""
        return not self.status.is_terminal


class StaffDirectoryEntry(CamelModel):
    """Staff data the engine reads from the staff-management collaborator."""

    staff_id: str
    name: str = ""
    status: Literal["active", "inactive"] = "active"
    home_service_capable: bool = False
    locations: list[str] = Field(default_factory=list)


class BufferPolicy(BaseModel):
    """Minutes of non-bookable margin around an existing appointment."""

    before_minutes: int = Field(default=0, ge=0)
    after_minutes: int = Field(default=0, ge=0)

    def merge_max(self, other: Optional["BufferPolicy"]) -> "BufferPolicy":
        if other is None:
            return self
        return BufferPolicy(
            before_minutes=max(self.before_minutes, other.before_minutes),
            after_minutes=max(self.after_minutes, other.after_minutes),
        )


class LocationConflict(CamelModel):
    """An existing appointment that occupies the staff member elsewhere."""

    appointment_id: str
    location: str
    location_type: LocationType
    client_name: str
    service: str
    start_time: datetime
    end_time: datetime


class AvailabilityResult(CamelModel):
    """Outcome of a single-staff availability check."""

    is_available: bool
    conflicting_appointments: list[Appointment] = Field(default_factory=list)
    blocked_time_slots: list[Appointment] = Field(default_factory=list)
    cross_location_conflicts: list[LocationConflict] = Field(default_factory=list)
    reason: Optional[str] = None


class BidirectionalResult(CamelModel):
    has_conflicts: bool
    conflicts: list[LocationConflict] = Field(default_factory=list)


class ConflictType(str, Enum):
    SAME_LOCATION = "same-location"
    CROSS_LOCATION = "cross-location"
    BLOCKED_TIME = "blocked-time"


class Conflict(CamelModel):
    """Structured conflict entry surfaced alongside a display message."""

    type: ConflictType
    appointment_id: Optional[str] = None
    location: str
    location_type: LocationType
    client_name: Optional[str] = None
    service: Optional[str] = None
    start_time: datetime
    end_time: datetime
    message: str


class ValidationResult(CamelModel):
    """Result of validating a booking request."""

    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)


class BookingRequest(CamelModel):
    """A candidate booking submitted for validation."""

    staff_id: str
    date: datetime
    duration: int = Field(ge=0)
    location: str
    client_name: Optional[str] = None
    service: Optional[str] = None
    service_id: Optional[str] = None
    exclude_appointment_id: Optional[str] = None

    @field_validator("date")
    @classmethod
    def default_to_utc(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot.from_duration(self.date, self.duration)

    @classmethod
    def for_appointment(
        cls, appointment: Appointment, exclude_appointment_id: Optional[str] = None
    ) -> "BookingRequest":
        return cls(
            staff_id=appointment.staff_id,
            date=appointment.date,
            duration=appointment.duration,
            location=appointment.location,
            client_name=appointment.client_name,
            service=appointment.service,
            service_id=appointment.service_id,
            exclude_appointment_id=exclude_appointment_id,
        )
