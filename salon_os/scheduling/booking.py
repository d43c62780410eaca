"""Booking flow: validate, persist the original, then reflect it.

Reflection is a consistency aid for other locations' calendars. Its failures
are logged and never undo or fail the primary write.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field

from salon_os.config import Settings
from salon_os.observability import SchedulingEventLogger
from salon_os.scheduling.availability import StaffAvailabilityService
from salon_os.scheduling.collaborators import (
    AppointmentStore,
    BufferPolicyProvider,
    ConfiguredBufferPolicy,
    StaffDirectory,
)
from salon_os.scheduling.models import (
    Appointment,
    AppointmentNotFoundError,
    BookingRequest,
    BufferPolicy,
    Conflict,
    ReflectedAppointmentError,
)
from salon_os.scheduling.reflection import ReflectionEngine
from salon_os.scheduling.staff import StaffCapabilityLookup
from salon_os.scheduling.validation import BookingValidator

logger = logging.getLogger(__name__)

DEFAULT_UNAVAILABLE_MESSAGE = "Staff member is not available for this time slot"

# Fields whose change requires re-validating the staff member's availability.
_SCHEDULING_FIELDS = frozenset({"staff_id", "date", "duration", "location"})


class AvailabilityCheck(BaseModel):
    """Condensed validation outcome reported to booking callers."""

    is_valid: bool
    error: Optional[str] = None
    conflicts: list[Conflict] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class BookingOutcome(BaseModel):
    """Result of a create or update through the booking flow."""

    success: bool
    appointment: Optional[Appointment] = None
    error: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[Conflict] = Field(default_factory=list)
    reflected: list[Appointment] = Field(default_factory=list)


class BookingService:
    """Call-site orchestration around the validator and reflection engine."""

    def __init__(
        self,
        store: AppointmentStore,
        validator: BookingValidator,
        reflection: ReflectionEngine,
        events: Optional[SchedulingEventLogger] = None,
    ) -> None:
        self.store = store
        self.validator = validator
        self.reflection = reflection
        self.events = events

    @classmethod
    def from_settings(
        cls,
        store: AppointmentStore,
        directory: StaffDirectory,
        settings: Settings,
        buffer_policy: Optional[BufferPolicyProvider] = None,
    ) -> "BookingService":
        """Wire the full engine from configuration."""
        events = None
        if settings.events_enabled:
            events = SchedulingEventLogger(log_dir=settings.event_log_dir)

        availability = StaffAvailabilityService(
            store,
            buffer_config=BufferPolicy(
                before_minutes=settings.buffer_before_minutes,
                after_minutes=settings.buffer_after_minutes,
            ),
            buffer_policy=buffer_policy or ConfiguredBufferPolicy.from_settings(settings),
        )
        validator = BookingValidator(
            availability,
            business_open_hour=settings.business_open_hour,
            business_close_hour=settings.business_close_hour,
            travel_warning_minutes=settings.travel_warning_minutes,
            tz_name=settings.business_timezone,
            events=events,
        )
        reflection = ReflectionEngine(store, StaffCapabilityLookup(directory), events=events)
        return cls(store, validator, reflection, events=events)

    async def validate_staff_availability(
        self, appointment: Appointment, exclude_appointment_id: Optional[str] = None
    ) -> AvailabilityCheck:
        result = await self.validator.validate_booking(
            BookingRequest.for_appointment(appointment, exclude_appointment_id)
        )
        if not result.is_valid:
            return AvailabilityCheck(
                is_valid=False,
                error=result.errors[0] if result.errors else DEFAULT_UNAVAILABLE_MESSAGE,
                conflicts=result.conflicts,
                warnings=result.warnings,
            )
        return AvailabilityCheck(is_valid=True, warnings=result.warnings)

    async def get_appointment(self, appointment_id: str) -> Appointment:
        for appointment in await self.store.load_all_appointments():
            if appointment.id == appointment_id:
                return appointment
        raise AppointmentNotFoundError(appointment_id)

    async def create_appointment(self, appointment: Appointment) -> BookingOutcome:
        """Validate and persist a new original appointment, then reflect it."""
        check = await self.validate_staff_availability(appointment)
        if not check.is_valid:
            return BookingOutcome(
                success=False,
                error=check.error,
                warnings=check.warnings,
                conflicts=check.conflicts,
            )

        all_appointments = await self.store.load_all_appointments()
        await self.store.save_all_appointments([*all_appointments, appointment])
        logger.info(
            "Created appointment %s for staff %s at %s",
            appointment.id,
            appointment.staff_id,
            appointment.location,
        )

        reflected: list[Appointment] = []
        try:
            reflected = await self.reflection.create_reflected_appointments(appointment)
        except Exception as e:
            self._reflection_failed("create", appointment, e)

        return BookingOutcome(
            success=True, appointment=appointment, warnings=check.warnings, reflected=reflected
        )

    async def update_appointment(
        self, appointment_id: str, updates: dict[str, Any]
    ) -> BookingOutcome:
        """Apply ``updates`` to an existing appointment and refresh its shadows.

        ``updates`` may use field names or their camelCase aliases. Reflected
        appointments are refused; they follow their original.

        Raises:
            AppointmentNotFoundError: if ``appointment_id`` is unknown.
        """
        existing = await self.get_appointment(appointment_id)
        if existing.is_reflected:
            return BookingOutcome(
                success=False,
                appointment=existing,
                error=str(ReflectedAppointmentError(appointment_id)),
            )

        updated = Appointment.model_validate(
            {**existing.model_dump(), **updates, "id": existing.id}
        )

        warnings: list[str] = []
        changed = {f for f in _SCHEDULING_FIELDS if getattr(existing, f) != getattr(updated, f)}
        if changed:
            check = await self.validate_staff_availability(
                updated, exclude_appointment_id=appointment_id
            )
            if not check.is_valid:
                return BookingOutcome(
                    success=False,
                    appointment=existing,
                    error=check.error,
                    warnings=check.warnings,
                    conflicts=check.conflicts,
                )
            warnings = check.warnings

        all_appointments = await self.store.load_all_appointments()
        await self.store.save_all_appointments(
            [updated if a.id == appointment_id else a for a in all_appointments]
        )
        logger.info("Updated appointment %s", appointment_id)

        reflected: list[Appointment] = []
        try:
            reflected = await self.reflection.update_reflected_appointments(updated)
        except Exception as e:
            self._reflection_failed("update", updated, e)

        return BookingOutcome(
            success=True, appointment=updated, warnings=warnings, reflected=reflected
        )

    async def delete_appointment(self, appointment_id: str) -> bool:
        """Delete an original appointment and the shadows it owns.

        Returns False if the id is unknown.

        Raises:
            ReflectedAppointmentError: if ``appointment_id`` is a shadow.
        """
        all_appointments = await self.store.load_all_appointments()
        target = next((a for a in all_appointments if a.id == appointment_id), None)
        if target is None:
            return False
        if target.is_reflected:
            raise ReflectedAppointmentError(appointment_id)

        await self.store.save_all_appointments(
            [a for a in all_appointments if a.id != appointment_id]
        )
        logger.info("Deleted appointment %s", appointment_id)

        try:
            await self.reflection.delete_reflected_appointments(appointment_id)
        except Exception as e:
            self._reflection_failed("delete", target, e)
        return True

    def _reflection_failed(self, operation: str, appointment: Appointment, error: Exception) -> None:
        logger.error(
            "Error during reflected appointment %s for %s: %s", operation, appointment.id, error
        )
        if self.events:
            self.events.log_reflection_error(
                operation, error, appointment_id=appointment.id, staff_id=appointment.staff_id
            )
