"""Booking validation with display-ready conflict and warning messages."""

import logging
from typing import Optional

from salon_os.observability import SchedulingEventLogger
from salon_os.scheduling.availability import (
    READ_FAILURE_REASON,
    StaffAvailabilityService,
    active_staff_appointments,
)
from salon_os.scheduling.collaborators import AppointmentStore
from salon_os.scheduling.models import (
    HOME_LOCATION,
    BookingRequest,
    Conflict,
    ConflictType,
    LocationConflict,
    ValidationResult,
    location_display_name,
    location_type,
)
from salon_os.scheduling.overlap import format_range, minutes_between, to_local

logger = logging.getLogger(__name__)

VALIDATION_FAILURE_MESSAGE = "Unable to validate booking. Please try again."


class BookingValidator:
    """Single entry point booking flows call before committing a write."""

    def __init__(
        self,
        availability: StaffAvailabilityService,
        store: Optional[AppointmentStore] = None,
        business_open_hour: int = 9,
        business_close_hour: int = 20,
        travel_warning_minutes: int = 30,
        tz_name: Optional[str] = None,
        events: Optional[SchedulingEventLogger] = None,
    ) -> None:
        self.availability = availability
        self.store = store or availability.store
        self.business_open_hour = business_open_hour
        self.business_close_hour = business_close_hour
        self.travel_warning_minutes = travel_warning_minutes
        self.tz_name = tz_name
        self.events = events

    async def validate_booking(self, request: BookingRequest) -> ValidationResult:
        """Validate ``request`` and collect errors, warnings and conflicts.

        ``is_valid`` only reflects errors; warnings never block a booking.
        """
        if self.events is None:
            return await self._validate(request)

        with self.events.validation(request.staff_id, request.location) as event:
            result = await self._validate(request)
            event.is_valid = result.is_valid
            event.error_count = len(result.errors)
            event.warning_count = len(result.warnings)
            event.conflict_types = [c.type.value for c in result.conflicts]
        return result

    async def _validate(self, request: BookingRequest) -> ValidationResult:
        result = ValidationResult()

        try:
            slot = request.slot
            availability = await self.availability.check_availability(
                request.staff_id,
                slot,
                exclude_appointment_id=request.exclude_appointment_id,
                service_id=request.service_id,
                location_id=request.location,
            )

            if not availability.is_available and availability.reason == READ_FAILURE_REASON:
                # The store could not be read; a second pass would fail the same way.
                result.is_valid = False
                result.errors.append(availability.reason)
            elif not availability.is_available:
                result.is_valid = False

                # Cross-location conflicts, with bidirectional-blocking wording
                bidirectional = await self.availability.check_bidirectional_conflicts(
                    request.staff_id,
                    slot,
                    request.location,
                    request.exclude_appointment_id,
                )
                for conflict in bidirectional.conflicts:
                    message = self._generate_conflict_message(conflict, request)
                    result.conflicts.append(
                        Conflict(
                            type=ConflictType.CROSS_LOCATION,
                            appointment_id=conflict.appointment_id,
                            location=conflict.location,
                            location_type=conflict.location_type,
                            client_name=conflict.client_name,
                            service=conflict.service,
                            start_time=conflict.start_time,
                            end_time=conflict.end_time,
                            message=message,
                        )
                    )
                    result.errors.append(message)

                # Same-location conflicts
                for appointment in availability.conflicting_appointments:
                    if appointment.location != request.location:
                        continue
                    message = (
                        f"Staff member already has an appointment with {appointment.client_name} "
                        f"({appointment.service}) from "
                        f"{format_range(appointment.date, appointment.end, self.tz_name)} "
                        f"at this location."
                    )
                    result.conflicts.append(
                        Conflict(
                            type=ConflictType.SAME_LOCATION,
                            appointment_id=appointment.id,
                            location=appointment.location,
                            location_type=location_type(appointment.location),
                            client_name=appointment.client_name,
                            service=appointment.service,
                            start_time=appointment.date,
                            end_time=appointment.end,
                            message=message,
                        )
                    )
                    result.errors.append(message)

                # Blocked time
                for blocked in availability.blocked_time_slots:
                    message = (
                        f"Staff member has blocked time ({blocked.title or 'Unavailable'}) from "
                        f"{format_range(blocked.date, blocked.end, self.tz_name)}."
                    )
                    result.conflicts.append(
                        Conflict(
                            type=ConflictType.BLOCKED_TIME,
                            location=request.location,
                            location_type=location_type(request.location),
                            start_time=blocked.date,
                            end_time=blocked.end,
                            message=message,
                        )
                    )
                    result.errors.append(message)

                if not result.errors and availability.reason:
                    result.errors.append(availability.reason)

            await self._add_warnings(request, result)

        except Exception as e:
            logger.error("Error validating booking for staff %s: %s", request.staff_id, e)
            result.is_valid = False
            result.errors.append(VALIDATION_FAILURE_MESSAGE)

        return result

    def _generate_conflict_message(
        self, conflict: LocationConflict, request: BookingRequest
    ) -> str:
        time_range = format_range(conflict.start_time, conflict.end_time, self.tz_name)
        requested = "home service" if request.location == HOME_LOCATION else request.location
        booked_with = f"with {conflict.client_name} ({conflict.service}) from {time_range}"

        if conflict.location_type == "home" and request.location != HOME_LOCATION:
            return (
                f"Staff member has a home service appointment {booked_with}. "
                f"Cannot book at {requested} during this time due to bidirectional blocking."
            )
        if conflict.location_type == "physical" and request.location == HOME_LOCATION:
            return (
                f"Staff member has an appointment at {location_display_name(conflict.location)} "
                f"{booked_with}. Cannot book home service during this time due to "
                f"bidirectional blocking."
            )
        return (
            f"Staff member has an appointment at {location_display_name(conflict.location)} "
            f"{booked_with}. Cannot book at {requested} during this time."
        )

    async def _add_warnings(self, request: BookingRequest, result: ValidationResult) -> None:
        try:
            start = request.date
            hour = to_local(start, self.tz_name).hour

            if hour < self.business_open_hour:
                result.warnings.append(
                    "This appointment is scheduled before normal business hours "
                    f"({self._hour_label(self.business_open_hour)})."
                )
            if hour >= self.business_close_hour:
                result.warnings.append("This appointment is scheduled during late evening hours.")

            if request.location == HOME_LOCATION:
                result.warnings.append(
                    "Home service appointments require additional travel time. "
                    "Ensure adequate buffer time between appointments."
                )

            all_appointments = await self.store.load_all_appointments()
            staff_appointments = active_staff_appointments(
                all_appointments, request.staff_id, request.exclude_appointment_id
            )

            end = request.slot.end
            requested_name = location_display_name(request.location)
            limit = self.travel_warning_minutes
            for appointment in staff_appointments:
                if appointment.location == request.location:
                    continue
                existing_name = location_display_name(appointment.location)
                if minutes_between(start, appointment.end) <= limit:
                    result.warnings.append(
                        f"Staff member has an appointment at {existing_name} ending {limit} "
                        f"minutes before this {requested_name} appointment. Consider travel time."
                    )
                if minutes_between(appointment.date, end) <= limit:
                    result.warnings.append(
                        f"Staff member has an appointment at {existing_name} starting {limit} "
                        f"minutes after this {requested_name} appointment. Consider travel time."
                    )

        except Exception as e:
            logger.error("Error adding booking warnings for staff %s: %s", request.staff_id, e)

    @staticmethod
    def _hour_label(hour: int) -> str:
        suffix = "AM" if hour < 12 else "PM"
        return f"{hour % 12 or 12} {suffix}"

    @staticmethod
    def get_validation_summary(result: ValidationResult) -> str:
        """One-line summary suitable for a toast or status bar."""
        if result.is_valid:
            if result.warnings:
                return f"Booking is valid with {len(result.warnings)} warning(s)."
            return "Booking is valid."

        cross_location = sum(
            1 for c in result.conflicts if c.type == ConflictType.CROSS_LOCATION
        )
        if cross_location:
            return f"Cannot book: Staff member has {cross_location} cross-location conflict(s)."
        return f"Cannot book: {len(result.errors)} conflict(s) found."
