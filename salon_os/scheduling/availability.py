"""Staff availability checks across physical branches and home service.

A staff member can only be in one place at a time, so every check scans the
staff member's appointments at *all* locations. Appointments at a location
other than the requested one are reported separately as cross-location
conflicts; this is what makes home-service and branch bookings block each
other (bidirectional blocking).
"""

import logging
from datetime import date, datetime
from typing import Iterable, Optional

from salon_os.scheduling.collaborators import AppointmentStore, BufferPolicyProvider
from salon_os.scheduling.models import (
    HOME_LOCATION,
    Appointment,
    AvailabilityResult,
    BidirectionalResult,
    BufferPolicy,
    LocationConflict,
    TimeSlot,
    location_display_name,
    location_type,
)
from salon_os.scheduling.overlap import buffered, overlaps, to_local

logger = logging.getLogger(__name__)

READ_FAILURE_REASON = "Error checking availability"


def _to_location_conflict(appointment: Appointment) -> LocationConflict:
    return LocationConflict(
        appointment_id=appointment.id,
        location=appointment.location,
        location_type=location_type(appointment.location),
        client_name=appointment.client_name,
        service=appointment.service,
        start_time=appointment.date,
        end_time=appointment.end,
    )


def active_staff_appointments(
    appointments: Iterable[Appointment],
    staff_id: str,
    exclude_appointment_id: Optional[str] = None,
) -> list[Appointment]:
    """Non-terminal appointments of one staff member.

    ``exclude_appointment_id`` drops the appointment being modified together
    with the shadows it owns, so a reschedule never collides with itself.
    """
    result = []
    for appointment in appointments:
        if appointment.staff_id != staff_id:
            continue
        if exclude_appointment_id and (
            appointment.id == exclude_appointment_id
            or (appointment.is_reflected and appointment.original_appointment_id == exclude_appointment_id)
        ):
            continue
        if not appointment.is_active:
            continue
        result.append(appointment)
    return result


class StaffAvailabilityService:
    """Prevents double-booking of a staff member across all locations."""

    def __init__(
        self,
        store: AppointmentStore,
        buffer_config: Optional[BufferPolicy] = None,
        buffer_policy: Optional[BufferPolicyProvider] = None,
    ) -> None:
        self.store = store
        self._buffer_config = buffer_config or BufferPolicy()
        self.buffer_policy = buffer_policy

    # ------------------------------------------------------------------
    # Buffer configuration
    # ------------------------------------------------------------------

    def set_buffer_config(
        self, before_minutes: Optional[int] = None, after_minutes: Optional[int] = None
    ) -> None:
        """Update the static buffer; omitted sides keep their current value."""
        update = {}
        if before_minutes is not None:
            update["before_minutes"] = before_minutes
        if after_minutes is not None:
            update["after_minutes"] = after_minutes
        self._buffer_config = BufferPolicy.model_validate(
            {**self._buffer_config.model_dump(), **update}
        )

    def get_buffer_config(self) -> BufferPolicy:
        return self._buffer_config.model_copy()

    def _effective_buffer(
        self,
        service_id: Optional[str],
        location_id: Optional[str],
        appointment_time: Optional[datetime],
    ) -> BufferPolicy:
        """Larger of the static buffer and the policy's answer for this context."""
        if self.buffer_policy is None:
            return self._buffer_config
        dynamic = self.buffer_policy.get_buffer_policy(
            service_id=service_id, location_id=location_id, time=appointment_time
        )
        return self._buffer_config.merge_max(dynamic)

    # ------------------------------------------------------------------
    # Single-staff availability
    # ------------------------------------------------------------------

    async def check_availability(
        self,
        staff_id: str,
        slot: TimeSlot,
        exclude_appointment_id: Optional[str] = None,
        service_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """Check whether ``staff_id`` is free for ``slot`` at every location.

        Never raises on storage errors: a failed read reports the staff
        member as unavailable.
        """
        try:
            all_appointments = await self.store.load_all_appointments()
        except Exception as e:
            logger.error("Error checking staff availability for %s: %s", staff_id, e)
            return AvailabilityResult(is_available=False, reason=READ_FAILURE_REASON)

        staff_appointments = active_staff_appointments(
            all_appointments, staff_id, exclude_appointment_id
        )

        buffer = self._effective_buffer(service_id, location_id, slot.start)
        conflicting = self._find_conflicting_appointments(staff_appointments, slot, buffer)
        blocked = self._find_blocked_time_slots(staff_appointments, slot)

        cross_location = [
            _to_location_conflict(appointment)
            for appointment in conflicting
            if appointment.location != location_id
        ]

        has_conflicts = bool(conflicting or blocked)
        if has_conflicts:
            logger.debug(
                "Staff %s unavailable: %d appointment conflict(s), %d blocked slot(s)",
                staff_id,
                len(conflicting),
                len(blocked),
            )

        return AvailabilityResult(
            is_available=not has_conflicts,
            conflicting_appointments=conflicting,
            blocked_time_slots=blocked,
            cross_location_conflicts=cross_location,
            reason=self._generate_conflict_reason(conflicting, blocked) if has_conflicts else None,
        )

    async def is_staff_available(
        self,
        staff_id: str,
        start: datetime,
        duration: int,
        exclude_appointment_id: Optional[str] = None,
        service_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> bool:
        result = await self.check_availability(
            staff_id,
            TimeSlot.from_duration(start, duration),
            exclude_appointment_id=exclude_appointment_id,
            service_id=service_id,
            location_id=location_id,
        )
        return result.is_available

    @staticmethod
    def _find_conflicting_appointments(
        appointments: list[Appointment], requested: TimeSlot, buffer: BufferPolicy
    ) -> list[Appointment]:
        return [
            appointment
            for appointment in appointments
            if not appointment.is_blocked_time
            and overlaps(
                buffered(appointment.slot, buffer.before_minutes, buffer.after_minutes),
                requested,
            )
        ]

    @staticmethod
    def _find_blocked_time_slots(
        appointments: list[Appointment], requested: TimeSlot
    ) -> list[Appointment]:
        # Blocked time is matched without buffers.
        return [
            appointment
            for appointment in appointments
            if appointment.is_blocked_time and overlaps(appointment.slot, requested)
        ]

    @staticmethod
    def _generate_conflict_reason(
        conflicting: list[Appointment], blocked: list[Appointment]
    ) -> str:
        reasons: list[str] = []

        if conflicting:
            home = [a for a in conflicting if a.location == HOME_LOCATION]
            physical = [a for a in conflicting if a.location != HOME_LOCATION]
            locations = list(dict.fromkeys(a.location for a in conflicting))

            if home and physical:
                reasons.append(
                    "has conflicting appointments across home service and physical locations"
                )
            elif home:
                reasons.append("has a home service appointment")
            elif len(locations) == 1:
                reasons.append(f"has an appointment at {location_display_name(locations[0])}")
            else:
                reasons.append("has appointments at multiple locations")

        if blocked:
            reasons.append("has blocked time")

        return f"Staff member {' and '.join(reasons)}"

    # ------------------------------------------------------------------
    # Cross-location pass
    # ------------------------------------------------------------------

    async def check_bidirectional_conflicts(
        self,
        staff_id: str,
        slot: TimeSlot,
        requested_location: str,
        exclude_appointment_id: Optional[str] = None,
    ) -> BidirectionalResult:
        """Time-overlapping appointments at any location other than ``requested_location``.

        Unbuffered, and blocked-time entries are included like any other
        booking. Storage errors propagate to the caller.
        """
        all_appointments = await self.store.load_all_appointments()
        staff_appointments = active_staff_appointments(
            all_appointments, staff_id, exclude_appointment_id
        )

        conflicts = [
            _to_location_conflict(appointment)
            for appointment in staff_appointments
            if appointment.location != requested_location and overlaps(slot, appointment.slot)
        ]
        return BidirectionalResult(has_conflicts=bool(conflicts), conflicts=conflicts)

    # ------------------------------------------------------------------
    # Multi-staff helpers
    # ------------------------------------------------------------------

    async def get_staff_conflicts_for_date(
        self, staff_id: str, day: date, tz_name: Optional[str] = None
    ) -> list[Appointment]:
        """All non-terminal appointments of ``staff_id`` on calendar day ``day``."""
        all_appointments = await self.store.load_all_appointments()
        return [
            appointment
            for appointment in active_staff_appointments(all_appointments, staff_id)
            if to_local(appointment.date, tz_name).date() == day
        ]

    async def check_multiple_staff_availability(
        self,
        staff_ids: list[str],
        slot: TimeSlot,
        exclude_appointment_id: Optional[str] = None,
    ) -> dict[str, AvailabilityResult]:
        results: dict[str, AvailabilityResult] = {}
        for staff_id in staff_ids:
            results[staff_id] = await self.check_availability(
                staff_id, slot, exclude_appointment_id=exclude_appointment_id
            )
        return results

    async def get_available_staff(
        self,
        staff_ids: list[str],
        slot: TimeSlot,
        exclude_appointment_id: Optional[str] = None,
    ) -> list[str]:
        """Ids from ``staff_ids`` that are free for ``slot``, in input order."""
        results = await self.check_multiple_staff_availability(
            staff_ids, slot, exclude_appointment_id
        )
        return [staff_id for staff_id, result in results.items() if result.is_available]
