"""Reflected (shadow) appointments for home-service capable staff.

When a home-service capable staff member is booked at a branch, a shadow
appointment is written at the home-service location so home-service booking
screens see them as busy. A home-service booking is reflected into every
branch the staff member is assigned to. Shadows are owned by their original:
they are refreshed when it changes and removed when it goes away.
"""

import logging
from typing import Optional

from salon_os.observability import EventType, SchedulingEventLogger
from salon_os.scheduling.collaborators import AppointmentStore
from salon_os.scheduling.models import (
    HOME_LOCATION,
    Appointment,
    AppointmentStatus,
    ReflectionType,
)
from salon_os.scheduling.staff import StaffCapabilityLookup

logger = logging.getLogger(__name__)

BLOCKING_SUFFIX = " (Location Blocking)"


def reflected_id(original_id: str, location: str) -> str:
    return f"reflected-{original_id}-{location}"


def reflected_client_name(original: Appointment) -> str:
    if original.location == HOME_LOCATION:
        return f"[HOME SERVICE] {original.client_name}"
    return f"[{original.location.upper()}] {original.client_name}"


def reflected_service(original: Appointment) -> str:
    return f"{original.service}{BLOCKING_SUFFIX}"


def _is_shadow_of(appointment: Appointment, original_id: str) -> bool:
    return appointment.is_reflected and appointment.original_appointment_id == original_id


class ReflectionEngine:
    """Creates, refreshes and removes shadow appointments."""

    def __init__(
        self,
        store: AppointmentStore,
        staff: StaffCapabilityLookup,
        events: Optional[SchedulingEventLogger] = None,
    ) -> None:
        self.store = store
        self.staff = staff
        self.events = events

    def _build_shadow(
        self, original: Appointment, location: str, reflection_type: ReflectionType
    ) -> Appointment:
        if reflection_type == ReflectionType.HOME_TO_PHYSICAL:
            notes = "Automatically created to block availability due to home service appointment"
        else:
            notes = (
                "Automatically created to block home service availability due to "
                f"{original.location} appointment"
            )
        return Appointment(
            id=reflected_id(original.id, location),
            client_id=original.client_id,
            staff_id=original.staff_id,
            staff_name=original.staff_name,
            client_name=reflected_client_name(original),
            service=reflected_service(original),
            service_id=original.service_id,
            date=original.date,
            duration=original.duration,
            location=location,
            status=AppointmentStatus.CONFIRMED,
            notes=notes,
            is_reflected=True,
            original_appointment_id=original.id,
            reflection_type=reflection_type,
        )

    async def create_reflected_appointments(self, original: Appointment) -> list[Appointment]:
        """Create the shadows for a newly booked original.

        Returns only the shadows written by this call; shadows that already
        exist are skipped, so repeated calls never duplicate.
        """
        if original.is_reflected:
            return []

        if not await self.staff.is_home_service_capable(original.staff_id):
            logger.info(
                "Staff %s does not have home service capability, skipping reflection",
                original.staff_name or original.staff_id,
            )
            return []

        all_appointments = await self.store.load_all_appointments()
        existing_ids = {appointment.id for appointment in all_appointments}

        if original.location == HOME_LOCATION:
            targets = [
                (location, ReflectionType.HOME_TO_PHYSICAL)
                for location in await self.staff.physical_locations(original.staff_id)
            ]
        else:
            targets = [(HOME_LOCATION, ReflectionType.PHYSICAL_TO_HOME)]

        created = [
            self._build_shadow(original, location, reflection_type)
            for location, reflection_type in targets
            if reflected_id(original.id, location) not in existing_ids
        ]

        if created:
            await self.store.save_all_appointments([*all_appointments, *created])
            logger.info(
                "Created %d reflected appointment(s) for %s: %s",
                len(created),
                original.staff_name or original.staff_id,
                ", ".join(shadow.id for shadow in created),
            )
            if self.events:
                self.events.log_reflection(
                    EventType.REFLECTION_CREATED,
                    count=len(created),
                    reflected_ids=[shadow.id for shadow in created],
                    staff_id=original.staff_id,
                    appointment_id=original.id,
                )

        return created

    async def update_reflected_appointments(self, original: Appointment) -> list[Appointment]:
        """Refresh the content of every shadow owned by ``original``.

        Id, location and reflection type of a shadow never change.
        """
        all_appointments = await self.store.load_all_appointments()

        updated: list[Appointment] = []
        result: list[Appointment] = []
        for appointment in all_appointments:
            if _is_shadow_of(appointment, original.id):
                appointment = appointment.model_copy(
                    update={
                        "staff_name": original.staff_name,
                        "date": original.date,
                        "duration": original.duration,
                        "status": original.status,
                        "client_name": reflected_client_name(original),
                        "service": reflected_service(original),
                    }
                )
                updated.append(appointment)
            result.append(appointment)

        if not updated:
            return []

        await self.store.save_all_appointments(result)
        logger.info(
            "Updated %d reflected appointment(s) for %s",
            len(updated),
            original.staff_name or original.staff_id,
        )
        if self.events:
            self.events.log_reflection(
                EventType.REFLECTION_UPDATED,
                count=len(updated),
                reflected_ids=[shadow.id for shadow in updated],
                staff_id=original.staff_id,
                appointment_id=original.id,
            )
        return updated

    async def delete_reflected_appointments(self, original_id: str) -> int:
        """Remove every shadow owned by ``original_id``; returns how many."""
        all_appointments = await self.store.load_all_appointments()
        remaining = [a for a in all_appointments if not _is_shadow_of(a, original_id)]

        deleted = len(all_appointments) - len(remaining)
        if deleted:
            await self.store.save_all_appointments(remaining)
            logger.info(
                "Deleted %d reflected appointment(s) for original appointment %s",
                deleted,
                original_id,
            )
            if self.events:
                self.events.log_reflection(
                    EventType.REFLECTION_DELETED, count=deleted, appointment_id=original_id
                )
        return deleted

    async def cleanup_orphaned_reflections(self) -> int:
        """Remove shadows whose original no longer exists; returns how many."""
        all_appointments = await self.store.load_all_appointments()
        original_ids = {a.id for a in all_appointments if not a.is_reflected}

        def is_orphan(appointment: Appointment) -> bool:
            return appointment.is_reflected and appointment.original_appointment_id not in original_ids

        orphaned = [a for a in all_appointments if is_orphan(a)]
        if orphaned:
            await self.store.save_all_appointments(
                [a for a in all_appointments if not is_orphan(a)]
            )
            logger.info("Cleaned up %d orphaned reflected appointment(s)", len(orphaned))
            if self.events:
                self.events.log_reflection(
                    EventType.ORPHANS_CLEANED,
                    count=len(orphaned),
                    reflected_ids=[a.id for a in orphaned],
                )
        return len(orphaned)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_reflected_appointments(self, original_id: str) -> list[Appointment]:
        all_appointments = await self.store.load_all_appointments()
        return [a for a in all_appointments if _is_shadow_of(a, original_id)]

    async def is_reflected_appointment(self, appointment_id: str) -> bool:
        all_appointments = await self.store.load_all_appointments()
        return any(a.id == appointment_id and a.is_reflected for a in all_appointments)

    async def get_original_appointment(self, reflected_appointment_id: str) -> Optional[Appointment]:
        all_appointments = await self.store.load_all_appointments()
        by_id = {a.id: a for a in all_appointments}
        shadow = by_id.get(reflected_appointment_id)
        if shadow is None or not shadow.original_appointment_id:
            return None
        return by_id.get(shadow.original_appointment_id)
