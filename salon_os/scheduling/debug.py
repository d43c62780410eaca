"""Diagnostics for the reflection system."""

from pydantic import BaseModel, Field

from salon_os.scheduling.collaborators import AppointmentStore
from salon_os.scheduling.models import Appointment


class ReflectionReport(BaseModel):
    """Appointments split into originals, live shadows and orphaned shadows."""

    original: list[Appointment] = Field(default_factory=list)
    reflected: list[Appointment] = Field(default_factory=list)
    orphaned: list[Appointment] = Field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.orphaned


def partition_appointments(appointments: list[Appointment]) -> ReflectionReport:
    original_ids = {a.id for a in appointments if not a.is_reflected}
    report = ReflectionReport()
    for appointment in appointments:
        if not appointment.is_reflected:
            report.original.append(appointment)
        elif appointment.original_appointment_id in original_ids:
            report.reflected.append(appointment)
        else:
            report.orphaned.append(appointment)
    return report


async def build_reflection_report(store: AppointmentStore) -> ReflectionReport:
    return partition_appointments(await store.load_all_appointments())


async def get_display_appointment(store: AppointmentStore, appointment: Appointment) -> Appointment:
    """Resolve a shadow to its original for display; originals are returned as-is."""
    if appointment.is_reflected and appointment.original_appointment_id:
        for candidate in await store.load_all_appointments():
            if candidate.id == appointment.original_appointment_id:
                return candidate
    return appointment
