"""In-process collaborators for tests, demos and single-process embedding."""

from typing import Iterable, Optional, Sequence

from salon_os.scheduling.models import Appointment, StaffDirectoryEntry


class InMemoryAppointmentStore:
    """Holds the appointment collection in a list; writes replace it wholesale."""

    def __init__(self, appointments: Optional[Iterable[Appointment]] = None):
        self._appointments: list[Appointment] = [a.model_copy() for a in appointments or []]
        self.save_count = 0

    async def load_all_appointments(self) -> list[Appointment]:
        return [a.model_copy() for a in self._appointments]

    async def save_all_appointments(self, appointments: Sequence[Appointment]) -> None:
        self._appointments = [a.model_copy() for a in appointments]
        self.save_count += 1


class InMemoryStaffDirectory:
    def __init__(self, entries: Optional[Iterable[StaffDirectoryEntry]] = None):
        self._entries: dict[str, StaffDirectoryEntry] = {e.staff_id: e for e in entries or []}

    async def get_staff_directory_entry(self, staff_id: str) -> Optional[StaffDirectoryEntry]:
        return self._entries.get(staff_id)

    def upsert(self, entry: StaffDirectoryEntry) -> None:
        self._entries[entry.staff_id] = entry
