"""Tests for the in-memory collaborators."""

from datetime import datetime, timezone

from salon_os.scheduling import Appointment, AppointmentStore, StaffDirectory, StaffDirectoryEntry
from salon_os.storage import InMemoryAppointmentStore, InMemoryStaffDirectory


def _appt(appointment_id: str) -> Appointment:
    return Appointment(
        id=appointment_id,
        staff_id="woyni",
        date=datetime(2025, 6, 26, 10, tzinfo=timezone.utc),
        duration=60,
        location="loc1",
    )


def test_satisfy_protocols():
    assert isinstance(InMemoryAppointmentStore(), AppointmentStore)
    assert isinstance(InMemoryStaffDirectory(), StaffDirectory)


async def test_loaded_appointments_are_copies():
    store = InMemoryAppointmentStore([_appt("a1")])

    loaded = await store.load_all_appointments()
    loaded[0].duration = 5

    assert (await store.load_all_appointments())[0].duration == 60


async def test_save_replaces_collection():
    store = InMemoryAppointmentStore([_appt("a1")])

    await store.save_all_appointments([_appt("a2")])

    assert [a.id for a in await store.load_all_appointments()] == ["a2"]
    assert store.save_count == 1


async def test_directory_upsert():
    directory = InMemoryStaffDirectory()
    directory.upsert(StaffDirectoryEntry(staff_id="sara"))

    assert (await directory.get_staff_directory_entry("sara")).staff_id == "sara"
    assert await directory.get_staff_directory_entry("woyni") is None
