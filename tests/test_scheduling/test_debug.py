"""Tests for reflection diagnostics."""

from datetime import datetime, timezone

from salon_os.scheduling import Appointment
from salon_os.scheduling.debug import (
    build_reflection_report,
    get_display_appointment,
    partition_appointments,
)
from salon_os.storage import InMemoryAppointmentStore

DAY = datetime(2025, 6, 26, 10, tzinfo=timezone.utc)


def _appt(appointment_id: str, location: str = "loc1", original_id: str | None = None) -> Appointment:
    return Appointment(
        id=appointment_id,
        staff_id="woyni",
        date=DAY,
        duration=60,
        location=location,
        is_reflected=original_id is not None,
        original_appointment_id=original_id,
    )


def test_partition_appointments():
    original = _appt("a1")
    live = _appt("reflected-a1-home", "home", original_id="a1")
    orphan = _appt("reflected-a9-home", "home", original_id="a9")

    report = partition_appointments([original, live, orphan])

    assert [a.id for a in report.original] == ["a1"]
    assert [a.id for a in report.reflected] == ["reflected-a1-home"]
    assert [a.id for a in report.orphaned] == ["reflected-a9-home"]
    assert not report.is_consistent


async def test_build_reflection_report_from_store():
    store = InMemoryAppointmentStore([_appt("a1"), _appt("reflected-a1-home", "home", original_id="a1")])

    report = await build_reflection_report(store)

    assert report.is_consistent
    assert len(report.original) == 1
    assert len(report.reflected) == 1


async def test_display_appointment_resolves_shadow_to_original():
    original = _appt("a1")
    shadow = _appt("reflected-a1-home", "home", original_id="a1")
    store = InMemoryAppointmentStore([original, shadow])

    assert (await get_display_appointment(store, shadow)).id == "a1"
    assert (await get_display_appointment(store, original)).id == "a1"


async def test_display_appointment_keeps_orphan():
    orphan = _appt("reflected-a9-home", "home", original_id="a9")
    store = InMemoryAppointmentStore([orphan])

    assert (await get_display_appointment(store, orphan)).id == orphan.id
