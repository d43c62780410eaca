"""Tests for the staff availability checker."""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from salon_os.scheduling import (
    Appointment,
    AppointmentStatus,
    BufferPolicy,
    ConfiguredBufferPolicy,
    StaffAvailabilityService,
    TimeSlot,
)
from salon_os.config import BufferMinutes
from salon_os.scheduling.availability import READ_FAILURE_REASON, active_staff_appointments
from salon_os.storage import InMemoryAppointmentStore

DAY = datetime(2025, 6, 26, tzinfo=timezone.utc)


def _at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def _appt(
    start: datetime,
    minutes: int = 60,
    location: str = "loc1",
    staff_id: str = "woyni",
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    **fields,
) -> Appointment:
    return Appointment(
        id=fields.pop("id", str(uuid.uuid4())),
        staff_id=staff_id,
        client_name=fields.pop("client_name", "Abeba"),
        service=fields.pop("service", "Braids"),
        date=start,
        duration=minutes,
        location=location,
        status=status,
        **fields,
    )


class _FailingStore:
    async def load_all_appointments(self):
        raise RuntimeError("database offline")

    async def save_all_appointments(self, appointments):
        raise RuntimeError("database offline")


class TestCheckAvailability:
    """Tests for StaffAvailabilityService.check_availability."""

    async def test_free_staff(self):
        svc = StaffAvailabilityService(InMemoryAppointmentStore())
        result = await svc.check_availability("woyni", TimeSlot.from_duration(_at(10), 60))

        assert result.is_available
        assert result.reason is None
        assert result.conflicting_appointments == []

    async def test_same_location_conflict(self):
        existing = _appt(_at(10), location="loc1")
        svc = StaffAvailabilityService(InMemoryAppointmentStore([existing]))

        result = await svc.check_availability(
            "woyni", TimeSlot.from_duration(_at(10, 30), 60), location_id="loc1"
        )

        assert not result.is_available
        assert [a.id for a in result.conflicting_appointments] == [existing.id]
        assert result.cross_location_conflicts == []
        assert result.reason == "Staff member has an appointment at loc1"

    async def test_cross_location_conflict_is_reported(self):
        existing = _appt(_at(10), location="home")
        svc = StaffAvailabilityService(InMemoryAppointmentStore([existing]))

        result = await svc.check_availability(
            "woyni", TimeSlot.from_duration(_at(10, 30), 60), location_id="loc1"
        )

        assert not result.is_available
        assert len(result.cross_location_conflicts) == 1
        conflict = result.cross_location_conflicts[0]
        assert conflict.appointment_id == existing.id
        assert conflict.location_type == "home"
        assert result.reason == "Staff member has a home service appointment"

    async def test_other_staff_do_not_conflict(self):
        existing = _appt(_at(10), staff_id="sara")
        svc = StaffAvailabilityService(InMemoryAppointmentStore([existing]))

        assert await svc.is_staff_available("woyni", _at(10), 60)

    @pytest.mark.parametrize(
        "status",
        [AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW],
    )
    async def test_terminal_statuses_never_conflict(self, status):
        existing = _appt(_at(10), status=status)
        svc = StaffAvailabilityService(InMemoryAppointmentStore([existing]))

        assert await svc.is_staff_available("woyni", _at(10), 60)

    async def test_excluded_appointment_and_its_shadows_ignored(self):
        original = _appt(_at(10), location="loc1", id="a1")
        shadow = _appt(
            _at(10),
            location="home",
            id="reflected-a1-home",
            is_reflected=True,
            original_appointment_id="a1",
        )
        svc = StaffAvailabilityService(InMemoryAppointmentStore([original, shadow]))

        assert not await svc.is_staff_available("woyni", _at(10, 30), 60)
        assert await svc.is_staff_available(
            "woyni", _at(10, 30), 60, exclude_appointment_id="a1"
        )

    async def test_back_to_back_is_free_without_buffer(self):
        svc = StaffAvailabilityService(InMemoryAppointmentStore([_appt(_at(10))]))

        assert await svc.is_staff_available("woyni", _at(11), 60)

    async def test_static_buffer_blocks_back_to_back(self):
        svc = StaffAvailabilityService(
            InMemoryAppointmentStore([_appt(_at(10))]),
            buffer_config=BufferPolicy(after_minutes=15),
        )

        assert not await svc.is_staff_available("woyni", _at(11), 60)
        assert await svc.is_staff_available("woyni", _at(11, 15), 60)

    async def test_blocked_time_ignores_buffers(self):
        blocked = _appt(_at(10), type="blocked", title="Lunch", client_name="", service="")
        svc = StaffAvailabilityService(
            InMemoryAppointmentStore([blocked]),
            buffer_config=BufferPolicy(before_minutes=30, after_minutes=30),
        )

        result = await svc.check_availability("woyni", TimeSlot.from_duration(_at(11), 30))
        assert result.is_available

        result = await svc.check_availability("woyni", TimeSlot.from_duration(_at(10, 30), 30))
        assert not result.is_available
        assert result.conflicting_appointments == []
        assert [a.id for a in result.blocked_time_slots] == [blocked.id]
        assert result.reason == "Staff member has blocked time"

    async def test_read_failure_reports_unavailable(self):
        svc = StaffAvailabilityService(_FailingStore())

        result = await svc.check_availability("woyni", TimeSlot.from_duration(_at(10), 60))

        assert not result.is_available
        assert result.reason == READ_FAILURE_REASON


class TestBufferConfig:
    def test_set_buffer_config_keeps_omitted_side(self):
        svc = StaffAvailabilityService(
            InMemoryAppointmentStore(), buffer_config=BufferPolicy(before_minutes=5, after_minutes=10)
        )
        svc.set_buffer_config(after_minutes=20)

        assert svc.get_buffer_config() == BufferPolicy(before_minutes=5, after_minutes=20)

    def test_get_buffer_config_returns_copy(self):
        svc = StaffAvailabilityService(InMemoryAppointmentStore())
        config = svc.get_buffer_config()
        config.before_minutes = 99

        assert svc.get_buffer_config().before_minutes == 0

    async def test_dynamic_policy_takes_larger_margin(self):
        policy = ConfiguredBufferPolicy(service_buffers={"color": BufferMinutes(after=30)})
        svc = StaffAvailabilityService(
            InMemoryAppointmentStore([_appt(_at(10))]),
            buffer_config=BufferPolicy(after_minutes=10),
            buffer_policy=policy,
        )

        assert not await svc.is_staff_available("woyni", _at(11, 20), 30, service_id="color")
        assert await svc.is_staff_available("woyni", _at(11, 20), 30, service_id="cut")

    def test_configured_policy_merges_service_and_location(self):
        policy = ConfiguredBufferPolicy(
            service_buffers={"color": BufferMinutes(before=5, after=30)},
            location_buffers={"home": BufferMinutes(before=20, after=10)},
        )

        merged = policy.get_buffer_policy(service_id="color", location_id="home")
        assert merged == BufferPolicy(before_minutes=20, after_minutes=30)
        assert policy.get_buffer_policy(service_id="cut", location_id="loc1") is None

    def test_disabled_policy_returns_none(self):
        policy = ConfiguredBufferPolicy(
            service_buffers={"color": BufferMinutes(after=30)}, enabled=False
        )
        assert policy.get_buffer_policy(service_id="color") is None


class TestBidirectionalConflicts:
    async def test_reports_other_locations_only(self):
        home = _appt(_at(10), location="home", id="h1")
        same = _appt(_at(10), location="loc1", id="s1")
        svc = StaffAvailabilityService(InMemoryAppointmentStore([home, same]))

        result = await svc.check_bidirectional_conflicts(
            "woyni", TimeSlot.from_duration(_at(10, 30), 60), "loc1"
        )

        assert result.has_conflicts
        assert [c.appointment_id for c in result.conflicts] == ["h1"]

    async def test_unbuffered(self):
        svc = StaffAvailabilityService(
            InMemoryAppointmentStore([_appt(_at(10), location="home")]),
            buffer_config=BufferPolicy(after_minutes=30),
        )

        result = await svc.check_bidirectional_conflicts(
            "woyni", TimeSlot.from_duration(_at(11), 60), "loc1"
        )
        assert not result.has_conflicts

    async def test_storage_errors_propagate(self):
        svc = StaffAvailabilityService(_FailingStore())

        with pytest.raises(RuntimeError):
            await svc.check_bidirectional_conflicts(
                "woyni", TimeSlot.from_duration(_at(10), 60), "loc1"
            )


class TestMultiStaff:
    async def test_get_available_staff_keeps_input_order(self):
        store = InMemoryAppointmentStore([_appt(_at(10), staff_id="sara")])
        svc = StaffAvailabilityService(store)

        available = await svc.get_available_staff(
            ["sara", "woyni", "hana"], TimeSlot.from_duration(_at(10), 60)
        )
        assert available == ["woyni", "hana"]

    async def test_check_multiple_staff_availability(self):
        store = InMemoryAppointmentStore([_appt(_at(10), staff_id="sara")])
        svc = StaffAvailabilityService(store)

        results = await svc.check_multiple_staff_availability(
            ["sara", "woyni"], TimeSlot.from_duration(_at(10), 60)
        )
        assert not results["sara"].is_available
        assert results["woyni"].is_available

    async def test_conflicts_for_date(self):
        today = _appt(_at(10))
        tomorrow = _appt(_at(10) + timedelta(days=1))
        cancelled = _appt(_at(14), status=AppointmentStatus.CANCELLED)
        svc = StaffAvailabilityService(InMemoryAppointmentStore([today, tomorrow, cancelled]))

        result = await svc.get_staff_conflicts_for_date("woyni", date(2025, 6, 26))
        assert [a.id for a in result] == [today.id]

    def test_active_staff_appointments_filters(self):
        keep = _appt(_at(10))
        other = _appt(_at(10), staff_id="sara")
        done = _appt(_at(12), status=AppointmentStatus.COMPLETED)

        assert active_staff_appointments([keep, other, done], "woyni") == [keep]
