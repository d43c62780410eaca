"""Pytest configuration and fixtures."""

import pytest

from salon_os.config import get_settings
from salon_os.scheduling import (
    BookingService,
    BookingValidator,
    ReflectionEngine,
    StaffAvailabilityService,
    StaffCapabilityLookup,
    StaffDirectoryEntry,
)
from salon_os.storage import InMemoryAppointmentStore, InMemoryStaffDirectory


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def woyni():
    """Home-service capable stylist assigned to two branches."""
    return StaffDirectoryEntry(
        staff_id="woyni", name="Woyni", home_service_capable=True, locations=["loc1", "loc2"]
    )


@pytest.fixture
def sara():
    """Branch-only stylist."""
    return StaffDirectoryEntry(staff_id="sara", name="Sara", locations=["loc1"])


@pytest.fixture
def directory(woyni, sara):
    return InMemoryStaffDirectory([woyni, sara])


@pytest.fixture
def store():
    return InMemoryAppointmentStore()


@pytest.fixture
def availability(store):
    return StaffAvailabilityService(store)


@pytest.fixture
def validator(availability):
    return BookingValidator(availability)


@pytest.fixture
def reflection(store, directory):
    return ReflectionEngine(store, StaffCapabilityLookup(directory))


@pytest.fixture
def booking(store, validator, reflection):
    return BookingService(store, validator, reflection)
