"""Staff availability and appointment reflection engine."""

from salon_os.scheduling.availability import StaffAvailabilityService
from salon_os.scheduling.booking import AvailabilityCheck, BookingOutcome, BookingService
from salon_os.scheduling.collaborators import (
    AppointmentStore,
    BufferPolicyProvider,
    ConfiguredBufferPolicy,
    StaffDirectory,
)
from salon_os.scheduling.debug import ReflectionReport, build_reflection_report
from salon_os.scheduling.models import (
    HOME_LOCATION,
    Appointment,
    AppointmentNotFoundError,
    AppointmentStatus,
    AvailabilityResult,
    BidirectionalResult,
    BookingRequest,
    BufferPolicy,
    Conflict,
    ConflictType,
    LocationConflict,
    ReflectedAppointmentError,
    ReflectionType,
    SchedulingError,
    StaffDirectoryEntry,
    TimeSlot,
    ValidationResult,
)
from salon_os.scheduling.overlap import buffered, overlaps
from salon_os.scheduling.reflection import ReflectionEngine
from salon_os.scheduling.staff import StaffCapabilityLookup
from salon_os.scheduling.validation import BookingValidator

__all__ = [
    "HOME_LOCATION",
    "Appointment",
    "AppointmentNotFoundError",
    "AppointmentStatus",
    "AppointmentStore",
    "AvailabilityCheck",
    "AvailabilityResult",
    "BidirectionalResult",
    "BookingOutcome",
    "BookingRequest",
    "BookingService",
    "BookingValidator",
    "BufferPolicy",
    "BufferPolicyProvider",
    "ConfiguredBufferPolicy",
    "Conflict",
    "ConflictType",
    "LocationConflict",
    "ReflectedAppointmentError",
    "ReflectionEngine",
    "ReflectionReport",
    "ReflectionType",
    "SchedulingError",
    "StaffAvailabilityService",
    "StaffCapabilityLookup",
    "StaffDirectory",
    "StaffDirectoryEntry",
    "TimeSlot",
    "ValidationResult",
    "buffered",
    "build_reflection_report",
    "overlaps",
]
