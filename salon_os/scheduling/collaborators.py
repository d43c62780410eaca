"""Interfaces the engine consumes, plus the settings-driven buffer policy."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence, runtime_checkable

from salon_os.config import BufferMinutes, Settings
from salon_os.scheduling.models import Appointment, BufferPolicy, StaffDirectoryEntry


@runtime_checkable
class AppointmentStore(Protocol):
    """Full-collection appointment persistence."""

    async def load_all_appointments(self) -> list[Appointment]: ...

    async def save_all_appointments(self, appointments: Sequence[Appointment]) -> None: ...


@runtime_checkable
class StaffDirectory(Protocol):
    async def get_staff_directory_entry(self, staff_id: str) -> Optional[StaffDirectoryEntry]: ...


@runtime_checkable
class BufferPolicyProvider(Protocol):
    """Context-dependent buffer lookup. Must answer synchronously."""

    def get_buffer_policy(
        self,
        service_id: Optional[str] = None,
        location_id: Optional[str] = None,
        time: Optional[datetime] = None,
    ) -> Optional[BufferPolicy]: ...


def _to_policy(minutes: BufferMinutes) -> BufferPolicy:
    return BufferPolicy(before_minutes=minutes.before, after_minutes=minutes.after)


class ConfiguredBufferPolicy:
    """Buffer policy backed by per-service and per-location overrides.

    When both a service and a location override apply, the larger margin on
    each side wins. Returns None when disabled or nothing matches.
    """

    def __init__(
        self,
        service_buffers: Optional[dict[str, BufferMinutes]] = None,
        location_buffers: Optional[dict[str, BufferMinutes]] = None,
        enabled: bool = True,
    ) -> None:
        self.service_buffers = dict(service_buffers or {})
        self.location_buffers = dict(location_buffers or {})
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConfiguredBufferPolicy":
        return cls(
            service_buffers=settings.service_buffers,
            location_buffers=settings.location_buffers,
            enabled=settings.dynamic_buffers_enabled,
        )

    def get_buffer_policy(
        self,
        service_id: Optional[str] = None,
        location_id: Optional[str] = None,
        time: Optional[datetime] = None,
    ) -> Optional[BufferPolicy]:
        if not self.enabled:
            return None

        policy: Optional[BufferPolicy] = None
        if service_id and service_id in self.service_buffers:
            policy = _to_policy(self.service_buffers[service_id])
        if location_id and location_id in self.location_buffers:
            location_policy = _to_policy(self.location_buffers[location_id])
            policy = location_policy.merge_max(policy)
        return policy
