"""SQL-backed appointment store and staff directory."""

from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salon_os.scheduling.models import Appointment, StaffDirectoryEntry, ensure_aware
from salon_os.storage.models import AppointmentDB, StaffDB

logger = logging.getLogger(__name__)

_APPOINTMENT_COLUMNS = (
    "id",
    "client_id",
    "staff_id",
    "staff_name",
    "client_name",
    "service",
    "service_id",
    "date",
    "duration",
    "location",
    "status",
    "type",
    "title",
    "notes",
    "is_reflected",
    "original_appointment_id",
    "reflection_type",
)


def _to_columns(appointment: Appointment) -> dict[str, Any]:
    values = appointment.model_dump(mode="python", include=set(_APPOINTMENT_COLUMNS))
    values["date"] = ensure_aware(appointment.date).astimezone(timezone.utc)
    values["status"] = appointment.status.value
    values["reflection_type"] = (
        appointment.reflection_type.value if appointment.reflection_type else None
    )
    return values


def _row_columns(row: AppointmentDB) -> dict[str, Any]:
    values = {name: getattr(row, name) for name in _APPOINTMENT_COLUMNS}
    # SQLite drops tzinfo on the way back; stored values are UTC.
    values["date"] = ensure_aware(row.date).astimezone(timezone.utc)
    return values


class SqlAppointmentStore:
    """Appointment store over SQLAlchemy.

    ``save_all_appointments`` keeps the full-collection contract but only
    touches rows whose content changed: new ids are inserted, changed rows
    updated, and ids missing from the new collection deleted.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def load_all_appointments(self) -> list[Appointment]:
        async with self.session_factory() as session:
            result = await session.execute(select(AppointmentDB).order_by(AppointmentDB.date))
            return [Appointment.model_validate(_row_columns(row)) for row in result.scalars()]

    async def save_all_appointments(self, appointments: Sequence[Appointment]) -> None:
        incoming = {a.id: _to_columns(a) for a in appointments}

        async with self.session_factory() as session:
            try:
                result = await session.execute(select(AppointmentDB))
                existing = {row.id: row for row in result.scalars()}

                inserted = updated = 0
                for appointment_id, values in incoming.items():
                    row = existing.get(appointment_id)
                    if row is None:
                        session.add(AppointmentDB(**values))
                        inserted += 1
                    elif _row_columns(row) != values:
                        for name, value in values.items():
                            setattr(row, name, value)
                        updated += 1

                removed = [appointment_id for appointment_id in existing if appointment_id not in incoming]
                if removed:
                    await session.execute(delete(AppointmentDB).where(AppointmentDB.id.in_(removed)))

                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.debug(
            "Saved appointments: %d inserted, %d updated, %d deleted", inserted, updated, len(removed)
        )

    async def upsert_appointment(self, appointment: Appointment) -> None:
        """Insert or replace a single appointment by id."""
        async with self.session_factory() as session:
            await session.merge(AppointmentDB(**_to_columns(appointment)))
            await session.commit()


def _to_entry(row: StaffDB) -> StaffDirectoryEntry:
    return StaffDirectoryEntry(
        staff_id=row.staff_id,
        name=row.name,
        status=row.status,
        home_service_capable=row.home_service_capable,
        locations=list(row.locations or []),
    )


class SqlStaffDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get_staff_directory_entry(self, staff_id: str) -> Optional[StaffDirectoryEntry]:
        async with self.session_factory() as session:
            row = await session.get(StaffDB, staff_id)
            if row is None:
                return None
            return _to_entry(row)

    async def upsert_staff(self, entry: StaffDirectoryEntry) -> None:
        async with self.session_factory() as session:
            await session.merge(
                StaffDB(
                    staff_id=entry.staff_id,
                    name=entry.name,
                    status=entry.status,
                    home_service_capable=entry.home_service_capable,
                    locations=list(entry.locations),
                )
            )
            await session.commit()

    async def list_staff(self) -> list[StaffDirectoryEntry]:
        async with self.session_factory() as session:
            result = await session.execute(select(StaffDB).order_by(StaffDB.staff_id))
            return [_to_entry(row) for row in result.scalars()]
