"""Collaborator implementations: in-memory and SQLAlchemy-backed."""

from salon_os.storage.memory import InMemoryAppointmentStore, InMemoryStaffDirectory
from salon_os.storage.sql import SqlAppointmentStore, SqlStaffDirectory

__all__ = [
    "InMemoryAppointmentStore",
    "InMemoryStaffDirectory",
    "SqlAppointmentStore",
    "SqlStaffDirectory",
]
