"""SQLAlchemy 2.0 async models for appointments and the staff directory."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class AppointmentDB(Base):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(200), primary_key=True)
    client_id: Mapped[str | None] = mapped_column(String(100))
    staff_id: Mapped[str] = mapped_column(String(100), nullable=False)
    staff_name: Mapped[str] = mapped_column(String(200), default="")
    client_name: Mapped[str] = mapped_column(String(300), default="")
    service: Mapped[str] = mapped_column(String(300), default="")
    service_id: Mapped[str | None] = mapped_column(String(100))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(30), default="pending")
    type: Mapped[str | None] = mapped_column(String(30))
    title: Mapped[str | None] = mapped_column(String(200))
    notes: Mapped[str | None] = mapped_column(Text)
    is_reflected: Mapped[bool] = mapped_column(Boolean, default=False)
    original_appointment_id: Mapped[str | None] = mapped_column(String(100))
    reflection_type: Mapped[str | None] = mapped_column(String(30))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_appointments_staff_date", "staff_id", "date"),
        Index("ix_appointments_original", "original_appointment_id"),
    )


class StaffDB(Base):
    __tablename__ = "staff"

    staff_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    status: Mapped[str] = mapped_column(String(20), default="active")
    home_service_capable: Mapped[bool] = mapped_column(Boolean, default=False)
    locations: Mapped[list[str]] = mapped_column(JSON, default=list)
