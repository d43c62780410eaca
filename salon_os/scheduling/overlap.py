"""Interval primitives shared by the availability checker and validator."""

from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from salon_os.scheduling.models import TimeSlot


def overlaps(a: TimeSlot, b: TimeSlot) -> bool:
    """Return True if ``b`` collides with ``a``.

    A collision is any of:
    - ``b`` starts strictly inside ``a``
    - ``b`` ends strictly inside ``a``
    - ``b`` contains ``a`` (shared endpoints included)
    - both start at the same instant

    The last clause makes identical start times conflict even for
    zero-length slots, which the plain ``max(start) < min(end)`` test misses.
    """
    return (
        (a.start < b.start < a.end)
        or (a.start < b.end < a.end)
        or (b.start <= a.start and b.end >= a.end)
        or a.start == b.start
    )


def buffered(slot: TimeSlot, before_minutes: int = 0, after_minutes: int = 0) -> TimeSlot:
    """Widen a slot by ``before_minutes`` at the start and ``after_minutes`` at the end."""
    return TimeSlot(
        start=slot.start - timedelta(minutes=before_minutes),
        end=slot.end + timedelta(minutes=after_minutes),
    )


def minutes_between(a: datetime, b: datetime) -> float:
    """Absolute distance between two instants in minutes."""
    return abs((a - b).total_seconds()) / 60


def to_local(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert an aware datetime into the business zone; naive values pass through."""
    if tz_name is None or value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(tz_name))


def format_time(value: datetime, tz_name: Optional[str] = None) -> str:
    """Format as a 12-hour clock time, e.g. ``9:05 AM``."""
    local = to_local(value, tz_name)
    hour = local.hour % 12 or 12
    return f"{hour}:{local:%M} {'AM' if local.hour < 12 else 'PM'}"


def format_range(start: datetime, end: datetime, tz_name: Optional[str] = None) -> str:
    return f"{format_time(start, tz_name)} to {format_time(end, tz_name)}"
