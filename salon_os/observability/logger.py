"""Event logger for scheduling telemetry."""

import json
import logging
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Optional

from salon_os.observability.events import (
    EventType,
    ReflectionEvent,
    SchedulingEvent,
    ValidationEvent,
)

logger = logging.getLogger(__name__)


class SchedulingEventLogger:
    """Writes structured scheduling events to JSON Lines files.

    Validation events and reflection events go to separate files. Registered
    callbacks receive every event as it is written. Sink and callback
    failures are logged and never reach the booking flow.
    """

    def __init__(self, log_dir: Optional[Path] = None, enabled: bool = True):
        self.enabled = enabled

        if log_dir is None:
            log_dir = Path("data/logs")
        self.log_dir = log_dir
        if self.enabled:
            self.log_dir.mkdir(parents=True, exist_ok=True)

        self._log_files: dict[str, Path] = {
            "validation": self.log_dir / "booking_validation.jsonl",
            "reflection": self.log_dir / "reflection.jsonl",
        }

        self._callbacks: list[Callable[[SchedulingEvent], None]] = []

    def generate_request_id(self) -> str:
        return str(uuid.uuid4())[:8]

    def add_callback(self, callback: Callable[[SchedulingEvent], None]) -> None:
        """Add callback for real-time event monitoring."""
        self._callbacks.append(callback)

    def _write_event(self, event: SchedulingEvent, log_type: str) -> None:
        if not self.enabled:
            return

        try:
            log_file = self._log_files.get(log_type)
            if log_file:
                with open(log_file, "a") as f:
                    f.write(event.model_dump_json() + "\n")

            for callback in self._callbacks:
                try:
                    callback(event)
                except Exception as e:
                    logger.warning(f"Scheduling event callback failed: {e}")

        except Exception as e:
            logger.warning(f"Failed to write scheduling event: {e}")

    # Validation

    @contextmanager
    def validation(self, staff_id: str, location: str, request_id: Optional[str] = None):
        """Context manager timing one booking validation.

        Usage:
            with events.validation(staff_id, location) as event:
                result = await validator.validate_booking(request)
                event.is_valid = result.is_valid
        """
        start_time = time.time()
        event = ValidationEvent(
            staff_id=staff_id,
            location=location,
            is_valid=True,
            request_id=request_id or self.generate_request_id(),
        )
        try:
            yield event
        finally:
            event.duration_ms = (time.time() - start_time) * 1000
            self._write_event(event, "validation")

    # Reflection

    def log_reflection(
        self,
        event_type: EventType,
        count: int,
        reflected_ids: Optional[list[str]] = None,
        staff_id: Optional[str] = None,
        appointment_id: Optional[str] = None,
    ) -> None:
        event = ReflectionEvent(
            event_type=event_type,
            count=count,
            reflected_ids=reflected_ids or [],
            staff_id=staff_id,
            appointment_id=appointment_id,
        )
        self._write_event(event, "reflection")

    def log_reflection_error(
        self,
        operation: str,
        error: Exception,
        appointment_id: Optional[str] = None,
        staff_id: Optional[str] = None,
    ) -> None:
        event = ReflectionEvent(
            event_type=EventType.REFLECTION_ERROR,
            operation=operation,
            error_type=type(error).__name__,
            error_message=str(error)[:200],
            appointment_id=appointment_id,
            staff_id=staff_id,
        )
        self._write_event(event, "reflection")

    # Utility methods

    def get_recent_events(self, log_type: str, limit: int = 100) -> list[dict[str, Any]]:
        """Read recent events from a log file."""
        log_file = self._log_files.get(log_type)
        if not log_file or not log_file.exists():
            return []

        events = []
        with open(log_file) as f:
            for line in f:
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    continue

        return events[-limit:]

    def get_stats(self, log_type: str) -> dict[str, Any]:
        """Basic counts for a log type."""
        events = self.get_recent_events(log_type, limit=1000)
        if not events:
            return {"total": 0}

        total = len(events)
        errors = sum(1 for e in events if "error" in e.get("event_type", ""))
        invalid = sum(1 for e in events if e.get("is_valid") is False)

        return {
            "total": total,
            "errors": errors,
            "invalid": invalid,
            "error_rate": errors / total,
        }
