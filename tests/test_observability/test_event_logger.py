"""Tests for the scheduling event logger."""

import json

import pytest

from salon_os.observability import (
    EventType,
    ReflectionEvent,
    SchedulingEventLogger,
    ValidationEvent,
)


@pytest.fixture
def temp_log_dir(tmp_path):
    """Create temporary log directory."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


@pytest.fixture
def events(temp_log_dir):
    return SchedulingEventLogger(log_dir=temp_log_dir, enabled=True)


class TestSchedulingEventLogger:
    """Tests for SchedulingEventLogger."""

    def test_init_creates_log_directory(self, tmp_path):
        log_dir = tmp_path / "new_logs"
        SchedulingEventLogger(log_dir=log_dir)

        assert log_dir.exists()

    def test_disabled_logger_writes_nothing(self, temp_log_dir):
        events = SchedulingEventLogger(log_dir=temp_log_dir, enabled=False)

        with events.validation("woyni", "loc1") as event:
            event.is_valid = False
        events.log_reflection(EventType.REFLECTION_CREATED, count=1)

        assert not (temp_log_dir / "booking_validation.jsonl").exists()
        assert not (temp_log_dir / "reflection.jsonl").exists()

    def test_validation_event(self, events, temp_log_dir):
        with events.validation("woyni", "home") as event:
            event.is_valid = False
            event.error_count = 2
            event.conflict_types = ["cross-location", "same-location"]

        log_file = temp_log_dir / "booking_validation.jsonl"
        data = json.loads(log_file.read_text().strip())

        assert data["event_type"] == "validation"
        assert data["staff_id"] == "woyni"
        assert data["location"] == "home"
        assert data["is_valid"] is False
        assert data["error_count"] == 2
        assert data["duration_ms"] >= 0
        assert len(data["request_id"]) == 8

    def test_validation_event_written_on_exception(self, events, temp_log_dir):
        with pytest.raises(ValueError):
            with events.validation("woyni", "loc1"):
                raise ValueError("boom")

        assert (temp_log_dir / "booking_validation.jsonl").exists()

    def test_reflection_event(self, events):
        events.log_reflection(
            EventType.REFLECTION_CREATED,
            count=2,
            reflected_ids=["reflected-a1-loc1", "reflected-a1-loc2"],
            staff_id="woyni",
            appointment_id="a1",
        )

        logged = events.get_recent_events("reflection")
        assert len(logged) == 1
        assert logged[0]["event_type"] == "reflection_created"
        assert logged[0]["reflected_ids"] == ["reflected-a1-loc1", "reflected-a1-loc2"]

    def test_reflection_error_event(self, events):
        events.log_reflection_error("update", RuntimeError("x" * 500), appointment_id="a1")

        logged = events.get_recent_events("reflection")[0]
        assert logged["event_type"] == "reflection_error"
        assert logged["operation"] == "update"
        assert logged["error_type"] == "RuntimeError"
        assert len(logged["error_message"]) == 200

    def test_callbacks_receive_events(self, events):
        received = []
        events.add_callback(received.append)

        events.log_reflection(EventType.ORPHANS_CLEANED, count=3)

        assert len(received) == 1
        assert isinstance(received[0], ReflectionEvent)
        assert received[0].count == 3

    def test_failing_callback_is_contained(self, events):
        def broken(event):
            raise RuntimeError("callback down")

        events.add_callback(broken)
        events.log_reflection(EventType.REFLECTION_DELETED, count=1)

        assert len(events.get_recent_events("reflection")) == 1

    def test_get_recent_events_limit_and_bad_lines(self, events, temp_log_dir):
        for i in range(5):
            events.log_reflection(EventType.REFLECTION_CREATED, count=i)
        with open(temp_log_dir / "reflection.jsonl", "a") as f:
            f.write("not json\n")

        recent = events.get_recent_events("reflection", limit=2)
        assert [e["count"] for e in recent] == [3, 4]

    def test_get_recent_events_unknown_type(self, events):
        assert events.get_recent_events("nope") == []

    def test_get_stats(self, events):
        with events.validation("woyni", "loc1") as event:
            event.is_valid = False
        with events.validation("woyni", "loc2"):
            pass

        stats = events.get_stats("validation")
        assert stats["total"] == 2
        assert stats["invalid"] == 1
        assert stats["errors"] == 0

    def test_get_stats_empty(self, events):
        assert events.get_stats("reflection") == {"total": 0}


def test_validation_event_defaults():
    event = ValidationEvent(location="loc1", is_valid=True)
    assert event.event_type == EventType.VALIDATION
    assert event.conflict_types == []
