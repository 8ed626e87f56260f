"""
Tests for domain models.
"""

from datetime import time

import pendulum
import pytest

from meetingscheduler.domain.models import (
    AvailableSlot,
    BusyInterval,
    LocationSlot,
    LocationSummary,
    Meeting,
    ResourceKind,
    WorkingHours,
    WorkingWindow,
)

TZ = "Europe/Berlin"


def _at(text: str):
    return pendulum.parse(text, tz=TZ)


class TestAvailableSlot:
    """Tests for AvailableSlot value type."""

    def test_create_valid_slot(self):
        """Test creating a valid slot."""
        slot = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 17:00"))

        assert slot.duration_minutes() == 480

    def test_zero_length_slot_raises_error(self):
        """Zero-length slots cannot exist."""
        with pytest.raises(ValueError, match="must be before end"):
            AvailableSlot(start=_at("2024-11-25 10:00"), end=_at("2024-11-25 10:00"))

    def test_value_equality_and_hashing(self):
        """Slots with equal bounds are equal and collapse in sets."""
        first = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00"))
        second = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00"))

        assert first == second
        assert len({first, second}) == 1

    def test_ordering_by_start_then_end(self):
        """Slots sort by start, ties broken by end."""
        late = AvailableSlot(start=_at("2024-11-25 11:00"), end=_at("2024-11-25 12:00"))
        long_early = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 11:00"))
        short_early = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00"))

        assert sorted([late, long_early, short_early]) == [short_early, long_early, late]

    def test_slot_is_immutable(self):
        slot = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00"))

        with pytest.raises(AttributeError):
            slot.start = _at("2024-11-25 08:00")


class TestBusyInterval:
    """Tests for BusyInterval clipping."""

    def setup_method(self):
        self.window = WorkingWindow(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 17:00"))

    def test_clip_to_window(self):
        """Meetings sticking out of the window are cut at its bounds."""
        busy = BusyInterval(start=_at("2024-11-25 08:00"), end=_at("2024-11-25 10:00"))

        clipped = busy.clip_to(self.window)

        assert clipped == BusyInterval(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00"))

    def test_clip_outside_window_returns_none(self):
        busy = BusyInterval(start=_at("2024-11-25 17:00"), end=_at("2024-11-25 18:00"))

        assert busy.clip_to(self.window) is None


class TestWorkingHours:
    """Tests for WorkingHours configuration."""

    def test_defaults_to_missing_bounds(self):
        hours = WorkingHours()

        assert hours.start is None
        assert hours.end is None

    def test_end_before_start_allowed(self):
        hours = WorkingHours(start=time(22, 0), end=time(6, 0))

        assert hours.end < hours.start

    def test_equal_bounds_raise_error(self):
        with pytest.raises(ValueError, match="must differ"):
            WorkingHours(start=time(9, 0), end=time(9, 0))

    def test_str_marks_default_bounds(self):
        assert str(WorkingHours(start=time(8, 30))) == "08:30 - default"


class TestMeeting:
    """Tests for Meeting resource matching."""

    def test_involves_location_and_attendees(self):
        meeting = Meeting(
            id=1,
            title="Standup",
            start=_at("2024-11-25 09:30"),
            end=_at("2024-11-25 10:00"),
            location_id=7,
            attendee_ids=frozenset({1, 2}),
        )

        assert meeting.involves(ResourceKind.LOCATION, 7)
        assert not meeting.involves(ResourceKind.LOCATION, 1)
        assert meeting.involves(ResourceKind.ATTENDEE, 2)
        assert not meeting.involves(ResourceKind.ATTENDEE, 7)

    def test_invalid_meeting_raises_error(self):
        with pytest.raises(ValueError):
            Meeting(
                id=1,
                title="Backwards",
                start=_at("2024-11-25 10:00"),
                end=_at("2024-11-25 09:00"),
                location_id=1,
            )


class TestLocationSlot:
    """Tests for LocationSlot pairs."""

    def test_pairs_compare_by_value(self):
        room = LocationSummary(id=1, name="Focus Room", capacity=4)
        slot = AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00"))

        assert LocationSlot(location=room, slot=slot) == LocationSlot(
            location=LocationSummary(id=1, name="Focus Room", capacity=4),
            slot=AvailableSlot(start=_at("2024-11-25 09:00"), end=_at("2024-11-25 10:00")),
        )
