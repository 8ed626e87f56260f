"""
Domain models for working windows, busy intervals and available slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import FrozenSet

from pendulum import DateTime


def _check_bounds(kind: str, start: DateTime, end: DateTime) -> None:
    if start >= end:
        raise ValueError(f"{kind} start {start} must be before end {end}")


def _minutes_between(start: DateTime, end: DateTime) -> int:
    return int((end - start).total_seconds() / 60)


class ResourceKind(str, Enum):
    """The two kinds of resource that carry working hours and bookings."""

    ATTENDEE = "attendee"
    LOCATION = "location"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class WorkingHours:
    """
    Working hours of day configured on a resource.

    Either bound may be missing, in which case the system default applies
    to that bound only. An end earlier than the start describes a shift that
    runs past midnight.
    """
    start: time | None = None
    end: time | None = None

    def __post_init__(self):
        if self.start is not None and self.end is not None and self.start == self.end:
            raise ValueError(f"Working start {self.start} must differ from working end {self.end}")

    def __str__(self) -> str:
        start = self.start.strftime("%H:%M") if self.start else "default"
        end = self.end.strftime("%H:%M") if self.end else "default"
        return f"{start} - {end}"


@dataclass(frozen=True)
class WorkingWindow:
    """
    Concrete start/end pair during which a resource is available on a date.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        _check_bounds("Working window", self.start, self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return _minutes_between(self.start, self.end)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('DD.MM.YYYY HH:mm')}"


@dataclass(frozen=True)
class BusyInterval:
    """A booked time range, usually a meeting clipped to a working window."""
    start: DateTime
    end: DateTime

    def __post_init__(self):
        _check_bounds("Busy interval", self.start, self.end)

    def overlaps(self, window: WorkingWindow) -> bool:
        """Check if this interval overlaps the given window."""
        return self.start < window.end and self.end > window.start

    def clip_to(self, window: WorkingWindow) -> "BusyInterval | None":
        """
        Clip the interval to the window bounds.
        Returns None if the interval lies completely outside the window.
        """
        if not self.overlaps(window):
            return None
        return BusyInterval(start=max(self.start, window.start), end=min(self.end, window.end))

    def duration_minutes(self) -> int:
        return _minutes_between(self.start, self.end)


@dataclass(frozen=True, order=True)
class AvailableSlot:
    """
    A free sub-interval of a working window.

    Slots compare by value and sort by start, then by end.
    Zero-length slots cannot be constructed.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        _check_bounds("Slot", self.start, self.end)

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return _minutes_between(self.start, self.end)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class LocationSummary:
    """The parts of a location the availability engine needs."""
    id: int
    name: str
    capacity: int | None = None
    working_hours: WorkingHours = field(default_factory=WorkingHours)


@dataclass(frozen=True)
class LocationSlot:
    """An available slot paired with the location offering it."""
    location: LocationSummary
    slot: AvailableSlot


@dataclass(frozen=True)
class Attendee:
    """A person whose calendar constrains meeting times."""
    id: int
    name: str
    email: str
    working_hours: WorkingHours = field(default_factory=WorkingHours)


@dataclass(frozen=True)
class Meeting:
    """
    A booked meeting as read from the schedule data source.
    The engine never mutates meetings.
    """
    id: int
    title: str
    start: DateTime
    end: DateTime
    location_id: int
    attendee_ids: FrozenSet[int] = frozenset()

    def __post_init__(self):
        _check_bounds("Meeting", self.start, self.end)

    def involves(self, kind: ResourceKind, resource_id: int) -> bool:
        """Check if the meeting books the given resource."""
        if kind is ResourceKind.LOCATION:
            return self.location_id == resource_id
        return resource_id in self.attendee_ids

    def as_busy_interval(self) -> BusyInterval:
        return BusyInterval(start=self.start, end=self.end)
