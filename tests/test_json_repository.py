"""
Tests for the JSON file schedule repository.
"""

import asyncio
import json
from datetime import date, time

import pendulum
import pytest

from meetingscheduler.adapters.json_repository import JsonScheduleRepository
from meetingscheduler.domain.exceptions import DataSourceError, ResourceNotFoundError
from meetingscheduler.domain.models import (
    AvailableSlot,
    BusyInterval,
    ResourceKind,
    WorkingHours,
    WorkingWindow,
)
from meetingscheduler.domain.slot_calculator import SlotCalculator
from meetingscheduler.services.availability import AvailabilityService

TZ = "Europe/Berlin"


def _at(clock: str, day: str = "2024-11-25"):
    return pendulum.parse(f"{day} {clock}", tz=TZ)


SCHEDULE = {
    "locations": [
        {"id": 1, "name": "Focus Room", "capacity": 4, "workingStartTime": "08:00", "workingEndTime": "18:00"},
        {"id": 2, "name": "Board Room", "capacity": 12},
        {"id": 3, "name": "Hallway", "capacity": None},
    ],
    "attendees": [
        {"id": 1, "name": "Alice", "email": "alice@example.com", "workingStartTime": "08:30", "workingEndTime": None},
        {"id": 2, "name": "Bob", "email": "bob@example.com"},
    ],
    "meetings": [
        {
            "id": 1,
            "title": "Standup",
            "startTime": "2024-11-25T09:30:00",
            "endTime": "2024-11-25T10:00:00",
            "location": {"id": 1},
            "attendees": [{"id": 1}, {"id": 2}],
        },
        {
            "id": 2,
            "title": "Late call",
            "startTime": "2024-11-25T16:30:00",
            "endTime": "2024-11-25T19:00:00",
            "locationId": 1,
            "attendeeIds": [1],
        },
        {
            "id": 3,
            "title": "Next day",
            "startTime": "2024-11-26T09:00:00",
            "endTime": "2024-11-26T10:00:00",
            "locationId": 2,
            "attendeeIds": [2],
        },
    ],
}


@pytest.fixture
def repository() -> JsonScheduleRepository:
    return JsonScheduleRepository(SCHEDULE, timezone=TZ)


class TestLookups:
    """Tests for the lookup protocol implementation."""

    def test_working_hours(self, repository):
        hours = asyncio.run(repository.working_hours(ResourceKind.ATTENDEE, 1))

        assert hours == WorkingHours(start=time(8, 30), end=None)

    def test_unknown_ids_raise(self, repository):
        with pytest.raises(ResourceNotFoundError, match="Location not found with ID: 9"):
            asyncio.run(repository.working_hours(ResourceKind.LOCATION, 9))

    def test_busy_intervals_are_clipped_to_window(self, repository):
        window = WorkingWindow(start=_at("09:00"), end=_at("17:00"))

        busy = asyncio.run(repository.busy_intervals(ResourceKind.ATTENDEE, 1, window))

        assert sorted(busy, key=lambda b: b.start) == [
            BusyInterval(start=_at("09:30"), end=_at("10:00")),
            BusyInterval(start=_at("16:30"), end=_at("17:00")),
        ]

    def test_busy_intervals_skip_other_days(self, repository):
        window = WorkingWindow(start=_at("09:00"), end=_at("17:00"))

        assert asyncio.run(repository.busy_intervals(ResourceKind.LOCATION, 2, window)) == []

    def test_candidate_locations(self, repository):
        all_locations = asyncio.run(repository.candidate_locations())
        large = asyncio.run(repository.candidate_locations(5))

        assert {location.id for location in all_locations} == {1, 2, 3}
        assert [location.name for location in large] == ["Board Room"]

    def test_capacity_filter_matching_nothing_raises(self, repository):
        with pytest.raises(ResourceNotFoundError):
            asyncio.run(repository.candidate_locations(50))

    def test_meetings_between(self, repository):
        meetings = asyncio.run(
            repository.meetings_between(ResourceKind.ATTENDEE, 2, _at("00:00"), _at("00:00", day="2024-11-27"))
        )

        assert {meeting.title for meeting in meetings} == {"Standup", "Next day"}


class TestLoading:
    """Tests for loading and validating data."""

    def test_from_file(self, tmp_path):
        data_file = tmp_path / "schedule.json"
        data_file.write_text(json.dumps(SCHEDULE), encoding="utf-8")

        repository = JsonScheduleRepository.from_file(data_file, timezone=TZ)

        assert [attendee.name for attendee in asyncio.run(repository.all_attendees())] == ["Alice", "Bob"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JsonScheduleRepository.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        data_file = tmp_path / "schedule.json"
        data_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(DataSourceError, match="Invalid JSON"):
            JsonScheduleRepository.from_file(data_file)

    def test_duplicate_ids_rejected(self):
        data = {"attendees": [{"id": 1, "name": "A"}, {"id": 1, "name": "B"}]}

        with pytest.raises(DataSourceError, match="Duplicate attendee id"):
            JsonScheduleRepository(data)

    def test_equal_working_bounds_rejected(self):
        data = {"locations": [{"id": 1, "name": "Odd", "workingStartTime": "09:00", "workingEndTime": "09:00"}]}

        with pytest.raises(DataSourceError, match="Invalid location entry"):
            JsonScheduleRepository(data)

    def test_meeting_ending_before_start_rejected(self):
        data = {
            "meetings": [
                {"id": 1, "startTime": "2024-11-25T10:00:00", "endTime": "2024-11-25T09:00:00", "locationId": 1}
            ]
        }

        with pytest.raises(DataSourceError, match="Invalid meeting entry"):
            JsonScheduleRepository(data)


def test_free_slots_end_to_end(repository):
    """The repository plugs straight into the availability service."""
    service = AvailabilityService.from_repository(repository, SlotCalculator(timezone=TZ))

    slots = asyncio.run(service.get_location_free_slots(1, date(2024, 11, 25)))

    assert slots == [
        AvailableSlot(start=_at("08:00"), end=_at("09:30")),
        AvailableSlot(start=_at("10:00"), end=_at("16:30")),
    ]
