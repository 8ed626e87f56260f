"""
Schedule repository backed by a JSON data file.

Serves locations, attendees and their booked meetings from memory, which
makes the scheduler usable without a running backend.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from pendulum import DateTime

from ..domain.exceptions import DataSourceError, ResourceNotFoundError
from ..domain.models import (
    Attendee,
    BusyInterval,
    LocationSummary,
    Meeting,
    ResourceKind,
    WorkingHours,
    WorkingWindow,
)
from .payloads import (
    index_by_id,
    parse_attendee,
    parse_location,
    parse_meeting,
    select_candidates,
)

logger = logging.getLogger(__name__)


class JsonScheduleRepository:
    """
    In-memory repository loaded from the shared payload shape.

    Implements every lookup protocol of the availability service.
    """

    def __init__(self, data: Mapping[str, Any], timezone: str = "Europe/Berlin"):
        """
        Initialize the repository.

        Args:
            data: Mapping with ``locations``, ``attendees`` and ``meetings`` lists
            timezone: IANA timezone for naive meeting timestamps

        Raises:
            DataSourceError: If an entry is malformed or an id is duplicated
        """
        if not isinstance(data, Mapping):
            raise DataSourceError("Schedule data must contain a mapping at the root level.")

        self.timezone = timezone
        self._locations: Dict[int, LocationSummary] = index_by_id(
            (parse_location(item) for item in data.get("locations", [])),
            "location",
        )
        self._attendees: Dict[int, Attendee] = index_by_id(
            (parse_attendee(item) for item in data.get("attendees", [])),
            "attendee",
        )
        self._meetings: List[Meeting] = list(
            index_by_id(
                (parse_meeting(item, timezone) for item in data.get("meetings", [])),
                "meeting",
            ).values()
        )

        for meeting in self._meetings:
            if meeting.location_id not in self._locations:
                logger.warning("Meeting %s references unknown location %s", meeting.id, meeting.location_id)

        logger.debug(
            "Loaded %d locations, %d attendees and %d meetings",
            len(self._locations),
            len(self._attendees),
            len(self._meetings),
        )

    @classmethod
    def from_file(cls, data_file: Path, timezone: str = "Europe/Berlin") -> "JsonScheduleRepository":
        """
        Load schedule data from a JSON file.

        Raises:
            FileNotFoundError: If the data file doesn't exist
            DataSourceError: If the file is not valid JSON or has invalid entries
        """
        if not data_file.exists():
            raise FileNotFoundError(f"Schedule data file not found: {data_file}")

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise DataSourceError(f"Invalid JSON in {data_file}: {exc}") from exc

        return cls(data, timezone=timezone)

    def _resource(self, kind: ResourceKind, resource_id: int) -> LocationSummary | Attendee:
        registry = self._locations if kind is ResourceKind.LOCATION else self._attendees
        try:
            return registry[resource_id]
        except KeyError:
            raise ResourceNotFoundError.for_resource(kind, resource_id) from None

    async def working_hours(self, kind: ResourceKind, resource_id: int) -> WorkingHours:
        return self._resource(kind, resource_id).working_hours

    async def busy_intervals(
        self,
        kind: ResourceKind,
        resource_id: int,
        window: WorkingWindow,
    ) -> List[BusyInterval]:
        self._resource(kind, resource_id)

        busy: List[BusyInterval] = []
        for meeting in self._meetings:
            if not meeting.involves(kind, resource_id):
                continue
            clipped = meeting.as_busy_interval().clip_to(window)
            if clipped is not None:
                busy.append(clipped)
        return busy

    async def candidate_locations(self, min_capacity: int | None = None) -> List[LocationSummary]:
        return select_candidates(self._locations.values(), min_capacity)

    async def meetings_between(
        self,
        kind: ResourceKind,
        resource_id: int,
        start: DateTime,
        end: DateTime,
    ) -> List[Meeting]:
        self._resource(kind, resource_id)
        return [
            meeting for meeting in self._meetings
            if meeting.involves(kind, resource_id) and start <= meeting.start <= end
        ]

    async def all_locations(self) -> List[LocationSummary]:
        return sorted(self._locations.values(), key=lambda location: location.id)

    async def all_attendees(self) -> List[Attendee]:
        return sorted(self._attendees.values(), key=lambda attendee: attendee.id)
