"""
Parsing of location, attendee and meeting payloads into domain models.

The JSON data file and the REST backend share one payload shape:

{
    "locations": [
        {"id": 1, "name": "Room A", "capacity": 8,
         "workingStartTime": "08:00", "workingEndTime": "18:00"}
    ],
    "attendees": [
        {"id": 1, "name": "Alice", "email": "alice@example.com",
         "workingStartTime": null, "workingEndTime": null}
    ],
    "meetings": [
        {"id": 1, "title": "Standup",
         "startTime": "2024-11-25T10:00:00", "endTime": "2024-11-25T10:30:00",
         "location": {"id": 1}, "attendees": [{"id": 1}]}
    ]
}

Meetings may also reference their resources as ``locationId`` and
``attendeeIds``.
"""

from __future__ import annotations

import logging
from datetime import time
from typing import Any, Dict, Iterable, List, Mapping

import pendulum
from pendulum import DateTime

from ..domain.exceptions import DataSourceError, ResourceNotFoundError
from ..domain.models import Attendee, LocationSummary, Meeting, WorkingHours

logger = logging.getLogger(__name__)


def parse_time_of_day(value: Any) -> time | None:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string, passing None through."""
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value))


def parse_timestamp(value: Any, timezone: str) -> DateTime:
    """Parse an ISO 8601 timestamp into the configured timezone."""
    parsed = pendulum.parse(str(value), tz=timezone)
    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse timestamp: {value}")
    return parsed.in_timezone(timezone)


def parse_working_hours(payload: Mapping[str, Any]) -> WorkingHours:
    return WorkingHours(
        start=parse_time_of_day(payload.get("workingStartTime")),
        end=parse_time_of_day(payload.get("workingEndTime")),
    )


def parse_location(payload: Mapping[str, Any]) -> LocationSummary:
    try:
        capacity = payload.get("capacity")
        return LocationSummary(
            id=int(payload["id"]),
            name=str(payload["name"]),
            capacity=int(capacity) if capacity is not None else None,
            working_hours=parse_working_hours(payload),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DataSourceError(f"Invalid location entry {dict(payload)!r}: {exc}") from exc


def parse_attendee(payload: Mapping[str, Any]) -> Attendee:
    try:
        return Attendee(
            id=int(payload["id"]),
            name=str(payload["name"]),
            email=str(payload.get("email", "")),
            working_hours=parse_working_hours(payload),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DataSourceError(f"Invalid attendee entry {dict(payload)!r}: {exc}") from exc


def parse_meeting(payload: Mapping[str, Any], timezone: str) -> Meeting:
    try:
        if "locationId" in payload:
            location_id = int(payload["locationId"])
        else:
            location_id = int(payload["location"]["id"])

        if "attendeeIds" in payload:
            attendee_ids = frozenset(int(value) for value in payload["attendeeIds"])
        else:
            attendee_ids = frozenset(int(item["id"]) for item in payload.get("attendees", []))

        return Meeting(
            id=int(payload["id"]),
            title=str(payload.get("title", "")),
            start=parse_timestamp(payload["startTime"], timezone),
            end=parse_timestamp(payload["endTime"], timezone),
            location_id=location_id,
            attendee_ids=attendee_ids,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DataSourceError(f"Invalid meeting entry {dict(payload)!r}: {exc}") from exc


def index_by_id(items: Iterable[Any], label: str) -> Dict[int, Any]:
    """Index parsed entities by id, rejecting duplicates."""
    indexed: Dict[int, Any] = {}
    for item in items:
        if item.id in indexed:
            raise DataSourceError(f"Duplicate {label} id detected: {item.id}")
        indexed[item.id] = item
    return indexed


def select_candidates(
    locations: Iterable[LocationSummary],
    min_capacity: int | None,
) -> List[LocationSummary]:
    """
    Apply the optional capacity filter.

    Locations of unknown capacity never satisfy a filter. A filter matching
    nothing raises ResourceNotFoundError, while an unfiltered empty list is
    simply returned.
    """
    all_locations = list(locations)
    if min_capacity is None:
        logger.debug("No capacity filter applied, considering all %d locations", len(all_locations))
        return all_locations

    suitable = [
        location for location in all_locations
        if location.capacity is not None and location.capacity >= min_capacity
    ]
    if not suitable:
        raise ResourceNotFoundError.for_capacity(min_capacity)

    logger.debug("Found %d locations matching capacity >= %d", len(suitable), min_capacity)
    return suitable
