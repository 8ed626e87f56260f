"""
Application services for attendee and location availability.

The service fetches working hours and bookings through narrow lookup
protocols and delegates every calculation to the domain-level
``SlotCalculator``. Lookups for independent resources run concurrently;
their results are only combined once every lookup has finished.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date as date_type
from typing import Awaitable, Iterable, List, Protocol, Sequence, TypeVar

from pendulum import DateTime

from ..domain.exceptions import ResourceNotFoundError
from ..domain.models import (
    AvailableSlot,
    BusyInterval,
    LocationSlot,
    LocationSummary,
    Meeting,
    ResourceKind,
    WorkingHours,
    WorkingWindow,
)
from ..domain.slot_calculator import SlotCalculator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceWindowLookup(Protocol):
    """Resolves the configured working hours of an attendee or location."""

    async def working_hours(self, kind: ResourceKind, resource_id: int) -> WorkingHours:
        """Return working hours, raising ResourceNotFoundError for unknown ids."""


class BusyIntervalLookup(Protocol):
    """Provides the bookings of a resource that overlap a window."""

    async def busy_intervals(
        self,
        kind: ResourceKind,
        resource_id: int,
        window: WorkingWindow,
    ) -> List[BusyInterval]:
        """Return busy intervals overlapping the window, in any order."""


class CandidateLocationLookup(Protocol):
    """Lists the locations eligible for a meeting."""

    async def candidate_locations(self, min_capacity: int | None = None) -> List[LocationSummary]:
        """
        Return all locations, or those seating at least ``min_capacity``.
        Raises ResourceNotFoundError when a capacity filter matches nothing.
        """


class MeetingLookup(Protocol):
    """Lists the booked meetings of a resource."""

    async def meetings_between(
        self,
        kind: ResourceKind,
        resource_id: int,
        start: DateTime,
        end: DateTime,
    ) -> List[Meeting]:
        """Return meetings starting within [start, end]."""


class ScheduleRepository(
    ResourceWindowLookup,
    BusyIntervalLookup,
    CandidateLocationLookup,
    MeetingLookup,
    Protocol,
):
    """A data source able to answer every lookup the service needs."""


async def gather_all(awaitables: Iterable[Awaitable[T]]) -> List[T]:
    """
    Run awaitables concurrently and return their results in input order.

    The first failure cancels the lookups still in flight and is re-raised.
    """
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        raise


class AvailabilityService:
    """
    Orchestrates lookups and slot calculation.

    Dependency inversion toward protocols makes it easy to plug in the JSON
    file repository, the HTTP repository or simple stubs in tests.
    """

    def __init__(
        self,
        *,
        window_lookup: ResourceWindowLookup,
        busy_lookup: BusyIntervalLookup,
        location_lookup: CandidateLocationLookup,
        slot_calculator: SlotCalculator,
        meeting_lookup: MeetingLookup | None = None,
    ) -> None:
        self._window_lookup = window_lookup
        self._busy_lookup = busy_lookup
        self._location_lookup = location_lookup
        self._meeting_lookup = meeting_lookup
        self._slot_calculator = slot_calculator

    @classmethod
    def from_repository(
        cls,
        repository: ScheduleRepository,
        slot_calculator: SlotCalculator,
    ) -> "AvailabilityService":
        """Build a service whose lookups are all served by one repository."""
        return cls(
            window_lookup=repository,
            busy_lookup=repository,
            location_lookup=repository,
            meeting_lookup=repository,
            slot_calculator=slot_calculator,
        )

    async def get_free_slots(
        self,
        kind: ResourceKind,
        resource_id: int,
        day: date_type,
    ) -> List[AvailableSlot]:
        """
        Find the free slots of one attendee or location within its working
        window on the given day.

        Raises:
            ResourceNotFoundError: If the resource does not exist
        """
        logger.debug("Finding available time slots for %s %s on %s", kind.label, resource_id, day)
        hours = await self._window_lookup.working_hours(kind, resource_id)
        return await self._free_slots_within_hours(kind, resource_id, hours, day)

    async def get_attendee_free_slots(self, attendee_id: int, day: date_type) -> List[AvailableSlot]:
        return await self.get_free_slots(ResourceKind.ATTENDEE, attendee_id, day)

    async def get_location_free_slots(self, location_id: int, day: date_type) -> List[AvailableSlot]:
        return await self.get_free_slots(ResourceKind.LOCATION, location_id, day)

    async def _free_slots_within_hours(
        self,
        kind: ResourceKind,
        resource_id: int,
        hours: WorkingHours,
        day: date_type,
    ) -> List[AvailableSlot]:
        window = self._slot_calculator.working_window(hours, day)
        if window is None:
            logger.info("No working time for %s %s on %s", kind.label, resource_id, day)
            return []

        busy = await self._busy_lookup.busy_intervals(kind, resource_id, window)
        logger.debug("Found %d busy intervals for %s %s in %s", len(busy), kind.label, resource_id, window)

        slots = self._slot_calculator.free_slots(window, busy)
        logger.info(
            "Calculated %d available time slots for %s %s on %s",
            len(slots),
            kind.label,
            resource_id,
            day,
        )
        return slots

    async def get_location_availability(
        self,
        *,
        day: date_type,
        min_duration_minutes: int,
        min_capacity: int | None = None,
    ) -> List[LocationSlot]:
        """
        Pair every sufficiently long free slot with the location offering it.

        Without a capacity filter all locations are considered. With one,
        ResourceNotFoundError is raised when no location is large enough.
        Result order carries no meaning.
        """
        logger.debug(
            "Calculating location availability for %s, duration >= %s, capacity >= %s",
            day,
            min_duration_minutes,
            min_capacity if min_capacity is not None else "N/A",
        )

        locations = await self._location_lookup.candidate_locations(min_capacity)
        if not locations:
            logger.info("No locations available to check")
            return []

        per_location = await gather_all(
            self._free_slots_within_hours(ResourceKind.LOCATION, location.id, location.working_hours, day)
            for location in locations
        )

        result: List[LocationSlot] = []
        for location, slots in zip(locations, per_location):
            for slot in self._slot_calculator.filter_by_duration(slots, min_duration_minutes):
                result.append(LocationSlot(location=location, slot=slot))

        logger.info(
            "Found %d location time slots matching the criteria (date: %s, duration >= %s min)",
            len(result),
            day,
            min_duration_minutes,
        )
        return result

    async def get_common_availability(
        self,
        attendee_ids: Iterable[int],
        day: date_type,
    ) -> List[AvailableSlot]:
        """
        Find the time slots where ALL given attendees are free.

        Every attendee is looked up before any intersection happens, so an
        unknown id always raises ResourceNotFoundError, even when the other
        attendees already share no time at all.
        """
        ids = sorted(set(attendee_ids))
        if not ids:
            logger.info("Requested common availability for an empty attendee list")
            return []

        free_slot_lists = await gather_all(
            self.get_free_slots(ResourceKind.ATTENDEE, attendee_id, day)
            for attendee_id in ids
        )
        common = self._slot_calculator.common_availability(free_slot_lists)

        logger.info("Found %d common available slots for attendees %s on %s", len(common), ids, day)
        return common

    async def get_meeting_suggestions(
        self,
        *,
        attendee_ids: Iterable[int],
        min_duration_minutes: int,
        day: date_type,
    ) -> List[LocationSlot]:
        """
        Suggest location slots where every attendee and the room are free.

        The room must seat all attendees. Locations are only consulted once
        the attendees share at least one gap of the requested duration.
        """
        ids = sorted(set(attendee_ids))
        logger.info(
            "Finding meeting suggestions for attendees %s, date: %s, duration: %s min",
            ids,
            day,
            min_duration_minutes,
        )

        common = await self.get_common_availability(ids, day)
        if not common:
            logger.info("No common available time slots found for the attendees on %s", day)
            return []

        gaps = self._slot_calculator.filter_by_duration(common, min_duration_minutes)
        if not gaps:
            logger.info("No common available time slots with sufficient duration (%s min)", min_duration_minutes)
            return []

        location_slots = await self.get_location_availability(
            day=day,
            min_duration_minutes=min_duration_minutes,
            min_capacity=len(ids),
        )
        if not location_slots:
            logger.info("No available location slots on %s for %d attendees", day, len(ids))
            return []

        suggestions = self._slot_calculator.cross_intersect(gaps, location_slots, min_duration_minutes)
        logger.info("Found %d meeting suggestions", len(suggestions))
        return suggestions

    async def get_meetings_in_range(
        self,
        kind: ResourceKind,
        resource_id: int,
        start: DateTime,
        end: DateTime,
    ) -> List[Meeting]:
        """
        List the meetings of a resource starting within [start, end].

        An unknown resource yields an empty list rather than an error.
        """
        if self._meeting_lookup is None:
            raise RuntimeError("No meeting lookup configured for this service")

        try:
            meetings = await self._meeting_lookup.meetings_between(kind, resource_id, start, end)
        except ResourceNotFoundError:
            logger.warning("Attempted to get schedule for non-existent %s ID: %s", kind.label, resource_id)
            return []

        logger.info("Found %d meetings for %s %s in the specified range", len(meetings), kind.label, resource_id)
        return sorted(meetings, key=lambda meeting: meeting.start)


def sort_location_slots(slots: Sequence[LocationSlot]) -> List[LocationSlot]:
    """Order location slots by start, then location name, for display."""
    return sorted(slots, key=lambda item: (item.slot.start, item.location.name, item.location.id))
