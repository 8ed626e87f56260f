"""
Core business logic for calculating available time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). Every method
returns new lists and never reorders or mutates the caller's collections.
"""

from __future__ import annotations

import logging
from datetime import date as date_type
from datetime import time
from typing import Iterable, List, Sequence

import pendulum
from pendulum import Date, DateTime

from .models import (
    AvailableSlot,
    BusyInterval,
    LocationSlot,
    WorkingHours,
    WorkingWindow,
)

logger = logging.getLogger(__name__)

DEFAULT_WORKING_START = time(9, 0)
DEFAULT_WORKING_END = time(17, 0)


class SlotCalculator:
    """
    Turns bookings into free time and combines free time across resources.

    Algorithm building blocks:
    1. Resolve a resource's working hours to a concrete window for a date
    2. Sweep the sorted busy intervals to get the free slots in the window
    3. Intersect free slot lists pairwise (two-pointer sweep) and merge
    4. Fold the intersection over all attendees, stopping once it is empty
    5. Filter by minimum duration
    6. Cross-intersect attendee gaps with location slots for suggestions
    """

    def __init__(
        self,
        default_start: time = DEFAULT_WORKING_START,
        default_end: time = DEFAULT_WORKING_END,
        timezone: str = "Europe/Berlin",
    ):
        self.default_start = default_start
        self.default_end = default_end
        self.timezone = timezone

    def working_window(self, hours: WorkingHours | None, day: date_type) -> WorkingWindow | None:
        """
        Get the working window of a resource for a specific day.

        Missing bounds fall back to the defaults independently. When the end
        is earlier than the start the window closes on the following day.
        Returns None if the resolved bounds coincide, e.g. a start override
        equal to the default end.
        """
        hours = hours or WorkingHours()
        work_start = hours.start if hours.start is not None else self.default_start
        work_end = hours.end if hours.end is not None else self.default_end

        if work_start == work_end:
            logger.debug("Working hours %s resolve to an empty window", hours)
            return None

        day = Date(day.year, day.month, day.day)

        if work_end < work_start:
            window = WorkingWindow(
                start=self._at(day, work_start),
                end=self._at(day.add(days=1), work_end),
            )
            logger.debug("Calculated overnight working window: %s", window)
        else:
            window = WorkingWindow(start=self._at(day, work_start), end=self._at(day, work_end))
            logger.debug("Calculated same-day working window: %s", window)

        return window

    def _at(self, day: Date, moment: time) -> DateTime:
        return pendulum.datetime(
            day.year,
            day.month,
            day.day,
            moment.hour,
            moment.minute,
            moment.second,
            tz=self.timezone,
        )

    def free_slots(
        self,
        window: WorkingWindow,
        busy: Iterable[BusyInterval],
    ) -> List[AvailableSlot]:
        """
        Subtract busy times from a working window, yielding free slots.

        Example:
        Working: 09:00 - 17:00
        Busy: [10:00-11:00, 14:00-15:00]
        Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
        """
        free: List[AvailableSlot] = []
        cursor = window.start

        for interval in sorted(busy, key=lambda b: b.start):
            # Clip both bounds into the window
            busy_start = min(max(interval.start, window.start), window.end)
            busy_end = max(min(interval.end, window.end), window.start)

            if busy_start > cursor:
                free.append(AvailableSlot(start=cursor, end=busy_start))

            # Only ever move forward, overlapping bookings collapse here
            cursor = max(cursor, busy_end)

        if window.end > cursor:
            free.append(AvailableSlot(start=cursor, end=window.end))

        logger.debug("Calculated %d free slots within %s", len(free), window)
        return free

    def intersect(
        self,
        first: Sequence[AvailableSlot],
        second: Sequence[AvailableSlot],
    ) -> List[AvailableSlot]:
        """
        Calculate the intersection of two sorted, non-overlapping slot lists.

        Two-pointer sweep: whichever slot ends earlier cannot overlap anything
        further along the other list, so its pointer advances.
        """
        if not first or not second:
            return []

        raw: List[AvailableSlot] = []
        i = j = 0

        while i < len(first) and j < len(second):
            a, b = first[i], second[j]

            overlap_start = max(a.start, b.start)
            overlap_end = min(a.end, b.end)
            if overlap_start < overlap_end:
                raw.append(AvailableSlot(start=overlap_start, end=overlap_end))

            if a.end < b.end:
                i += 1
            elif b.end < a.end:
                j += 1
            else:
                i += 1
                j += 1

        logger.debug("Raw intersection found %d slots before merging", len(raw))
        return self.merge(raw)

    def merge(self, slots: Iterable[AvailableSlot]) -> List[AvailableSlot]:
        """
        Merge overlapping or adjacent slots into maximal runs.

        Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
        """
        ordered = sorted(slots)
        if not ordered:
            return []

        merged: List[AvailableSlot] = [ordered[0]]

        for current in ordered[1:]:
            last = merged[-1]
            if current.start <= last.end:
                if current.end > last.end:
                    merged[-1] = AvailableSlot(start=last.start, end=current.end)
            else:
                merged.append(current)

        return merged

    @staticmethod
    def filter_by_duration(
        slots: Iterable[AvailableSlot],
        min_duration_minutes: int,
    ) -> List[AvailableSlot]:
        """Keep slots lasting at least the given number of minutes."""
        return [slot for slot in slots if slot.duration_minutes() >= min_duration_minutes]

    def common_availability(
        self,
        free_slot_lists: Sequence[Sequence[AvailableSlot]],
    ) -> List[AvailableSlot]:
        """
        Calculate the free time shared by every list.

        Only times when ALL resources are free will be returned.
        """
        if not free_slot_lists:
            return []

        common = list(free_slot_lists[0])
        logger.debug("Initial availability: %d slots", len(common))

        for index, other in enumerate(free_slot_lists[1:], start=1):
            if not common:
                logger.debug("Common availability became empty, stopping intersection early")
                break
            common = self.intersect(common, other)
            logger.debug("Common availability after list %d: %d slots", index, len(common))

        return common

    def cross_intersect(
        self,
        gaps: Sequence[AvailableSlot],
        location_slots: Sequence[LocationSlot],
        min_duration_minutes: int,
    ) -> List[LocationSlot]:
        """
        Intersect every attendee gap with every location slot.

        The duration requirement is checked on the intersection itself, which
        can be shorter than both inputs. Identical results are kept once, in
        order of first appearance.
        """
        suggestions: List[LocationSlot] = []

        for gap in gaps:
            for location_slot in location_slots:
                overlap_start = max(gap.start, location_slot.slot.start)
                overlap_end = min(gap.end, location_slot.slot.end)
                if overlap_start >= overlap_end:
                    continue

                overlap = AvailableSlot(start=overlap_start, end=overlap_end)
                if overlap.duration_minutes() >= min_duration_minutes:
                    suggestions.append(LocationSlot(location=location_slot.location, slot=overlap))

        distinct = list(dict.fromkeys(suggestions))
        logger.debug(
            "Generated %d distinct suggestions from %d gaps and %d location slots",
            len(distinct),
            len(gaps),
            len(location_slots),
        )
        return distinct
