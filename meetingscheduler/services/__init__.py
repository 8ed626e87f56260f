"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import (
    AvailabilityService,
    BusyIntervalLookup,
    CandidateLocationLookup,
    MeetingLookup,
    ResourceWindowLookup,
    ScheduleRepository,
    gather_all,
    sort_location_slots,
)

__all__ = [
    "AvailabilityService",
    "BusyIntervalLookup",
    "CandidateLocationLookup",
    "MeetingLookup",
    "ResourceWindowLookup",
    "ScheduleRepository",
    "gather_all",
    "sort_location_slots",
]
