"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import DataSourceError, ResourceNotFoundError, SchedulerError
from .models import (
    Attendee,
    AvailableSlot,
    BusyInterval,
    LocationSlot,
    LocationSummary,
    Meeting,
    ResourceKind,
    WorkingHours,
    WorkingWindow,
)
from .slot_calculator import SlotCalculator

__all__ = [
    "Attendee",
    "AvailableSlot",
    "BusyInterval",
    "DataSourceError",
    "LocationSlot",
    "LocationSummary",
    "Meeting",
    "ResourceKind",
    "ResourceNotFoundError",
    "SchedulerError",
    "SlotCalculator",
    "WorkingHours",
    "WorkingWindow",
]
