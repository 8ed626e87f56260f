"""
Domain-specific exception hierarchy for the meeting scheduler.
"""

from __future__ import annotations

from typing import Any


class SchedulerError(Exception):
    """Base class for all application-level errors."""


class ResourceNotFoundError(SchedulerError):
    """
    Raised when a referenced attendee or location does not exist, or when a
    capacity filter matches no location at all.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: Any = None,
        resource_id: Any = None,
        min_capacity: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.resource_id = resource_id
        self.min_capacity = min_capacity

    @classmethod
    def for_resource(cls, kind: Any, resource_id: Any) -> "ResourceNotFoundError":
        label = getattr(kind, "label", str(kind))
        return cls(
            f"{label.capitalize()} not found with ID: {resource_id}",
            kind=kind,
            resource_id=resource_id,
        )

    @classmethod
    def for_capacity(cls, min_capacity: int) -> "ResourceNotFoundError":
        return cls(
            f"Locations not found with capacity equal or greater than: {min_capacity}",
            min_capacity=min_capacity,
        )


class DataSourceError(SchedulerError):
    """Raised when schedule data cannot be fetched or parsed."""
