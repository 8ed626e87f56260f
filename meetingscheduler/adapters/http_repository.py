"""
Schedule repository backed by the scheduler's REST API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List

import requests
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
    parse_attendee,
    parse_location,
    parse_meeting,
    select_candidates,
)

logger = logging.getLogger(__name__)


class HttpScheduleRepository:
    """
    Client for the locations, attendees and meetings endpoints.

    Requests are blocking, so each one runs in a worker thread to keep the
    event loop free for concurrent lookups.

    The meetings list is fetched once per event loop and shared by every
    lookup on that loop, so a single CLI command works on one snapshot.
    ``busy_intervals`` trusts the caller to have resolved the resource
    already, through ``working_hours`` or ``candidate_locations``.
    """

    RESOURCE_PATHS = {
        ResourceKind.LOCATION: "/api/locations",
        ResourceKind.ATTENDEE: "/api/attendees",
    }
    MEETINGS_PATH = "/api/meetings"

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timezone: str = "Europe/Berlin",
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Root URL of the backend, e.g. ``http://localhost:8080``
            token: Optional bearer token
            timezone: IANA timezone for naive meeting timestamps
            timeout: Request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

        self._meetings_task: asyncio.Task | None = None
        self._meetings_loop: asyncio.AbstractEventLoop | None = None

    def _get(self, path: str) -> Any:
        """
        GET a JSON document.

        Returns:
            Decoded JSON, or None if the backend answered 404

        Raises:
            DataSourceError: If the request fails or the body is not JSON
        """
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json()

        except requests.exceptions.RequestException as e:
            raise DataSourceError(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise DataSourceError(f"Invalid JSON from {url}: {e}") from e

    async def _fetch(self, path: str) -> Any:
        return await asyncio.to_thread(self._get, path)

    async def _fetch_list(self, path: str) -> List[Dict[str, Any]]:
        data = await self._fetch(path)
        if data is None:
            raise DataSourceError(f"Endpoint not found: {self.base_url}{path}")
        if not isinstance(data, list):
            raise DataSourceError(f"Expected a list from {self.base_url}{path}")
        return data

    async def _fetch_resource(self, kind: ResourceKind, resource_id: int) -> Dict[str, Any]:
        data = await self._fetch(f"{self.RESOURCE_PATHS[kind]}/{resource_id}")
        if data is None:
            raise ResourceNotFoundError.for_resource(kind, resource_id)
        return data

    async def _fetch_meetings(self) -> List[Meeting]:
        payloads = await self._fetch_list(self.MEETINGS_PATH)
        logger.debug("Fetched %d meetings from %s", len(payloads), self.base_url)
        return [parse_meeting(item, self.timezone) for item in payloads]

    async def _all_meetings(self) -> List[Meeting]:
        loop = asyncio.get_running_loop()
        if self._meetings_task is None or self._meetings_loop is not loop:
            self._meetings_loop = loop
            self._meetings_task = loop.create_task(self._fetch_meetings())
        # Shielded so one cancelled waiter does not cancel the shared fetch
        return await asyncio.shield(self._meetings_task)

    async def _resource_meetings(self, kind: ResourceKind, resource_id: int) -> List[Meeting]:
        return [meeting for meeting in await self._all_meetings() if meeting.involves(kind, resource_id)]

    async def working_hours(self, kind: ResourceKind, resource_id: int) -> WorkingHours:
        payload = await self._fetch_resource(kind, resource_id)
        if kind is ResourceKind.LOCATION:
            return parse_location(payload).working_hours
        return parse_attendee(payload).working_hours

    async def busy_intervals(
        self,
        kind: ResourceKind,
        resource_id: int,
        window: WorkingWindow,
    ) -> List[BusyInterval]:
        busy: List[BusyInterval] = []
        for meeting in await self._resource_meetings(kind, resource_id):
            clipped = meeting.as_busy_interval().clip_to(window)
            if clipped is not None:
                busy.append(clipped)
        return busy

    async def candidate_locations(self, min_capacity: int | None = None) -> List[LocationSummary]:
        return select_candidates(await self.all_locations(), min_capacity)

    async def meetings_between(
        self,
        kind: ResourceKind,
        resource_id: int,
        start: DateTime,
        end: DateTime,
    ) -> List[Meeting]:
        await self._fetch_resource(kind, resource_id)
        return [
            meeting for meeting in await self._resource_meetings(kind, resource_id)
            if start <= meeting.start <= end
        ]

    async def all_locations(self) -> List[LocationSummary]:
        payloads = await self._fetch_list(self.RESOURCE_PATHS[ResourceKind.LOCATION])
        return [parse_location(item) for item in payloads]

    async def all_attendees(self) -> List[Attendee]:
        payloads = await self._fetch_list(self.RESOURCE_PATHS[ResourceKind.ATTENDEE])
        return [parse_attendee(item) for item in payloads]
