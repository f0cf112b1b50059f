"""In-memory trip, tour and group collections backed by storage."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol, TypeVar

from roteirando.domain.models import Group, Tour, Trip, TripStatus
from roteirando.services.notifications import Notifier

_logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class TripRepository(Protocol):
    """Persistence interface for trips."""

    def list_trips(self) -> list[Trip]:
        """Return every trip, most recent start date first."""

    def create_trip(self, payload: dict[str, object]) -> Trip:
        """Create a trip and return it."""


class TourRepository(Protocol):
    """Persistence interface for tours."""

    def list_tours(self) -> list[Tour]:
        """Return every tour ordered by date."""

    def create_tour(self, payload: dict[str, object]) -> Tour:
        """Create a tour and return it."""

    def update_tour(self, tour_id: str, payload: dict[str, object]) -> Tour:
        """Update a tour and return it."""


class GroupRepository(Protocol):
    """Persistence interface for traveler groups."""

    def list_groups(self) -> list[Group]:
        """Return every group with its attendance map."""

    def get_group(self, group_id: str) -> Group | None:
        """Return a group by id, if present."""

    def create_group(self, payload: dict[str, object]) -> Group:
        """Create a group and return it."""

    def update_group(self, group_id: str, payload: dict[str, object]) -> Group:
        """Update a group and return it."""

    def update_password(self, group_id: str, password: str) -> Group:
        """Store a new leader password and mark it as changed."""


def derive_trip_status(start_date: date, end_date: date, today: date) -> TripStatus:
    """Return the status a trip is saved with."""
    if end_date < today:
        return TripStatus.COMPLETED
    if start_date <= today <= end_date:
        return TripStatus.ACTIVE
    return TripStatus.UPCOMING


@dataclass
class CatalogService:
    """Owns the trips, tours and groups the console is showing.

    Loads replace a whole collection; a failed load leaves it empty so the
    screens show an empty state instead of stale data. Writes are not caught
    here, callers decide what a failed save means for navigation.
    """

    trip_repository: TripRepository
    tour_repository: TourRepository
    group_repository: GroupRepository
    notifier: Notifier
    trips: list[Trip] = field(default_factory=list)
    tours: list[Tour] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    _pending: int = field(default=0, init=False, repr=False)

    @property
    def loading(self) -> bool:
        """Return True while any storage call is in flight."""
        return self._pending > 0

    async def load_all(self) -> None:
        """Reload trips, tours and groups concurrently."""
        await asyncio.gather(self.load_trips(), self.load_tours(), self.load_groups())

    async def load_trips(self) -> list[Trip]:
        """Replace the trip collection from storage."""
        try:
            self.trips = await self._call(self.trip_repository.list_trips)
        except Exception:
            _logger.exception("Failed to load trips")
            self.notifier.error("Could not load trips.")
            self.trips = []
        return self.trips

    async def load_tours(self) -> list[Tour]:
        """Replace the tour collection from storage."""
        try:
            self.tours = await self._call(self.tour_repository.list_tours)
        except Exception:
            _logger.exception("Failed to load tours")
            self.notifier.error("Could not load tours.")
            self.tours = []
        return self.tours

    async def load_groups(self) -> list[Group]:
        """Replace the group collection from storage."""
        try:
            self.groups = await self._call(self.group_repository.list_groups)
        except Exception:
            _logger.exception("Failed to load groups")
            self.notifier.error("Could not load groups.")
            self.groups = []
        return self.groups

    async def fetch_group(self, group_id: str) -> Group | None:
        """Fetch the authoritative record for one group."""
        return await self._call(self.group_repository.get_group, group_id)

    async def create_trip(
        self, payload: dict[str, object], today: date | None = None
    ) -> Trip:
        """Create a trip, stamping its status from the dates."""
        start_date = payload["start_date"]
        end_date = payload["end_date"]
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise ValueError("Trip start and end dates are required")
        status = derive_trip_status(start_date, end_date, today or date.today())
        return await self._call(
            self.trip_repository.create_trip, {**payload, "status": status}
        )

    async def save_tour(
        self, payload: dict[str, object], tour_id: str | None = None
    ) -> Tour:
        """Create a tour, or update it when an id is given."""
        if tour_id is None:
            return await self._call(self.tour_repository.create_tour, payload)
        return await self._call(self.tour_repository.update_tour, tour_id, payload)

    async def save_group(
        self, payload: dict[str, object], group_id: str | None = None
    ) -> Group:
        """Create a group, or update it when an id is given."""
        if group_id is None:
            return await self._call(self.group_repository.create_group, payload)
        return await self._call(self.group_repository.update_group, group_id, payload)

    async def update_password(self, group_id: str, password: str) -> Group:
        """Persist a new leader password."""
        return await self._call(
            self.group_repository.update_password, group_id, password
        )

    def replace_group(self, group: Group) -> None:
        """Patch one group record in place by id."""
        self.groups = [group if item.id == group.id else item for item in self.groups]

    def find_trip(self, trip_id: str | None) -> Trip | None:
        """Return a loaded trip by id."""
        return next((trip for trip in self.trips if trip.id == trip_id), None)

    def find_tour(self, tour_id: str | None) -> Tour | None:
        """Return a loaded tour by id."""
        return next((tour for tour in self.tours if tour.id == tour_id), None)

    def find_group(self, group_id: str | None) -> Group | None:
        """Return a loaded group by id."""
        return next((group for group in self.groups if group.id == group_id), None)

    def tours_for_trip(self, trip_id: str | None) -> list[Tour]:
        """Return loaded tours of a trip."""
        return [tour for tour in self.tours if tour.trip_id == trip_id]

    def groups_for_trip(self, trip_id: str | None) -> list[Group]:
        """Return loaded groups of a trip."""
        return [group for group in self.groups if group.trip_id == trip_id]

    async def _call(self, func: Callable[..., _T], *args: object) -> _T:
        self._pending += 1
        try:
            return await asyncio.to_thread(func, *args)
        finally:
            self._pending -= 1
