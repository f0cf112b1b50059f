"""Activities group leaders schedule on their own agenda."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from roteirando.domain.models import CustomTour
from roteirando.domain.session import Role, SessionContext
from roteirando.services.notifications import Notifier

_logger = logging.getLogger(__name__)

DEFAULT_TIME = "00:00"
_FIELDS = (
    "name",
    "date",
    "time",
    "price",
    "description",
    "image_url",
    "address",
    "location",
)


class CustomTourRepository(Protocol):
    """Persistence interface for leader-owned activities."""

    def list_for_group(self, group_id: str) -> list[CustomTour]:
        """Return a group's activities, soonest first."""

    def create_custom_tour(self, payload: dict[str, object]) -> CustomTour:
        """Create an activity and return it."""

    def update_custom_tour(
        self, tour_id: str, payload: dict[str, object]
    ) -> CustomTour:
        """Update an activity and return it."""

    def delete_custom_tour(self, tour_id: str) -> None:
        """Remove an activity."""


@dataclass
class CustomTourService:
    """Keeps the bound group's own activities and applies leader edits.

    Only the leader of the session group may write, and only to activities
    already loaded for that group. Storage failures are reported and
    re-raised.
    """

    repository: CustomTourRepository
    notifier: Notifier
    tours: list[CustomTour] = field(default_factory=list)

    async def load(self, group_id: str) -> list[CustomTour]:
        """Replace the loaded activities with the group's stored ones."""
        try:
            loaded = await asyncio.to_thread(self.repository.list_for_group, group_id)
        except Exception:
            _logger.exception("Failed to load custom tours: group=%s", group_id)
            self.notifier.error("Could not load your tours.")
            loaded = []
        self.tours = sorted(loaded, key=lambda tour: (tour.date, tour.time))
        return self.tours

    def clear(self) -> None:
        """Forget the loaded activities."""
        self.tours = []

    def find(self, tour_id: str) -> CustomTour | None:
        """Return a loaded activity by id."""
        return next((tour for tour in self.tours if tour.id == tour_id), None)

    async def save(
        self,
        session: SessionContext,
        payload: dict[str, object],
        tour_id: str | None = None,
    ) -> bool:
        """Create or update an activity of the session's group.

        Returns False without writing when the session may not edit it or the
        form is incomplete.
        """
        group = _leader_group_id(session)
        if group is None or (tour_id is not None and self.find(tour_id) is None):
            return False
        data = {key: payload[key] for key in _FIELDS if key in payload}
        if isinstance(data.get("name"), str):
            data["name"] = data["name"].strip()
        if tour_id is None:
            data = {"time": DEFAULT_TIME, **data, "group_id": group}
            if not data.get("name") or not isinstance(data.get("date"), date):
                self.notifier.error("Name and date are required.")
                return False
        elif ("name" in data and not data["name"]) or (
            "date" in data and not isinstance(data["date"], date)
        ):
            self.notifier.error("Name and date are required.")
            return False
        if "time" in data and not data["time"]:
            data["time"] = DEFAULT_TIME

        try:
            if tour_id is None:
                saved = await asyncio.to_thread(
                    self.repository.create_custom_tour, data
                )
            else:
                saved = await asyncio.to_thread(
                    self.repository.update_custom_tour, tour_id, data
                )
        except Exception:
            _logger.exception("Failed to save custom tour: group=%s", group)
            self.notifier.error("Could not save the tour. Please try again.")
            raise
        self.notifier.success(f"Tour {saved.name} saved.")
        await self.load(group)
        return True

    async def delete(self, session: SessionContext, tour_id: str) -> bool:
        """Remove an activity of the session's group."""
        group = _leader_group_id(session)
        tour = self.find(tour_id)
        if group is None or tour is None:
            return False
        try:
            await asyncio.to_thread(self.repository.delete_custom_tour, tour_id)
        except Exception:
            _logger.exception("Failed to delete custom tour: %s", tour_id)
            self.notifier.error("Could not delete the tour. Please try again.")
            raise
        self.tours = [item for item in self.tours if item.id != tour_id]
        self.notifier.success(f"Tour {tour.name} deleted.")
        return True


def _leader_group_id(session: SessionContext) -> str | None:
    if session.role != Role.USER or session.group is None:
        return None
    return session.group.id
