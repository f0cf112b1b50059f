"""Supabase-backed trip repository."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from roteirando.adapters.supabase_links import (
    coerce_links,
    fetch_links,
    insert_links,
    parse_date,
    to_iso,
)
from roteirando.domain.models import Trip, TripLink, TripStatus
from roteirando.services.catalog import TripRepository


@dataclass
class SupabaseTripRepository(TripRepository):
    """Supabase implementation for trips."""

    client: Client

    def list_trips(self) -> list[Trip]:
        """Return every trip, most recent start date first."""
        response = (
            self.client.table("trips")
            .select("*")
            .order("start_date", desc=True)
            .execute()
        )
        links = fetch_links(self.client, "trip_id")
        return [
            _parse_trip(row, links.get(str(row["id"]), ()))
            for row in response.data or []
        ]

    def create_trip(self, payload: dict[str, object]) -> Trip:
        """Insert a trip row with its links and return it."""
        response = (
            self.client.table("trips")
            .insert(
                {
                    "name": payload.get("name"),
                    "destination": payload.get("destination"),
                    "start_date": to_iso(payload.get("start_date")),
                    "end_date": to_iso(payload.get("end_date")),
                    "description": payload.get("description", ""),
                    "status": str(payload.get("status")),
                    "image_url": payload.get("image_url"),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create trip")
        row = response.data[0]
        links = coerce_links(payload.get("links"))
        insert_links(self.client, "trip_id", str(row["id"]), links)
        return _parse_trip(row, tuple(links))


def _parse_trip(row: dict[str, object], links: tuple[TripLink, ...]) -> Trip:
    return Trip(
        id=str(row["id"]),
        name=str(row.get("name") or ""),
        destination=str(row.get("destination") or ""),
        start_date=parse_date(row.get("start_date")) or date.min,
        end_date=parse_date(row.get("end_date")) or date.min,
        description=str(row.get("description") or ""),
        status=TripStatus(row.get("status") or TripStatus.UPCOMING),
        image_url=str(row.get("image_url") or ""),
        links=links,
    )
