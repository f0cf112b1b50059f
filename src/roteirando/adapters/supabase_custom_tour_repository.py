"""Supabase-backed repository for leader-owned activities."""

from dataclasses import dataclass

from supabase import Client

from roteirando.adapters.supabase_links import parse_date, to_iso
from roteirando.domain.models import CustomTour
from roteirando.services.custom_tours import CustomTourRepository

_TABLE = "user_custom_tours"
_FIELDS = (
    "group_id",
    "name",
    "date",
    "time",
    "price",
    "description",
    "image_url",
    "address",
    "location",
)


@dataclass
class SupabaseCustomTourRepository(CustomTourRepository):
    """Supabase implementation for the user_custom_tours table."""

    client: Client

    def list_for_group(self, group_id: str) -> list[CustomTour]:
        """Return a group's activities ordered by date and time."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("group_id", group_id)
            .order("date", desc=False)
            .order("time", desc=False)
            .execute()
        )
        parsed = (_parse_custom_tour(row) for row in response.data or [])
        return [tour for tour in parsed if tour is not None]

    def create_custom_tour(self, payload: dict[str, object]) -> CustomTour:
        """Insert an activity row and return it."""
        response = self.client.table(_TABLE).insert(_to_row(payload)).execute()
        return _single(response.data, "Failed to create custom tour")

    def update_custom_tour(
        self, tour_id: str, payload: dict[str, object]
    ) -> CustomTour:
        """Update the given activity fields and return the stored row."""
        row = _to_row(payload)
        row.pop("group_id", None)
        response = self.client.table(_TABLE).update(row).eq("id", tour_id).execute()
        return _single(response.data, f"Failed to update custom tour {tour_id}")

    def delete_custom_tour(self, tour_id: str) -> None:
        """Delete an activity row."""
        self.client.table(_TABLE).delete().eq("id", tour_id).execute()


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    row = {key: payload[key] for key in _FIELDS if key in payload}
    if "date" in row:
        row["date"] = to_iso(row["date"])
    return row


def _single(rows: list[dict[str, object]] | None, message: str) -> CustomTour:
    tour = _parse_custom_tour(rows[0]) if rows else None
    if tour is None:
        raise RuntimeError(message)
    return tour


def _parse_custom_tour(row: dict[str, object]) -> CustomTour | None:
    day = parse_date(row.get("date"))
    if day is None:
        return None
    price = row.get("price")
    return CustomTour(
        id=str(row["id"]),
        group_id=str(row["group_id"]),
        name=str(row.get("name") or ""),
        date=day,
        time=str(row.get("time") or ""),
        price=float(price) if isinstance(price, int | float) else None,
        description=row.get("description") or None,
        image_url=row.get("image_url") or None,
        address=row.get("address") or None,
        location=row.get("location") or None,
    )
