"""Supabase-backed tour repository."""

from dataclasses import dataclass

from supabase import Client

from roteirando.adapters.supabase_links import (
    coerce_links,
    fetch_links,
    insert_links,
    parse_date,
    replace_links,
    to_iso,
)
from roteirando.domain.models import PriceTier, Tour, TripLink
from roteirando.services.catalog import TourRepository

_FIELDS = (
    "trip_id",
    "name",
    "date",
    "time",
    "price",
    "description",
    "image_url",
    "tags",
)


@dataclass
class SupabaseTourRepository(TourRepository):
    """Supabase implementation for tours."""

    client: Client

    def list_tours(self) -> list[Tour]:
        """Return every tour ordered by date."""
        response = (
            self.client.table("tours").select("*").order("date", desc=False).execute()
        )
        links = fetch_links(self.client, "tour_id")
        return [
            _parse_tour(row, links.get(str(row["id"]), ()))
            for row in response.data or []
        ]

    def create_tour(self, payload: dict[str, object]) -> Tour:
        """Insert a tour row with its links and return it."""
        response = self.client.table("tours").insert(_to_row(payload)).execute()
        if not response.data:
            raise RuntimeError("Failed to create tour")
        row = response.data[0]
        links = coerce_links(payload.get("links"))
        insert_links(self.client, "tour_id", str(row["id"]), links)
        return _parse_tour(row, tuple(links))

    def update_tour(self, tour_id: str, payload: dict[str, object]) -> Tour:
        """Update the given tour fields and return the stored tour."""
        response = (
            self.client.table("tours")
            .update(_to_row(payload))
            .eq("id", tour_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to update tour {tour_id}")
        links: tuple[TripLink, ...] = ()
        if "links" in payload:
            replaced = coerce_links(payload.get("links"))
            replace_links(self.client, "tour_id", tour_id, replaced)
            links = tuple(replaced)
        return _parse_tour(response.data[0], links)


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    row: dict[str, object] = {key: payload[key] for key in _FIELDS if key in payload}
    if "date" in row:
        row["date"] = to_iso(row["date"])
    if "tags" in row:
        row["tags"] = list(row["tags"] or [])
    if "prices" in payload:
        row["prices"] = _prices_to_json(payload["prices"])
    return row


def _prices_to_json(prices: object) -> dict[str, object] | None:
    if not isinstance(prices, dict) or not prices:
        return None
    serialized: dict[str, object] = {}
    for key, tier in prices.items():
        if isinstance(tier, PriceTier):
            serialized[str(key)] = {"label": tier.label, "value": tier.value}
        elif isinstance(tier, dict):
            serialized[str(key)] = {
                "label": tier.get("label", key),
                "value": tier.get("value"),
            }
    return serialized or None


def _parse_prices(raw: object) -> dict[str, PriceTier] | None:
    if not isinstance(raw, dict) or not raw:
        return None
    prices: dict[str, PriceTier] = {}
    for key, tier in raw.items():
        if not isinstance(tier, dict):
            continue
        value = tier.get("value")
        prices[str(key)] = PriceTier(
            label=str(tier.get("label") or key),
            value=float(value) if isinstance(value, int | float) else None,
        )
    return prices or None


def _parse_tour(row: dict[str, object], links: tuple[TripLink, ...]) -> Tour:
    tags = row.get("tags")
    return Tour(
        id=str(row["id"]),
        trip_id=str(row["trip_id"]),
        name=str(row.get("name") or ""),
        date=parse_date(row.get("date")),
        time=str(row.get("time") or ""),
        description=str(row.get("description") or ""),
        price=float(row.get("price") or 0.0),
        prices=_parse_prices(row.get("prices")),
        image_url=row.get("image_url") or None,
        links=links,
        tags=tuple(str(tag) for tag in tags) if isinstance(tags, list) else (),
    )
