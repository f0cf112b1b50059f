"""Row helpers shared by the trip and tour repositories."""

from collections import defaultdict
from datetime import date

from supabase import Client

from roteirando.domain.models import TripLink


def fetch_links(client: Client, owner_column: str) -> dict[str, tuple[TripLink, ...]]:
    """Return links keyed by the trip or tour that owns them."""
    response = (
        client.table("tour_links").select(f"{owner_column}, title, url").execute()
    )
    grouped: dict[str, list[TripLink]] = defaultdict(list)
    for row in response.data or []:
        owner_id = row.get(owner_column)
        if owner_id and row.get("url"):
            grouped[str(owner_id)].append(
                TripLink(title=str(row.get("title") or row["url"]), url=str(row["url"]))
            )
    return {owner_id: tuple(links) for owner_id, links in grouped.items()}


def replace_links(
    client: Client, owner_column: str, owner_id: str, links: list[TripLink]
) -> None:
    """Swap the stored links of a trip or tour for a new list."""
    client.table("tour_links").delete().eq(owner_column, owner_id).execute()
    insert_links(client, owner_column, owner_id, links)


def insert_links(
    client: Client, owner_column: str, owner_id: str, links: list[TripLink]
) -> None:
    """Insert links for a trip or tour."""
    if not links:
        return
    rows = [
        {owner_column: owner_id, "title": link.title, "url": link.url}
        for link in links
    ]
    client.table("tour_links").insert(rows).execute()


def coerce_links(raw: object) -> list[TripLink]:
    """Accept links as TripLink values or title/url mappings."""
    if not isinstance(raw, list | tuple):
        return []
    links = []
    for item in raw:
        if isinstance(item, TripLink):
            links.append(item)
        elif isinstance(item, dict) and item.get("url"):
            url = str(item["url"])
            links.append(TripLink(title=str(item.get("title") or url), url=url))
    return links


def to_iso(value: object) -> str | None:
    """Serialize a date column value."""
    if isinstance(value, date):
        return value.isoformat()
    return str(value) if value is not None else None


def parse_date(value: object) -> date | None:
    """Parse a date column, tolerating timestamps and blanks."""
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None
