"""Supabase-backed tour attendance repository."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from roteirando.services.attendance import AttendanceRepository


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation for per-tour attendance rows."""

    client: Client

    def save_attendance(
        self,
        group_id: str,
        tour_id: str,
        members: list[str],
        custom_date: date | None = None,
        selected_price_key: str | None = None,
    ) -> None:
        """Upsert the (group, tour) row, or delete it when nobody attends."""
        if not members:
            self.client.table("tour_attendance").delete().eq("group_id", group_id).eq(
                "tour_id", tour_id
            ).execute()
            return
        self.client.table("tour_attendance").upsert(
            {
                "group_id": group_id,
                "tour_id": tour_id,
                "members": members,
                "custom_date": custom_date.isoformat() if custom_date else None,
                "selected_price_key": selected_price_key,
            },
            on_conflict="group_id,tour_id",
        ).execute()
