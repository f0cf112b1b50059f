"""Supabase-backed group repository."""

from collections import defaultdict
from dataclasses import dataclass

from supabase import Client

from roteirando.domain.attendance import AttendanceInfo, normalize_attendance_map
from roteirando.domain.models import Group
from roteirando.services.catalog import GroupRepository

_FIELDS = (
    "trip_id",
    "name",
    "members_count",
    "members",
    "leader_name",
    "leader_email",
    "leader_phone",
    "leader_password",
    "password_changed",
)


@dataclass
class SupabaseGroupRepository(GroupRepository):
    """Supabase implementation for groups and their attendance."""

    client: Client

    def list_groups(self) -> list[Group]:
        """Return every group, newest first, with attendance attached."""
        response = (
            self.client.table("groups")
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        attendance_rows = (
            self.client.table("tour_attendance").select("*").execute().data or []
        )
        by_group: dict[str, dict[str, object]] = defaultdict(dict)
        for row in attendance_rows:
            by_group[str(row["group_id"])][str(row["tour_id"])] = raw_attendance(row)
        return [
            _parse_group(row, normalize_attendance_map(by_group.get(str(row["id"]))))
            for row in response.data or []
        ]

    def get_group(self, group_id: str) -> Group | None:
        """Return a group by id with its attendance, if present."""
        response = (
            self.client.table("groups")
            .select("*")
            .eq("id", group_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        attendance_rows = (
            self.client.table("tour_attendance")
            .select("*")
            .eq("group_id", group_id)
            .execute()
            .data
            or []
        )
        raw = {str(row["tour_id"]): raw_attendance(row) for row in attendance_rows}
        return _parse_group(response.data[0], normalize_attendance_map(raw))

    def create_group(self, payload: dict[str, object]) -> Group:
        """Insert a group whose leader has not changed the initial password."""
        row = _to_row(payload)
        row["password_changed"] = False
        response = self.client.table("groups").insert(row).execute()
        if not response.data:
            raise RuntimeError("Failed to create group")
        return _parse_group(response.data[0], {})

    def update_group(self, group_id: str, payload: dict[str, object]) -> Group:
        """Update the given group fields and return the stored group."""
        response = (
            self.client.table("groups")
            .update(_to_row(payload))
            .eq("id", group_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to update group {group_id}")
        return _parse_group(response.data[0], {})

    def update_password(self, group_id: str, password: str) -> Group:
        """Store a new leader password and mark it as changed."""
        response = (
            self.client.table("groups")
            .update({"leader_password": password, "password_changed": True})
            .eq("id", group_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Failed to update password for group {group_id}")
        return _parse_group(response.data[0], {})


def raw_attendance(row: dict[str, object]) -> object:
    """Return the stored attendance entry of a tour_attendance row.

    Older rows hold a bare member list; newer rows carry the custom date and
    selected price tier in their own columns or inside the members object.
    """
    members = row.get("members")
    custom_date = row.get("custom_date")
    price_key = row.get("selected_price_key")
    if isinstance(members, dict):
        entry = dict(members)
        if custom_date is not None:
            entry["customDate"] = custom_date
        if price_key is not None:
            entry["selectedPriceKey"] = price_key
        return entry
    if custom_date is None and price_key is None:
        return members
    return {
        "members": members,
        "customDate": custom_date,
        "selectedPriceKey": price_key,
    }


def _to_row(payload: dict[str, object]) -> dict[str, object]:
    row = {key: payload[key] for key in _FIELDS if key in payload}
    if "members" in row:
        row["members"] = list(row["members"] or [])
        row.setdefault("members_count", len(row["members"]))
    return row


def _parse_group(
    row: dict[str, object], attendance: dict[str, AttendanceInfo]
) -> Group:
    members = row.get("members")
    member_names: tuple[str, ...] = ()
    if isinstance(members, list):
        member_names = tuple(str(name) for name in members)
    return Group(
        id=str(row["id"]),
        trip_id=str(row["trip_id"]),
        name=str(row.get("name") or ""),
        members_count=int(row.get("members_count") or len(member_names)),
        members=member_names,
        leader_name=str(row.get("leader_name") or ""),
        leader_email=row.get("leader_email") or None,
        leader_phone=row.get("leader_phone") or None,
        leader_password=row.get("leader_password") or None,
        password_changed=row.get("password_changed") is True,
        attendance=attendance,
    )
