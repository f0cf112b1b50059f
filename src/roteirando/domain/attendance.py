"""Canonical attendance entries and normalization of stored shapes.

Groups have stored their per-tour attendance in two shapes over time: a bare
list of member names, and an object carrying ``members`` plus an optional
custom date and selected price tier. Both are folded into
:class:`AttendanceInfo` as soon as they are read so nothing downstream has to
care which shape a row used.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class AttendanceInfo:
    """Members of a group attending one tour."""

    members: tuple[str, ...] = ()
    custom_date: date | None = None
    selected_price_key: str | None = None

    @property
    def is_empty(self) -> bool:
        """Return True when nobody from the group attends."""
        return not self.members


def normalize_attendance(raw: object) -> AttendanceInfo:
    """Convert a stored attendance entry into an :class:`AttendanceInfo`.

    Unrecognized shapes are treated as an absent entry.
    """
    if isinstance(raw, AttendanceInfo):
        return raw
    if isinstance(raw, list | tuple):
        return AttendanceInfo(members=_clean_members(raw))
    if isinstance(raw, Mapping):
        return AttendanceInfo(
            members=_clean_members(raw.get("members")),
            custom_date=_parse_date(_first_present(raw, "customDate", "custom_date")),
            selected_price_key=_parse_key(
                _first_present(raw, "selectedPriceKey", "selected_price_key")
            ),
        )
    return AttendanceInfo()


def normalize_attendance_map(raw: object) -> dict[str, AttendanceInfo]:
    """Normalize a tour id -> entry mapping, dropping empty entries."""
    if not isinstance(raw, Mapping):
        return {}
    normalized: dict[str, AttendanceInfo] = {}
    for tour_id, entry in raw.items():
        info = normalize_attendance(entry)
        if not info.is_empty:
            normalized[str(tour_id)] = info
    return normalized


def _first_present(raw: Mapping, *keys: str) -> object:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _clean_members(value: object) -> tuple[str, ...]:
    if not isinstance(value, list | tuple):
        return ()
    return tuple(member for member in value if isinstance(member, str))


def _parse_date(value: object) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def _parse_key(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None
