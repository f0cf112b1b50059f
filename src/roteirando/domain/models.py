"""Domain models for trips, tours and traveler groups."""

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from roteirando.domain.attendance import AttendanceInfo


class TripStatus(StrEnum):
    """Lifecycle status stored on a trip when it is created."""

    ACTIVE = "active"
    UPCOMING = "upcoming"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TripLink:
    """External link attached to a trip or a tour."""

    title: str
    url: str


@dataclass(frozen=True)
class Trip:
    """A trip that owns tours and traveler groups."""

    id: str
    name: str
    destination: str
    start_date: date
    end_date: date
    description: str
    status: TripStatus
    image_url: str = ""
    links: tuple[TripLink, ...] = ()


@dataclass(frozen=True)
class PriceTier:
    """Named alternative ticket price for a tour."""

    label: str
    value: float | None


@dataclass(frozen=True)
class Tour:
    """A scheduled activity belonging to one trip."""

    id: str
    trip_id: str
    name: str
    date: date | None
    time: str
    description: str
    price: float
    prices: dict[str, PriceTier] | None = None
    image_url: str | None = None
    links: tuple[TripLink, ...] = ()
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Group:
    """A traveler party attached to one trip, led by one person."""

    id: str
    trip_id: str
    name: str
    members_count: int
    members: tuple[str, ...]
    leader_name: str
    leader_email: str | None = None
    leader_phone: str | None = None
    leader_password: str | None = None
    password_changed: bool = False
    attendance: dict[str, AttendanceInfo] = field(default_factory=dict)

    def attendance_for(self, tour_id: str) -> AttendanceInfo:
        """Return the canonical attendance entry for a tour."""
        return self.attendance.get(tour_id, AttendanceInfo())


@dataclass(frozen=True)
class CustomTour:
    """An activity a group leader adds to their own agenda."""

    id: str
    group_id: str
    name: str
    date: date
    time: str
    price: float | None = None
    description: str | None = None
    image_url: str | None = None
    address: str | None = None
    location: str | None = None
