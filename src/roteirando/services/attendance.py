"""Tour attendance: aggregation for reports and the leader write path."""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from typing import Protocol

from roteirando.domain.attendance import AttendanceInfo
from roteirando.domain.models import Group, Tour, Trip
from roteirando.domain.session import Role, SessionContext
from roteirando.services.catalog import CatalogService
from roteirando.services.notifications import Notifier
from roteirando.services.pricing import amount_for_group, total_revenue_for_tour

_logger = logging.getLogger(__name__)


class AttendanceRepository(Protocol):
    """Persistence interface for per-tour attendance."""

    def save_attendance(
        self,
        group_id: str,
        tour_id: str,
        members: list[str],
        custom_date: date | None = None,
        selected_price_key: str | None = None,
    ) -> None:
        """Store the attendance entry, removing it when members is empty."""


@dataclass(frozen=True)
class AttendingGroup:
    """A group with at least one member confirmed for a tour."""

    group: Group
    attending_count: int
    attending_names: tuple[str, ...]
    amount: float


@dataclass(frozen=True)
class AttendingTour:
    """A tour the group confirmed, as shown on the leader agenda."""

    tour: Tour
    attendance: AttendanceInfo
    effective_date: date | None


@dataclass(frozen=True)
class TourAttendanceReport:
    """Data handed to the tour-attendance screen."""

    tour: Tour
    groups: list[AttendingGroup]
    total_people: int
    total_revenue: float
    query: str = ""


@dataclass(frozen=True)
class TripAttendanceSummary:
    """Attendance reports for every tour of a trip."""

    trip: Trip
    tours: list[TourAttendanceReport]
    total_people: int
    total_revenue: float


def attending_groups_for_tour(
    tour: Tour, groups: Iterable[Group]
) -> list[AttendingGroup]:
    """Return groups with confirmed members for the tour, in input order."""
    attending = []
    for group in groups:
        info = group.attendance_for(tour.id)
        if info.is_empty:
            continue
        attending.append(
            AttendingGroup(
                group=group,
                attending_count=len(info.members),
                attending_names=info.members,
                amount=amount_for_group(tour, info),
            )
        )
    return attending


def total_people_for_tour(tour: Tour, groups: Iterable[Group]) -> int:
    """Count confirmed people for a tour across groups."""
    return sum(item.attending_count for item in attending_groups_for_tour(tour, groups))


def filter_attending_groups(
    attending: Sequence[AttendingGroup], query: str
) -> list[AttendingGroup]:
    """Keep groups whose name or leader name contains the query."""
    needle = query.strip().lower()
    if not needle:
        return list(attending)
    return [
        item
        for item in attending
        if needle in item.group.name.lower()
        or needle in item.group.leader_name.lower()
    ]


def attending_tours_for_group(
    group: Group, tours: Iterable[Tour]
) -> list[AttendingTour]:
    """Return the tours a group confirmed, soonest first."""
    confirmed = []
    for tour in tours:
        info = group.attendance_for(tour.id)
        if info.is_empty:
            continue
        confirmed.append(
            AttendingTour(
                tour=tour,
                attendance=info,
                effective_date=info.custom_date or tour.date,
            )
        )
    return sorted(
        confirmed,
        key=lambda item: (item.effective_date or date.max, item.tour.time),
    )


def build_tour_attendance_report(
    tour: Tour, groups: Iterable[Group], query: str = ""
) -> TourAttendanceReport:
    """Build the attendance list for a tour.

    Totals always cover every attending group; only the listed groups
    follow the search query.
    """
    group_list = list(groups)
    attending = attending_groups_for_tour(tour, group_list)
    return TourAttendanceReport(
        tour=tour,
        groups=filter_attending_groups(attending, query),
        total_people=sum(item.attending_count for item in attending),
        total_revenue=total_revenue_for_tour(tour, group_list),
        query=query,
    )


def build_trip_attendance_summary(
    trip: Trip, tours: Iterable[Tour], groups: Iterable[Group]
) -> TripAttendanceSummary:
    """Build attendance reports for each tour of a trip."""
    trip_groups = [group for group in groups if group.trip_id == trip.id]
    reports = [
        build_tour_attendance_report(tour, trip_groups)
        for tour in tours
        if tour.trip_id == trip.id
    ]
    return TripAttendanceSummary(
        trip=trip,
        tours=reports,
        total_people=sum(report.total_people for report in reports),
        total_revenue=sum(report.total_revenue for report in reports),
    )


def with_attendance(group: Group, tour_id: str, info: AttendanceInfo) -> Group:
    """Return a copy of the group with one attendance entry replaced."""
    attendance = dict(group.attendance)
    if info.is_empty:
        attendance.pop(tour_id, None)
    else:
        attendance[tour_id] = info
    return replace(group, attendance=attendance)


@dataclass
class AttendanceService:
    """Applies a group leader's attendance submission."""

    repository: AttendanceRepository
    catalog: CatalogService
    notifier: Notifier

    async def submit_attendance(  # noqa: PLR0913
        self,
        session: SessionContext,
        group: Group,
        tour: Tour,
        members: Sequence[str],
        custom_date: date | None = None,
        cancel_reason: str | None = None,
        selected_price_key: str | None = None,
    ) -> bool:
        """Persist the leader's choice for a tour and refresh local state.

        Returns False without doing anything when the session is not the
        leader of this group. Storage failures are reported and re-raised so
        the submitting form keeps its input.
        """
        if session.role != Role.USER or session.group is None:
            return False
        if session.group.id != group.id:
            return False

        info = AttendanceInfo(
            members=tuple(dict.fromkeys(members)),
            custom_date=custom_date,
            selected_price_key=selected_price_key,
        )
        if info.is_empty and cancel_reason and cancel_reason.strip():
            _logger.info(
                "Tour cancelled: group=%s tour=%s reason=%s",
                group.id,
                tour.id,
                cancel_reason.strip(),
            )

        try:
            await asyncio.to_thread(
                self.repository.save_attendance,
                group.id,
                tour.id,
                list(info.members),
                info.custom_date,
                info.selected_price_key,
            )
        except Exception:
            _logger.exception(
                "Failed to save attendance: group=%s tour=%s", group.id, tour.id
            )
            self.notifier.error("Could not save attendance. Please try again.")
            raise

        updated = with_attendance(session.group, tour.id, info)
        session.group = updated
        self.catalog.replace_group(updated)
        if info.is_empty:
            self.notifier.success(f"Attendance for {tour.name} cancelled.")
        else:
            self.notifier.success(f"Attendance for {tour.name} confirmed.")

        await self.catalog.load_groups()
        reloaded = self.catalog.find_group(group.id)
        if reloaded is not None:
            session.group = reloaded
        return True
