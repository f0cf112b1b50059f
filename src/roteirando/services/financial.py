"""Financial overview across trips."""

from dataclasses import dataclass

from roteirando.domain.models import Group, Tour, Trip
from roteirando.services.pricing import total_revenue_for_tour


@dataclass(frozen=True)
class TripFinancials:
    """Totals for one trip."""

    trip: Trip
    tours_count: int
    groups_count: int
    people: int
    listed_price_total: float
    confirmed_revenue: float


@dataclass(frozen=True)
class FinancialSummary:
    """Data handed to the financial screen."""

    total_tours: int
    total_groups: int
    total_people: int
    listed_price_total: float
    confirmed_revenue: float
    average_tour_price: float
    revenue_per_person: float
    trips: list[TripFinancials]


def build_financial_summary(
    trips: list[Trip], tours: list[Tour], groups: list[Group]
) -> FinancialSummary:
    """Aggregate prices, confirmed revenue and head counts.

    People are counted per group as its members plus the leader.
    """
    per_trip = []
    for trip in trips:
        trip_tours = [tour for tour in tours if tour.trip_id == trip.id]
        trip_groups = [group for group in groups if group.trip_id == trip.id]
        per_trip.append(
            TripFinancials(
                trip=trip,
                tours_count=len(trip_tours),
                groups_count=len(trip_groups),
                people=_people(trip_groups),
                listed_price_total=sum(tour.price for tour in trip_tours),
                confirmed_revenue=sum(
                    total_revenue_for_tour(tour, trip_groups) for tour in trip_tours
                ),
            )
        )

    total_people = _people(groups)
    listed_total = sum(tour.price for tour in tours)
    confirmed = sum(
        total_revenue_for_tour(
            tour, [group for group in groups if group.trip_id == tour.trip_id]
        )
        for tour in tours
    )
    return FinancialSummary(
        total_tours=len(tours),
        total_groups=len(groups),
        total_people=total_people,
        listed_price_total=listed_total,
        confirmed_revenue=confirmed,
        average_tour_price=listed_total / len(tours) if tours else 0,
        revenue_per_person=confirmed / total_people if total_people else 0,
        trips=per_trip,
    )


def _people(groups: list[Group]) -> int:
    return sum(group.members_count + 1 for group in groups)
