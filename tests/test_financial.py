"""Tests for the financial overview."""

from roteirando.domain.attendance import AttendanceInfo
from roteirando.domain.models import PriceTier
from roteirando.services.financial import build_financial_summary
from tests.conftest import make_group, make_tour, make_trip


def test_summary_totals_and_breakdown() -> None:
    trips = [make_trip(), make_trip(id="trip-2", name="Norte 2026")]
    tours = [
        make_tour(
            price=100.0, prices={"child": PriceTier(label="Criança", value=50.0)}
        ),
        make_tour(id="tour-2", price=60.0),
        make_tour(id="tour-3", trip_id="trip-2", price=120.0),
    ]
    groups = [
        make_group(
            members_count=3,
            attendance={
                "tour-1": AttendanceInfo(
                    members=("Ana", "Bruno"), selected_price_key="child"
                ),
                "tour-2": AttendanceInfo(members=("Ana",)),
            },
        ),
        make_group(id="group-2", trip_id="trip-2", members_count=1),
    ]

    summary = build_financial_summary(trips, tours, groups)

    assert summary.total_tours == 3
    assert summary.total_groups == 2
    assert summary.total_people == 4 + 2
    assert summary.listed_price_total == 280.0
    assert summary.confirmed_revenue == 160.0
    assert summary.average_tour_price == 280.0 / 3
    assert summary.revenue_per_person == 160.0 / 6
    first, second = summary.trips
    assert (first.tours_count, first.groups_count, first.people) == (2, 1, 4)
    assert first.confirmed_revenue == 160.0
    assert second.listed_price_total == 120.0
    assert second.confirmed_revenue == 0


def test_empty_catalog_has_zero_averages() -> None:
    summary = build_financial_summary([], [], [])

    assert summary.average_tour_price == 0
    assert summary.revenue_per_person == 0
    assert summary.trips == []


def test_attendance_of_another_trip_does_not_count() -> None:
    tours = [make_tour(price=100.0)]
    groups = [
        make_group(
            trip_id="trip-2",
            attendance={"tour-1": AttendanceInfo(members=("Ana",))},
        )
    ]

    summary = build_financial_summary([make_trip()], tours, groups)

    assert summary.confirmed_revenue == 0
