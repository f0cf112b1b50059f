"""Tests for catalog loading and trip status."""

import asyncio
from datetime import date

import pytest

from roteirando.domain.models import TripStatus
from roteirando.services.catalog import derive_trip_status
from tests.conftest import make_group


@pytest.mark.parametrize(
    ("today", "expected"),
    [
        (date(2026, 4, 30), TripStatus.UPCOMING),
        (date(2026, 5, 1), TripStatus.ACTIVE),
        (date(2026, 5, 10), TripStatus.ACTIVE),
        (date(2026, 5, 11), TripStatus.COMPLETED),
    ],
)
def test_derive_trip_status(today: date, expected: TripStatus) -> None:
    assert derive_trip_status(date(2026, 5, 1), date(2026, 5, 10), today) == expected


def test_create_trip_stores_derived_status(catalog, trip_repository) -> None:
    trip = asyncio.run(
        catalog.create_trip(
            {
                "name": "Rio 2025",
                "destination": "Rio de Janeiro",
                "start_date": date(2025, 1, 1),
                "end_date": date(2025, 1, 5),
            },
            today=date(2026, 1, 1),
        )
    )

    assert trip.status == TripStatus.COMPLETED
    assert trip_repository.trips[-1] == trip


def test_create_trip_requires_dates(catalog) -> None:
    with pytest.raises(ValueError):
        asyncio.run(
            catalog.create_trip(
                {"name": "Sem datas", "start_date": None, "end_date": None}
            )
        )


def test_failed_load_resets_collection(catalog, tour_repository, notifier) -> None:
    asyncio.run(catalog.load_all())
    assert len(catalog.tours) == 3
    tour_repository.fail_on.add("list_tours")

    asyncio.run(catalog.load_tours())

    assert catalog.tours == []
    assert notifier.drain()[-1].message == "Could not load tours."
    assert catalog.loading is False


def test_load_all_keeps_other_collections_on_partial_failure(
    catalog, trip_repository
) -> None:
    trip_repository.fail_on.add("list_trips")

    asyncio.run(catalog.load_all())

    assert catalog.trips == []
    assert len(catalog.tours) == 3
    assert len(catalog.groups) == 3


def test_loading_flag_while_call_in_flight(catalog) -> None:
    seen: list[bool] = []

    def list_trips() -> list:
        seen.append(catalog.loading)
        return []

    catalog.trip_repository.list_trips = list_trips

    asyncio.run(catalog.load_trips())

    assert seen == [True]
    assert catalog.loading is False


def test_replace_group_patches_one_record(catalog) -> None:
    asyncio.run(catalog.load_groups())
    renamed = make_group(name="Família Silva Santos")

    catalog.replace_group(renamed)

    assert catalog.find_group("group-1") == renamed
    assert catalog.find_group("group-2").name == "Amigos do Porto"


def test_lookups_by_trip(catalog) -> None:
    asyncio.run(catalog.load_all())

    assert [tour.id for tour in catalog.tours_for_trip("trip-2")] == ["tour-3"]
    assert [group.id for group in catalog.groups_for_trip("trip-1")] == [
        "group-1",
        "group-2",
    ]
    assert catalog.find_trip(None) is None
