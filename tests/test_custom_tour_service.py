"""Tests for the activities leaders add to their own agenda."""

import asyncio
from datetime import date

import pytest

from roteirando.domain.session import Role, SessionContext
from tests.conftest import make_group


def _leader_session(group_id: str = "group-1") -> SessionContext:
    return SessionContext(role=Role.USER, group=make_group(id=group_id))


def _loaded(custom_tour_service, group_id: str = "group-1"):
    asyncio.run(custom_tour_service.load(group_id))
    return custom_tour_service


def test_load_keeps_only_the_group_tours(custom_tour_service) -> None:
    tours = asyncio.run(custom_tour_service.load("group-1"))

    assert [tour.id for tour in tours] == ["custom-1"]
    assert custom_tour_service.find("custom-2") is None


def test_load_failure_is_reported(
    custom_tour_service, custom_tour_repository, notifier
) -> None:
    custom_tour_repository.fail_on.add("list_for_group")

    assert asyncio.run(custom_tour_service.load("group-1")) == []
    assert notifier.drain()[-1].message == "Could not load your tours."


def test_create_defaults_time_and_binds_group(
    custom_tour_service, custom_tour_repository
) -> None:
    service = _loaded(custom_tour_service)

    saved = asyncio.run(
        service.save(
            _leader_session(),
            {"name": " Mercado ", "date": date(2026, 5, 1), "time": ""},
        )
    )

    assert saved is True
    created = custom_tour_repository.tours["custom-3"]
    assert created.group_id == "group-1"
    assert created.name == "Mercado"
    assert created.time == "00:00"
    assert [tour.name for tour in service.tours] == ["Mercado", "Jantar em Alfama"]


def test_create_requires_name_and_date(custom_tour_service, notifier) -> None:
    saved = asyncio.run(
        custom_tour_service.save(_leader_session(), {"name": "Sem data"})
    )

    assert saved is False
    assert notifier.drain()[-1].message == "Name and date are required."


def test_update_changes_only_sent_fields(
    custom_tour_service, custom_tour_repository
) -> None:
    service = _loaded(custom_tour_service)

    saved = asyncio.run(
        service.save(_leader_session(), {"price": None}, tour_id="custom-1")
    )

    assert saved is True
    updated = custom_tour_repository.tours["custom-1"]
    assert updated.price is None
    assert updated.time == "20:00"
    assert updated.name == "Jantar em Alfama"


def test_leader_cannot_touch_another_group(
    custom_tour_service, custom_tour_repository
) -> None:
    service = _loaded(custom_tour_service)
    session = _leader_session()

    assert asyncio.run(service.save(session, {"name": "X"}, "custom-2")) is False
    assert asyncio.run(service.delete(session, "custom-2")) is False
    assert "custom-2" in custom_tour_repository.tours


def test_admin_session_cannot_write(custom_tour_service) -> None:
    service = _loaded(custom_tour_service)
    admin = SessionContext(role=Role.ADMIN)
    payload = {"name": "Museu", "date": date(2026, 5, 3)}

    assert asyncio.run(service.save(admin, payload)) is False
    assert asyncio.run(service.delete(admin, "custom-1")) is False


def test_delete_removes_tour(
    custom_tour_service, custom_tour_repository, notifier
) -> None:
    service = _loaded(custom_tour_service)

    assert asyncio.run(service.delete(_leader_session(), "custom-1"))

    assert "custom-1" not in custom_tour_repository.tours
    assert service.tours == []
    assert notifier.drain()[-1].message == "Tour Jantar em Alfama deleted."


@pytest.mark.parametrize("operation", ["update_custom_tour", "delete_custom_tour"])
def test_storage_failure_is_reported_and_raised(
    custom_tour_service, custom_tour_repository, notifier, operation: str
) -> None:
    service = _loaded(custom_tour_service)
    custom_tour_repository.fail_on.add(operation)
    session = _leader_session()

    with pytest.raises(RuntimeError):
        if operation == "update_custom_tour":
            asyncio.run(service.save(session, {"name": "Outro"}, "custom-1"))
        else:
            asyncio.run(service.delete(session, "custom-1"))

    assert notifier.drain()[-1].level == "error"
    assert service.find("custom-1") is not None
