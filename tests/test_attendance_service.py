"""Tests for the leader attendance write path."""

import asyncio
import logging
from datetime import date

import pytest

from roteirando.domain.attendance import AttendanceInfo
from roteirando.domain.session import Role, SessionContext


def _leader_session(catalog, group_id: str = "group-1") -> SessionContext:
    asyncio.run(catalog.load_all())
    return SessionContext(role=Role.USER, group=catalog.find_group(group_id))


def test_confirmation_updates_session_catalog_and_storage(
    catalog, attendance_service, attendance_repository, notifier
) -> None:
    session = _leader_session(catalog)
    tour = catalog.find_tour("tour-2")

    submitted = asyncio.run(
        attendance_service.submit_attendance(
            session,
            session.group,
            tour,
            ["Ana", "Carla", "Ana"],
            custom_date=date(2026, 5, 4),
        )
    )

    expected = AttendanceInfo(members=("Ana", "Carla"), custom_date=date(2026, 5, 4))
    assert submitted is True
    assert attendance_repository.calls == [("group-1", "tour-2", ["Ana", "Carla"])]
    assert session.group.attendance["tour-2"] == expected
    assert catalog.find_group("group-1").attendance["tour-2"] == expected
    assert notifier.drain()[-1].level == "success"


def test_empty_submission_removes_the_entry(catalog, attendance_service) -> None:
    session = _leader_session(catalog)
    tour = catalog.find_tour("tour-1")

    asyncio.run(attendance_service.submit_attendance(session, session.group, tour, []))

    assert "tour-1" not in session.group.attendance
    assert "tour-1" not in catalog.find_group("group-1").attendance


def test_repeated_submission_is_idempotent(catalog, attendance_service) -> None:
    session = _leader_session(catalog)
    tour = catalog.find_tour("tour-2")

    for _ in range(2):
        asyncio.run(
            attendance_service.submit_attendance(
                session, session.group, tour, ["Bruno"], selected_price_key="adult"
            )
        )

    assert session.group.attendance["tour-2"] == AttendanceInfo(
        members=("Bruno",), selected_price_key="adult"
    )
    assert catalog.find_group("group-1") == session.group


def test_cancel_reason_is_logged(
    catalog, attendance_service, caplog, monkeypatch
) -> None:
    session = _leader_session(catalog)
    tour = catalog.find_tour("tour-1")
    monkeypatch.setattr(logging.getLogger("roteirando"), "propagate", True)

    with caplog.at_level(logging.INFO, logger="roteirando.services.attendance"):
        asyncio.run(
            attendance_service.submit_attendance(
                session, session.group, tour, [], cancel_reason="Chuva forte"
            )
        )

    assert "Chuva forte" in caplog.text


def test_admin_submission_is_ignored(
    catalog, attendance_service, attendance_repository
) -> None:
    asyncio.run(catalog.load_all())
    group = catalog.find_group("group-1")
    session = SessionContext(role=Role.ADMIN)

    submitted = asyncio.run(
        attendance_service.submit_attendance(
            session, group, catalog.find_tour("tour-2"), ["Ana"]
        )
    )

    assert submitted is False
    assert attendance_repository.calls == []


def test_other_group_submission_is_ignored(
    catalog, attendance_service, attendance_repository
) -> None:
    session = _leader_session(catalog)
    other = catalog.find_group("group-2")

    submitted = asyncio.run(
        attendance_service.submit_attendance(
            session, other, catalog.find_tour("tour-2"), ["Duda"]
        )
    )

    assert submitted is False
    assert attendance_repository.calls == []
    assert "tour-2" not in catalog.find_group("group-2").attendance


def test_storage_failure_is_reported_and_raised(
    catalog, attendance_service, attendance_repository, notifier
) -> None:
    session = _leader_session(catalog)
    before = session.group
    attendance_repository.fail = True

    with pytest.raises(RuntimeError):
        asyncio.run(
            attendance_service.submit_attendance(
                session, session.group, catalog.find_tour("tour-2"), ["Ana"]
            )
        )

    assert session.group == before
    assert catalog.find_group("group-1") == before
    assert [entry.level for entry in notifier.drain()] == ["error"]
