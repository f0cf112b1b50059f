"""Admin reporting endpoints with simple token auth."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from roteirando.api.encoding import encode
from roteirando.services.attendance import build_trip_attendance_summary
from roteirando.services.financial import build_financial_summary

if TYPE_CHECKING:
    from roteirando.containers import AppContainer
    from roteirando.domain.models import Group, Tour, Trip

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


async def _load_catalog(
    container: AppContainer,
) -> tuple[list[Trip], list[Tour], list[Group]]:
    catalog = container.catalog
    trips, tours, groups = await asyncio.gather(
        asyncio.to_thread(catalog.trip_repository.list_trips),
        asyncio.to_thread(catalog.tour_repository.list_tours),
        asyncio.to_thread(catalog.group_repository.list_groups),
    )
    return trips, tours, groups


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/financial", dependencies=[Depends(require_admin)])
async def financial_summary(request: Request) -> dict[str, object]:
    """Return revenue and headcount totals across every trip."""
    container: AppContainer = request.app.state.container
    trips, tours, groups = await _load_catalog(container)
    summary = build_financial_summary(trips, tours, groups)
    return {"summary": encode(summary)}


@router.get("/trips/{trip_id}/attendance", dependencies=[Depends(require_admin)])
async def trip_attendance(trip_id: str, request: Request) -> dict[str, object]:
    """Return the per-tour attendance of one trip."""
    container: AppContainer = request.app.state.container
    trips, tours, groups = await _load_catalog(container)
    trip = next((item for item in trips if item.id == trip_id), None)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    summary = build_trip_attendance_summary(trip, tours, groups)
    return {"summary": encode(summary)}
