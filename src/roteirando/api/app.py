"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from roteirando.api.admin import router as admin_router
from roteirando.api.encoding import encode
from roteirando.api.models import (
    AttendanceSubmission,
    CustomTourPayload,
    CustomTourUpdate,
    DescriptionRequest,
    GroupPayload,
    LoginRequest,
    PasswordChangeRequest,
    PasswordResetConfirmation,
    PasswordResetRequest,
    TourPayload,
    TripPayload,
)
from roteirando.app_logging import configure_logging
from roteirando.containers import AppContainer
from roteirando.domain.models import CustomTour, Group, Tour, Trip
from roteirando.domain.session import Role, Screen
from roteirando.services.attendance import build_tour_attendance_report

# Screens reachable straight from the menu.
MENU_SCREENS = {
    Screen.DASHBOARD,
    Screen.TRIP_DETAILS,
    Screen.ALL_TOURS,
    Screen.ALL_GROUPS,
    Screen.FINANCIAL,
    Screen.AGENDA,
    Screen.MY_TRIP,
    Screen.CITY_GUIDE,
    Screen.DESTINOS_GUIDE,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.environment)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    # Session

    @app.get("/session")
    async def current_view(request: Request, q: str = "") -> dict[str, object]:
        """Return the screen the console should show."""
        return _state(request.app.state.container, q)

    @app.post("/session/login")
    async def login(body: LoginRequest, request: Request) -> dict[str, object]:
        """Sign in as an admin or a group leader."""
        state_container: AppContainer = request.app.state.container
        if not await state_container.navigation_service.login(
            body.email, body.password
        ):
            raise _failure(state_container, status.HTTP_401_UNAUTHORIZED)
        return _state(state_container)

    @app.post("/session/logout")
    async def logout(request: Request) -> dict[str, object]:
        """Drop the current session."""
        state_container: AppContainer = request.app.state.container
        state_container.navigation_service.logout()
        return _state(state_container)

    @app.post("/session/password")
    async def change_password(
        body: PasswordChangeRequest, request: Request
    ) -> dict[str, object]:
        """Change the signed-in admin's or leader's password."""
        state_container = _signed_in(request)
        if not await state_container.navigation_service.change_password(
            body.new_password, body.current_password
        ):
            raise _failure(state_container, status.HTTP_400_BAD_REQUEST)
        return _state(state_container)

    @app.post("/session/password-reset")
    async def request_password_reset(
        body: PasswordResetRequest, request: Request
    ) -> dict[str, object]:
        """Mail a password reset code."""
        state_container: AppContainer = request.app.state.container
        if not await state_container.navigation_service.request_password_reset(
            body.email
        ):
            raise _failure(state_container, status.HTTP_400_BAD_REQUEST)
        return _state(state_container)

    @app.post("/session/password-reset/confirm")
    async def confirm_password_reset(
        body: PasswordResetConfirmation, request: Request
    ) -> dict[str, object]:
        """Set a new password with a mailed reset code."""
        state_container: AppContainer = request.app.state.container
        if not await state_container.navigation_service.confirm_password_reset(
            body.code, body.new_password
        ):
            raise _failure(state_container, status.HTTP_400_BAD_REQUEST)
        return _state(state_container)

    # Navigation

    @app.post("/navigation/back")
    async def navigate_back(request: Request) -> dict[str, object]:
        """Leave the current screen."""
        state_container = _signed_in(request)
        state_container.navigation_service.back()
        return _state(state_container)

    @app.post("/navigation/home")
    async def navigate_home(request: Request) -> dict[str, object]:
        """Go to the role's home screen."""
        state_container = _signed_in(request)
        state_container.navigation_service.navigate_home()
        return _state(state_container)

    @app.post("/navigation/{target}")
    async def navigate(target: Screen, request: Request) -> dict[str, object]:
        """Open a menu screen."""
        state_container = _signed_in(request)
        if target not in MENU_SCREENS:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        if not state_container.navigation_service.open(target):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    # Trips

    @app.get("/trips")
    async def list_trips(request: Request) -> dict[str, object]:
        """Return the loaded trips."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        trips = [
            trip
            for trip in state_container.catalog.trips
            if navigation.can_view_trip(trip.id)
        ]
        return {"trips": encode(trips)}

    @app.post("/trips")
    async def create_trip(body: TripPayload, request: Request) -> dict[str, object]:
        """Create a trip from the new trip form."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        if not navigation.new_trip():
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        if not await navigation.save_trip(body.model_dump()):
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY)
        return _state(state_container)

    @app.post("/trips/{trip_id}/open")
    async def open_trip(trip_id: str, request: Request) -> dict[str, object]:
        """Show a trip on its tours tab."""
        state_container = _signed_in(request)
        trip = _trip_or_404(state_container, trip_id)
        if not state_container.navigation_service.open_trip(trip):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/trips/{trip_id}/groups")
    async def open_trip_groups(trip_id: str, request: Request) -> dict[str, object]:
        """Show a trip on its groups tab."""
        state_container = _signed_in(request)
        trip = _trip_or_404(state_container, trip_id)
        if not state_container.navigation_service.view_trip_groups(trip.id):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    # Tours

    @app.get("/tours")
    async def list_tours(request: Request) -> dict[str, object]:
        """Return the loaded tours."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        tours = [
            tour
            for tour in state_container.catalog.tours
            if navigation.can_view_trip(tour.trip_id)
        ]
        return {"tours": encode(tours)}

    @app.post("/tours")
    async def create_tour(body: TourPayload, request: Request) -> dict[str, object]:
        """Create a tour through the tour form."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        if not navigation.new_tour():
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        if not await navigation.save_tour(_form_data(body)):
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY)
        return _state(state_container)

    @app.put("/tours/{tour_id}")
    async def update_tour(
        tour_id: str, body: TourPayload, request: Request
    ) -> dict[str, object]:
        """Update a tour through the tour form."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        tour = _tour_or_404(state_container, tour_id)
        if not navigation.edit_tour(tour):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        if not await navigation.save_tour(_form_data(body)):
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY)
        return _state(state_container)

    @app.post("/tours/{tour_id}/detail")
    async def open_tour_detail(tour_id: str, request: Request) -> dict[str, object]:
        """Show a single tour."""
        state_container = _signed_in(request)
        tour = _tour_or_404(state_container, tour_id)
        if not state_container.navigation_service.open_tour_detail(tour):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/tours/{tour_id}/attendance/open")
    async def open_tour_attendance(
        tour_id: str, request: Request, q: str = ""
    ) -> dict[str, object]:
        """Show who attends a tour."""
        state_container = _signed_in(request)
        tour = _tour_or_404(state_container, tour_id)
        if not state_container.navigation_service.open_tour_attendance(tour):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container, q)

    @app.get("/tours/{tour_id}/attendance")
    async def tour_attendance(
        tour_id: str, request: Request, q: str = ""
    ) -> dict[str, object]:
        """Return the attendance report of a tour."""
        state_container = _signed_in(request)
        tour = _tour_or_404(state_container, tour_id)
        if not state_container.navigation_service.can_view_trip(tour.trip_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
        groups = state_container.catalog.groups_for_trip(tour.trip_id)
        report = build_tour_attendance_report(tour, groups, q)
        return {"report": encode(report)}

    @app.post("/tours/{tour_id}/attendance")
    async def submit_attendance(
        tour_id: str, body: AttendanceSubmission, request: Request
    ) -> dict[str, object]:
        """Confirm or cancel the signed-in leader's group on a tour."""
        state_container = _signed_in(request)
        tour = _tour_or_404(state_container, tour_id)
        session = state_container.navigation_service.session
        if session.group is None:
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        try:
            submitted = await state_container.attendance_service.submit_attendance(
                session,
                session.group,
                tour,
                body.members,
                custom_date=body.custom_date,
                cancel_reason=body.cancel_reason,
                selected_price_key=body.selected_price_key,
            )
        except Exception:
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY) from None
        if not submitted:
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/tours/{tour_id}/groups")
    async def open_tour_groups(tour_id: str, request: Request) -> dict[str, object]:
        """Show the groups tab narrowed to a tour's attendees."""
        state_container = _signed_in(request)
        tour = _tour_or_404(state_container, tour_id)
        if not state_container.navigation_service.view_tour_groups(tour):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    # Groups

    @app.get("/groups")
    async def list_groups(request: Request) -> dict[str, object]:
        """Return the groups the signed-in role may see."""
        state_container = _signed_in(request)
        return {"groups": encode(_visible_groups(state_container))}

    @app.post("/groups")
    async def create_group(body: GroupPayload, request: Request) -> dict[str, object]:
        """Create a group through the group form."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        if not navigation.new_group():
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        if not await navigation.save_group(_form_data(body)):
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY)
        return _state(state_container)

    @app.put("/groups/{group_id}")
    async def update_group(
        group_id: str, body: GroupPayload, request: Request
    ) -> dict[str, object]:
        """Update a group through the group form."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        group = _group_or_404(state_container, group_id)
        if not navigation.edit_group(group):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        if not await navigation.save_group(_form_data(body)):
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY)
        return _state(state_container)

    # Forms

    @app.post("/forms/trip/new")
    async def open_trip_form(request: Request) -> dict[str, object]:
        """Open the new trip form."""
        state_container = _signed_in(request)
        if not state_container.navigation_service.new_trip():
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/forms/tour/new")
    async def open_tour_form(request: Request) -> dict[str, object]:
        """Open an empty tour form."""
        state_container = _signed_in(request)
        if not state_container.navigation_service.new_tour():
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/forms/tour/{tour_id}/edit")
    async def open_tour_edit_form(tour_id: str, request: Request) -> dict[str, object]:
        """Open the tour form for an existing tour."""
        state_container = _signed_in(request)
        tour = _tour_or_404(state_container, tour_id)
        if not state_container.navigation_service.edit_tour(tour):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/forms/group/new")
    async def open_group_form(request: Request) -> dict[str, object]:
        """Open an empty group form."""
        state_container = _signed_in(request)
        if not state_container.navigation_service.new_group():
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/forms/group/{group_id}/edit")
    async def open_group_edit_form(
        group_id: str, request: Request
    ) -> dict[str, object]:
        """Open the group form for an existing group."""
        state_container = _signed_in(request)
        group = _group_or_404(state_container, group_id)
        if not state_container.navigation_service.edit_group(group):
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        return _state(state_container)

    @app.post("/forms/{form}/cancel")
    async def cancel_form(form: str, request: Request) -> dict[str, object]:
        """Close a form without saving."""
        state_container = _signed_in(request)
        navigation = state_container.navigation_service
        cancels = {
            "trip": navigation.cancel_trip_form,
            "tour": navigation.cancel_tour_form,
            "group": navigation.cancel_group_form,
        }
        cancel = cancels.get(form)
        if cancel is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
        cancel()
        return _state(state_container)

    # Custom tours

    @app.get("/custom-tours")
    async def list_custom_tours(request: Request) -> dict[str, object]:
        """Return the signed-in leader's own activities."""
        state_container = _leader(request)
        return {"custom_tours": encode(state_container.custom_tour_service.tours)}

    @app.post("/custom-tours")
    async def create_custom_tour(
        body: CustomTourPayload, request: Request
    ) -> dict[str, object]:
        """Add an activity to the leader's agenda."""
        state_container = _leader(request)
        await _save_custom_tour(state_container, _form_data(body))
        return _state(state_container)

    @app.put("/custom-tours/{tour_id}")
    async def update_custom_tour(
        tour_id: str, body: CustomTourUpdate, request: Request
    ) -> dict[str, object]:
        """Change one of the leader's activities."""
        state_container = _leader(request)
        _custom_tour_or_404(state_container, tour_id)
        await _save_custom_tour(state_container, _form_data(body), tour_id)
        return _state(state_container)

    @app.delete("/custom-tours/{tour_id}")
    async def delete_custom_tour(tour_id: str, request: Request) -> dict[str, object]:
        """Remove one of the leader's activities."""
        state_container = _leader(request)
        _custom_tour_or_404(state_container, tour_id)
        service = state_container.custom_tour_service
        try:
            await service.delete(state_container.navigation_service.session, tour_id)
        except Exception:
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY) from None
        return _state(state_container)

    # Descriptions

    @app.post("/descriptions")
    async def generate_description(
        body: DescriptionRequest, request: Request
    ) -> dict[str, object]:
        """Generate marketing copy for a trip or tour."""
        state_container = _signed_in(request)
        if not state_container.navigation_service.session.is_admin:
            raise _failure(state_container, status.HTTP_403_FORBIDDEN)
        try:
            text = await state_container.description_service.generate(
                body.kind, body.name, body.destination, body.context
            )
        except Exception:
            logger.exception("Failed to generate description: %s", body.kind)
            state_container.notifier.error(
                "Could not generate a description. Please try again."
            )
            raise _failure(state_container, status.HTTP_502_BAD_GATEWAY) from None
        return {"description": text}

    return app


def _signed_in(request: Request) -> AppContainer:
    container: AppContainer = request.app.state.container
    if container.navigation_service.session.screen == Screen.LOGIN:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return container


def _state(container: AppContainer, query: str = "") -> dict[str, object]:
    view = container.navigation_service.render(query)
    return {
        "view": encode(view),
        "notifications": encode(container.notifier.drain()),
    }


def _failure(container: AppContainer, status_code: int) -> HTTPException:
    return HTTPException(status_code=status_code, detail=_state(container))


def _form_data(
    body: TourPayload | GroupPayload | CustomTourPayload | CustomTourUpdate,
) -> dict[str, object]:
    return body.model_dump(exclude_unset=True)


def _visible_groups(container: AppContainer) -> list[Group]:
    session = container.navigation_service.session
    if session.role == Role.USER:
        return [session.group] if session.group else []
    return container.catalog.groups


def _trip_or_404(container: AppContainer, trip_id: str) -> Trip:
    trip = container.catalog.find_trip(trip_id)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return trip


def _tour_or_404(container: AppContainer, tour_id: str) -> Tour:
    tour = container.catalog.find_tour(tour_id)
    if tour is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return tour


def _group_or_404(container: AppContainer, group_id: str) -> Group:
    group = container.catalog.find_group(group_id)
    if group is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return group


def _leader(request: Request) -> AppContainer:
    container = _signed_in(request)
    if container.navigation_service.session.role != Role.USER:
        raise _failure(container, status.HTTP_403_FORBIDDEN)
    return container


def _custom_tour_or_404(container: AppContainer, tour_id: str) -> CustomTour:
    tour = container.custom_tour_service.find(tour_id)
    if tour is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return tour


async def _save_custom_tour(
    container: AppContainer, data: dict[str, object], tour_id: str | None = None
) -> None:
    service = container.custom_tour_service
    try:
        saved = await service.save(
            container.navigation_service.session, data, tour_id
        )
    except Exception:
        raise _failure(container, status.HTTP_502_BAD_GATEWAY) from None
    if not saved:
        raise _failure(container, status.HTTP_400_BAD_REQUEST)
