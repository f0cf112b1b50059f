"""Screen navigation state machine for the console session.

One :class:`SessionContext` describes who is logged in and what they are
looking at. Transitions mutate it, issuing storage calls through the catalog
where a screen needs fresh data; :meth:`NavigationService.render` turns it
into the screen to show and the data that screen needs.

Concurrent transitions are not cancelled; the last one to finish wins.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date

from roteirando.domain.models import Group, Tour, Trip
from roteirando.domain.session import (
    Role,
    Screen,
    SessionContext,
    TripDetailsTab,
    needs_group,
    screen_allowed,
)
from roteirando.services.attendance import (
    attending_groups_for_tour,
    attending_tours_for_group,
    build_tour_attendance_report,
)
from roteirando.services.auth import (
    AuthService,
    PasswordChangeError,
    PasswordReset,
    generate_password,
    hash_password,
    validate_password_change,
)
from roteirando.services.catalog import CatalogService
from roteirando.services.custom_tours import CustomTourService
from roteirando.services.financial import build_financial_summary
from roteirando.services.mailer import CredentialsMailer, LeaderCredentials, ResetCode
from roteirando.services.notifications import Notifier
from roteirando.services.pricing import amount_for_group

_logger = logging.getLogger(__name__)

# Entering these list screens drops the trip selection.
_TRIPLESS_SCREENS = {Screen.DASHBOARD, Screen.ALL_TOURS, Screen.ALL_GROUPS}


@dataclass(frozen=True)
class ScreenView:
    """The screen to show and the data handed to it."""

    screen: Screen
    data: dict[str, object] = field(default_factory=dict)
    loading: bool = False


@dataclass
class NavigationService:
    """Owns the session context and every screen transition."""

    catalog: CatalogService
    auth_service: AuthService
    notifier: Notifier
    mailer: CredentialsMailer | None = None
    custom_tours: CustomTourService | None = None
    session: SessionContext = field(default_factory=SessionContext)
    pending_reset: PasswordReset | None = None

    # Session lifecycle

    async def login(self, email: str, password: str) -> bool:
        """Check credentials and start a session."""
        try:
            result = await asyncio.to_thread(self.auth_service.login, email, password)
        except Exception:
            _logger.exception("Login failed")
            self.notifier.error("Could not sign in. Please try again.")
            return False
        if result is None:
            self.notifier.error("User not found or wrong password.")
            return False
        await self.login_success(result.role, result.group, result.email)
        return True

    async def login_success(
        self, role: Role, group: Group | None = None, email: str | None = None
    ) -> None:
        """Start a fresh session for the role and land on its home screen."""
        if role == Role.USER and group is None:
            raise ValueError("A group leader session needs a group")
        self.session = SessionContext(role=role, email=email)
        self.pending_reset = None
        if role == Role.ADMIN:
            await self.catalog.load_all()
            self.session.screen = Screen.DASHBOARD
            return

        self.session.group = group
        self.session.active_trip_id = group.trip_id
        loads = [
            self._refetch_group(group),
            self.catalog.load_trips(),
            self.catalog.load_tours(),
            self.catalog.load_groups(),
        ]
        if self.custom_tours is not None:
            loads.append(self.custom_tours.load(group.id))
        resolved, *_ = await asyncio.gather(*loads)
        self.session.group = resolved
        self.session.password_change_required = not resolved.password_changed
        self.session.trip_details_tab = TripDetailsTab.TOURS
        self.session.screen = Screen.TRIP_DETAILS

    def logout(self) -> None:
        """Drop the session and return to the login screen."""
        self.session = SessionContext()
        if self.custom_tours is not None:
            self.custom_tours.clear()

    async def change_password(
        self, new_password: str, current_password: str | None = None
    ) -> bool:
        """Change the signed-in admin's or bound leader's password."""
        if self.session.screen == Screen.LOGIN:
            return False
        if self.session.is_admin:
            return await self._change_admin_password(new_password, current_password)
        group = self.session.group
        if group is None:
            return False
        try:
            validate_password_change(group, new_password, current_password)
        except PasswordChangeError as exc:
            self.notifier.error(str(exc))
            return False
        try:
            updated = await self.catalog.update_password(
                group.id, hash_password(new_password)
            )
        except Exception:
            _logger.exception("Failed to change password: group=%s", group.id)
            self.notifier.error("Could not change the password. Please try again.")
            return False
        updated = replace(updated, attendance=group.attendance)
        self.session.group = updated
        self.catalog.replace_group(updated)
        self.session.password_change_required = False
        self.notifier.success("Password changed.")
        return True

    async def request_password_reset(self, email: str) -> bool:
        """Mail a reset code to a known leader or admin."""
        if self.mailer is None:
            self.notifier.error("Password recovery is not available.")
            return False
        try:
            reset = await asyncio.to_thread(
                self.auth_service.start_password_reset, email
            )
        except Exception:
            _logger.exception("Password reset lookup failed")
            self.notifier.error("Could not start password recovery.")
            return False
        if reset is None:
            self.notifier.error("E-mail not found.")
            return False
        try:
            await self.mailer.send_reset_code(
                ResetCode(email=reset.email, name=reset.name, code=reset.code)
            )
        except Exception:
            _logger.exception("Failed to send reset code: %s", reset.email)
            self.notifier.error("Could not send the reset code. Please try again.")
            return False
        self.pending_reset = reset
        self.notifier.info(f"A reset code was sent to {reset.email}.")
        return True

    async def confirm_password_reset(self, code: str, new_password: str) -> bool:
        """Set a new password with the code from the reset e-mail."""
        reset = self.pending_reset
        if reset is None:
            self.notifier.error("Request a reset code first.")
            return False
        try:
            await asyncio.to_thread(
                self.auth_service.complete_password_reset, reset, code, new_password
            )
        except PasswordChangeError as exc:
            self.notifier.error(str(exc))
            return False
        except Exception:
            _logger.exception("Failed to reset password: %s", reset.email)
            self.notifier.error("Could not reset the password. Please try again.")
            return False
        self.pending_reset = None
        self.notifier.success("Password reset. You can sign in now.")
        return True

    async def _change_admin_password(
        self, new_password: str, current_password: str | None
    ) -> bool:
        email = self.session.email
        if not email:
            return False
        try:
            await asyncio.to_thread(
                self.auth_service.change_admin_password,
                email,
                new_password,
                current_password,
            )
        except PasswordChangeError as exc:
            self.notifier.error(str(exc))
            return False
        except Exception:
            _logger.exception("Failed to change admin password: %s", email)
            self.notifier.error("Could not change the password. Please try again.")
            return False
        self.notifier.success("Password changed.")
        return True

    def can_view_trip(self, trip_id: str | None) -> bool:
        """Return True when the session may look inside a trip.

        Leaders are confined to the trip of their own group.
        """
        if self.session.is_admin:
            return True
        group = self.session.group
        return group is not None and trip_id == group.trip_id

    # Plain navigation

    def open(self, screen: Screen) -> bool:
        """Enter a screen if the session's role allows it."""
        if screen == Screen.LOGIN or not screen_allowed(screen, self.session):
            _logger.debug("Blocked transition to %s for %s", screen, self.session.role)
            return False
        if screen in _TRIPLESS_SCREENS:
            self.session.active_trip_id = None
        if screen == Screen.ALL_GROUPS:
            self.session.groups_tour_filter = None
        self.session.screen = screen
        return True

    def navigate_home(self) -> None:
        """Go to the role's home screen."""
        if self.session.role == Role.USER:
            if self.session.group is not None:
                self.session.active_trip_id = self.session.group.trip_id
            self.session.screen = Screen.TRIP_DETAILS
            return
        self.open(Screen.DASHBOARD)

    def open_trip(self, trip: Trip) -> bool:
        """Show a trip on its tours tab."""
        if not self.can_view_trip(trip.id):
            return False
        self.session.active_trip_id = trip.id
        self.session.trip_details_tab = TripDetailsTab.TOURS
        self.session.groups_tour_filter = None
        self.session.screen = Screen.TRIP_DETAILS
        return True

    def view_trip_groups(self, trip_id: str) -> bool:
        """Show a trip on its groups tab."""
        if not self.can_view_trip(trip_id):
            return False
        self.session.active_trip_id = trip_id
        self.session.trip_details_tab = TripDetailsTab.GROUPS
        self.session.groups_tour_filter = None
        self.session.screen = Screen.TRIP_DETAILS
        return True

    def view_tour_groups(self, tour: Tour) -> bool:
        """Show the groups tab of a tour's trip, narrowed to that tour."""
        if not self.can_view_trip(tour.trip_id):
            return False
        self.session.active_trip_id = tour.trip_id
        self.session.trip_details_tab = TripDetailsTab.GROUPS
        self.session.groups_tour_filter = tour.id
        self.session.screen = Screen.TRIP_DETAILS
        return True

    def open_tour_detail(self, tour: Tour) -> bool:
        """Show a single tour."""
        if not self.can_view_trip(tour.trip_id):
            return False
        self.session.detail_tour = tour
        self.session.active_trip_id = tour.trip_id
        self.session.screen = Screen.TOUR_DETAIL
        return True

    def back_from_tour_detail(self) -> None:
        """Leave the tour detail screen."""
        if self.session.active_trip_id:
            self.session.screen = Screen.TRIP_DETAILS
        elif self.session.role == Role.USER:
            self.session.screen = Screen.AGENDA
        else:
            self.session.screen = Screen.ALL_TOURS

    def open_tour_attendance(self, tour: Tour) -> bool:
        """Show who attends a tour."""
        if not self.can_view_trip(tour.trip_id):
            return False
        self.session.attendance_tour = tour
        self.session.active_trip_id = tour.trip_id
        self.session.screen = Screen.TOUR_ATTENDANCE
        return True

    def back_from_tour_attendance(self) -> None:
        """Leave the attendance list for the trip it belongs to."""
        self.session.screen = Screen.TRIP_DETAILS

    def back(self) -> None:
        """Leave the current screen the way its back button does."""
        screen = self.session.screen
        if screen == Screen.LOGIN:
            return
        if screen == Screen.TOUR_DETAIL:
            self.back_from_tour_detail()
        elif screen == Screen.TOUR_ATTENDANCE:
            self.back_from_tour_attendance()
        elif screen in {Screen.NEW_TOUR, Screen.EDIT_TOUR}:
            self.cancel_tour_form()
        elif screen in {Screen.NEW_GROUP, Screen.EDIT_GROUP}:
            self.cancel_group_form()
        elif screen == Screen.NEW_TRIP:
            self.cancel_trip_form()
        else:
            self.navigate_home()

    # Tour forms

    def new_tour(self) -> bool:
        """Open an empty tour form."""
        if not self.open(Screen.NEW_TOUR):
            return False
        self.session.editing_tour = None
        return True

    def edit_tour(self, tour: Tour) -> bool:
        """Open the tour form for an existing tour."""
        if not self.open(Screen.EDIT_TOUR):
            return False
        self.session.editing_tour = tour
        self.session.active_trip_id = tour.trip_id
        return True

    async def save_tour(self, payload: dict[str, object]) -> bool:
        """Persist the tour form; stay on the form if storage fails."""
        if not self.session.is_admin:
            return False
        editing = self.session.editing_tour
        data = {
            **payload,
            "trip_id": payload.get("trip_id") or self.session.active_trip_id,
        }
        if not data.get("trip_id"):
            self.notifier.error("Select a trip for this tour.")
            return False
        try:
            saved = await self.catalog.save_tour(data, editing.id if editing else None)
        except Exception:
            _logger.exception("Failed to save tour")
            self.notifier.error("Could not save the tour. Please try again.")
            return False
        self.notifier.success(f"Tour {saved.name} saved.")
        await self.catalog.load_tours()
        self._leave_form(Screen.ALL_TOURS, TripDetailsTab.TOURS)
        self.session.editing_tour = None
        return True

    def cancel_tour_form(self) -> None:
        """Close the tour form without saving."""
        self._leave_form(Screen.ALL_TOURS)
        self.session.editing_tour = None

    # Group forms

    def new_group(self) -> bool:
        """Open an empty group form."""
        if not self.open(Screen.NEW_GROUP):
            return False
        self.session.editing_group = None
        return True

    def edit_group(self, group: Group) -> bool:
        """Open the group form for an existing group."""
        if not self.open(Screen.EDIT_GROUP):
            return False
        self.session.editing_group = group
        self.session.active_trip_id = group.trip_id
        return True

    async def save_group(self, payload: dict[str, object]) -> bool:
        """Persist the group form; new leaders receive their credentials."""
        if not self.session.is_admin:
            return False
        editing = self.session.editing_group
        data = {
            **payload,
            "trip_id": payload.get("trip_id") or self.session.active_trip_id,
        }
        if not data.get("trip_id"):
            self.notifier.error("Select a trip for this group.")
            return False
        plain_password = None
        if editing is None and data.get("leader_email"):
            plain_password = str(data.get("leader_password") or generate_password())
            data["leader_password"] = hash_password(plain_password)
        elif data.get("leader_password"):
            data["leader_password"] = hash_password(str(data["leader_password"]))
        else:
            data.pop("leader_password", None)
        try:
            saved = await self.catalog.save_group(
                data, editing.id if editing else None
            )
        except Exception:
            _logger.exception("Failed to save group")
            self.notifier.error("Could not save the group. Please try again.")
            return False
        self.notifier.success(f"Group {saved.name} saved.")
        if plain_password is not None:
            await self._send_credentials(saved, plain_password)
        await self.catalog.load_groups()
        self._leave_form(Screen.ALL_GROUPS, TripDetailsTab.GROUPS)
        self.session.editing_group = None
        return True

    def cancel_group_form(self) -> None:
        """Close the group form without saving."""
        self._leave_form(Screen.ALL_GROUPS)
        self.session.editing_group = None

    # Trip form

    def new_trip(self) -> bool:
        """Open the trip form."""
        return self.open(Screen.NEW_TRIP)

    async def save_trip(
        self, payload: dict[str, object], today: date | None = None
    ) -> bool:
        """Create a trip; its status is fixed from the dates at this moment."""
        if not self.session.is_admin:
            return False
        try:
            saved = await self.catalog.create_trip(payload, today=today)
        except Exception:
            _logger.exception("Failed to create trip")
            self.notifier.error("Could not create the trip. Please try again.")
            return False
        self.notifier.success(f"Trip {saved.name} created.")
        await self.catalog.load_trips()
        self._leave_form(Screen.DASHBOARD)
        return True

    def cancel_trip_form(self) -> None:
        """Close the trip form without saving."""
        self._leave_form(Screen.DASHBOARD)

    # Rendering

    def render(self, query: str = "") -> ScreenView | None:
        """Return the current screen with its data, or None to show nothing."""
        screen = self.session.screen
        if screen == Screen.LOGIN:
            return ScreenView(screen=Screen.LOGIN)
        if not screen_allowed(screen, self.session):
            return None
        if needs_group(screen, self.session):
            return ScreenView(screen=Screen.LOADING, loading=True)
        builder = self._builders().get(screen)
        data = builder(query) if builder else {}
        if data is None:
            if self.catalog.loading:
                return ScreenView(screen=Screen.LOADING, loading=True)
            return None
        return ScreenView(screen=screen, data=data, loading=self.catalog.loading)

    def _builders(self) -> dict[Screen, Callable[[str], dict[str, object] | None]]:
        return {
            Screen.DASHBOARD: lambda _: {"trips": self.catalog.trips},
            Screen.TRIP_DETAILS: self._trip_details_data,
            Screen.NEW_TOUR: self._tour_form_data,
            Screen.EDIT_TOUR: self._tour_form_data,
            Screen.NEW_GROUP: self._group_form_data,
            Screen.EDIT_GROUP: self._group_form_data,
            Screen.NEW_TRIP: lambda _: {},
            Screen.ALL_TOURS: lambda _: {
                "tours": self.catalog.tours,
                "trips": self.catalog.trips,
            },
            Screen.ALL_GROUPS: lambda _: {
                "groups": self.catalog.groups,
                "trips": self.catalog.trips,
            },
            Screen.TOUR_ATTENDANCE: self._tour_attendance_data,
            Screen.TOUR_DETAIL: self._tour_detail_data,
            Screen.FINANCIAL: lambda _: {
                "summary": build_financial_summary(
                    self.catalog.trips, self.catalog.tours, self.catalog.groups
                )
            },
            Screen.AGENDA: self._agenda_data,
            Screen.MY_TRIP: self._my_trip_data,
            Screen.CITY_GUIDE: self._guide_data,
            Screen.DESTINOS_GUIDE: self._guide_data,
        }

    def _trip_details_data(self, _query: str) -> dict[str, object] | None:
        trip = self.catalog.find_trip(self.session.active_trip_id)
        if trip is None:
            return None
        tours = self.catalog.tours_for_trip(trip.id)
        if self.session.role == Role.USER:
            groups = [self.session.group] if self.session.group else []
        else:
            groups = self.catalog.groups_for_trip(trip.id)
        tour_filter = self.catalog.find_tour(self.session.groups_tour_filter)
        if tour_filter is not None:
            attending = attending_groups_for_tour(tour_filter, groups)
            groups = [item.group for item in attending]
        return {
            "trip": trip,
            "tours": tours,
            "groups": groups,
            "tab": self.session.trip_details_tab,
            "tour_filter": tour_filter,
            "user_group": self.session.group,
            "password_change_required": self.session.password_change_required,
        }

    def _tour_form_data(self, _query: str) -> dict[str, object] | None:
        trip = self.catalog.find_trip(self.session.active_trip_id)
        if trip is None:
            return None
        return {"trip": trip, "tour": self.session.editing_tour}

    def _group_form_data(self, _query: str) -> dict[str, object]:
        return {
            "trip": self.catalog.find_trip(self.session.active_trip_id),
            "group": self.session.editing_group,
        }

    def _tour_attendance_data(self, query: str) -> dict[str, object] | None:
        selected = self.session.attendance_tour
        if selected is None:
            return None
        tour = self.catalog.find_tour(selected.id) or selected
        trip = self.catalog.find_trip(self.session.active_trip_id)
        if trip is None:
            trip = self.catalog.find_trip(tour.trip_id)
        groups = self.catalog.groups_for_trip(tour.trip_id)
        return {
            "trip": trip,
            "report": build_tour_attendance_report(tour, groups, query),
        }

    def _tour_detail_data(self, _query: str) -> dict[str, object] | None:
        selected = self.session.detail_tour
        if selected is None:
            return None
        tour = self.catalog.find_tour(selected.id) or selected
        data: dict[str, object] = {
            "tour": tour,
            "trip": self.catalog.find_trip(tour.trip_id),
        }
        group = self.session.group
        if self.session.role == Role.USER and group is not None:
            info = group.attendance_for(tour.id)
            data["attendance"] = info
            data["amount"] = amount_for_group(tour, info)
        else:
            data["report"] = build_tour_attendance_report(
                tour, self.catalog.groups_for_trip(tour.trip_id)
            )
        return data

    def _agenda_data(self, _query: str) -> dict[str, object]:
        group = self.session.group
        return {
            "group": group,
            "tours": attending_tours_for_group(group, self.catalog.tours),
            "trips": self.catalog.trips,
            "custom_tours": self.custom_tours.tours if self.custom_tours else [],
        }

    def _my_trip_data(self, _query: str) -> dict[str, object]:
        group = self.session.group
        return {
            "group": group,
            "trip": self.catalog.find_trip(group.trip_id),
            "tours": self.catalog.tours_for_trip(group.trip_id),
        }

    def _guide_data(self, _query: str) -> dict[str, object]:
        trip_id = self.session.active_trip_id
        if trip_id is None and self.session.group is not None:
            trip_id = self.session.group.trip_id
        trip = self.catalog.find_trip(trip_id)
        return {"destination": trip.destination if trip else None}

    # Helpers

    def _leave_form(
        self, list_screen: Screen, tab: TripDetailsTab | None = None
    ) -> None:
        if self.session.active_trip_id:
            if tab is not None:
                self.session.trip_details_tab = tab
            self.session.screen = Screen.TRIP_DETAILS
        else:
            self.session.screen = list_screen

    async def _refetch_group(self, group: Group) -> Group:
        try:
            fetched = await self.catalog.fetch_group(group.id)
        except Exception:
            _logger.warning(
                "Group refetch failed, using login record: group=%s",
                group.id,
                exc_info=True,
            )
            return group
        return fetched or group

    async def _send_credentials(self, group: Group, password: str) -> None:
        if self.mailer is None or not group.leader_email:
            return
        trip = self.catalog.find_trip(group.trip_id)
        credentials = LeaderCredentials(
            email=group.leader_email,
            password=password,
            leader_name=group.leader_name,
            group_name=group.name,
            trip_name=trip.name if trip else "",
        )
        try:
            await self.mailer.send_credentials(credentials)
        except Exception:
            _logger.exception("Failed to send credentials: group=%s", group.id)
            self.notifier.warning(
                "Group saved, but the credentials e-mail could not be sent."
            )
