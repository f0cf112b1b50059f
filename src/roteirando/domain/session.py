"""Session context and screen access rules for the console."""

from dataclasses import dataclass
from enum import StrEnum

from roteirando.domain.models import Group, Tour


class Role(StrEnum):
    """Who is logged in."""

    ADMIN = "admin"
    USER = "user"


class Screen(StrEnum):
    """Closed set of screens the console can show."""

    LOGIN = "login"
    LOADING = "loading"
    DASHBOARD = "dashboard"
    TRIP_DETAILS = "trip-details"
    NEW_TOUR = "new-tour"
    EDIT_TOUR = "edit-tour"
    NEW_GROUP = "new-group"
    EDIT_GROUP = "edit-group"
    NEW_TRIP = "new-trip"
    ALL_TOURS = "all-tours"
    ALL_GROUPS = "all-groups"
    TOUR_ATTENDANCE = "tour-attendance"
    TOUR_DETAIL = "tour-detail"
    FINANCIAL = "financial"
    AGENDA = "agenda"
    CITY_GUIDE = "city-guide"
    DESTINOS_GUIDE = "destinos-guide"
    MY_TRIP = "my-trip"


class TripDetailsTab(StrEnum):
    """Tab a trip-details screen opens on."""

    TOURS = "tours"
    GROUPS = "groups"


@dataclass(frozen=True)
class ScreenRule:
    """Role requirement for entering a screen."""

    roles: frozenset[Role]
    requires_group: bool = False


_ANY_ROLE = frozenset({Role.ADMIN, Role.USER})
_ADMIN_ONLY = ScreenRule(roles=frozenset({Role.ADMIN}))
_USER_ONLY = ScreenRule(roles=frozenset({Role.USER}), requires_group=True)

SCREEN_RULES: dict[Screen, ScreenRule] = {
    Screen.LOGIN: ScreenRule(roles=_ANY_ROLE),
    Screen.LOADING: ScreenRule(roles=_ANY_ROLE),
    Screen.DASHBOARD: _ADMIN_ONLY,
    Screen.TRIP_DETAILS: ScreenRule(roles=_ANY_ROLE),
    Screen.NEW_TOUR: _ADMIN_ONLY,
    Screen.EDIT_TOUR: _ADMIN_ONLY,
    Screen.NEW_GROUP: _ADMIN_ONLY,
    Screen.EDIT_GROUP: _ADMIN_ONLY,
    Screen.NEW_TRIP: _ADMIN_ONLY,
    Screen.ALL_TOURS: _ADMIN_ONLY,
    Screen.ALL_GROUPS: _ADMIN_ONLY,
    Screen.TOUR_ATTENDANCE: ScreenRule(roles=_ANY_ROLE),
    Screen.TOUR_DETAIL: ScreenRule(roles=_ANY_ROLE),
    Screen.FINANCIAL: _ADMIN_ONLY,
    Screen.AGENDA: _USER_ONLY,
    Screen.CITY_GUIDE: ScreenRule(roles=_ANY_ROLE),
    Screen.DESTINOS_GUIDE: ScreenRule(roles=_ANY_ROLE),
    Screen.MY_TRIP: _USER_ONLY,
}


@dataclass
class SessionContext:
    """Everything the console knows about the logged-in session."""

    role: Role = Role.ADMIN
    group: Group | None = None
    email: str | None = None
    screen: Screen = Screen.LOGIN
    active_trip_id: str | None = None
    editing_tour: Tour | None = None
    editing_group: Group | None = None
    detail_tour: Tour | None = None
    attendance_tour: Tour | None = None
    groups_tour_filter: str | None = None
    trip_details_tab: TripDetailsTab = TripDetailsTab.TOURS
    password_change_required: bool = False

    @property
    def is_admin(self) -> bool:
        """Return True for admin sessions."""
        return self.role == Role.ADMIN


def screen_allowed(screen: Screen, session: SessionContext) -> bool:
    """Return True when the session's role may enter the screen.

    User-only screens are allowed before the group is bound; rendering shows
    a loading placeholder until it is.
    """
    if screen is Screen.LOGIN:
        return True
    rule = SCREEN_RULES[screen]
    return session.role in rule.roles


def needs_group(screen: Screen, session: SessionContext) -> bool:
    """Return True when the screen is waiting on a bound group."""
    return SCREEN_RULES[screen].requires_group and session.group is None
