"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from roteirando.adapters.openai_description_client import OpenAIDescriptionClient
from roteirando.adapters.sendgrid_mailer import HttpxCredentialsMailer
from roteirando.adapters.supabase_admin_repository import SupabaseAdminRepository
from roteirando.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from roteirando.adapters.supabase_custom_tour_repository import (
    SupabaseCustomTourRepository,
)
from roteirando.adapters.supabase_group_repository import SupabaseGroupRepository
from roteirando.adapters.supabase_tour_repository import SupabaseTourRepository
from roteirando.adapters.supabase_trip_repository import SupabaseTripRepository
from roteirando.config import Settings, parse_email_list
from roteirando.services.attendance import AttendanceService
from roteirando.services.auth import AuthService
from roteirando.services.catalog import CatalogService
from roteirando.services.custom_tours import CustomTourService
from roteirando.services.descriptions import DescriptionService
from roteirando.services.navigation import NavigationService
from roteirando.services.notifications import NotificationLog


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    notifier: NotificationLog
    catalog: CatalogService
    auth_service: AuthService
    attendance_service: AttendanceService
    custom_tour_service: CustomTourService
    navigation_service: NavigationService
    description_service: DescriptionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    group_repository = SupabaseGroupRepository(supabase_client)
    notifier = NotificationLog()
    catalog = CatalogService(
        trip_repository=SupabaseTripRepository(supabase_client),
        tour_repository=SupabaseTourRepository(supabase_client),
        group_repository=group_repository,
        notifier=notifier,
    )
    auth_service = AuthService(
        admin_repository=SupabaseAdminRepository(supabase_client),
        group_repository=group_repository,
        fallback_admin_emails=parse_email_list(
            resolved_settings.fallback_admin_emails
        ),
        fallback_admin_password=resolved_settings.fallback_admin_password,
    )
    attendance_service = AttendanceService(
        repository=SupabaseAttendanceRepository(supabase_client),
        catalog=catalog,
        notifier=notifier,
    )
    custom_tour_service = CustomTourService(
        repository=SupabaseCustomTourRepository(supabase_client),
        notifier=notifier,
    )
    mailer = None
    if resolved_settings.sendgrid_api_key:
        mailer = HttpxCredentialsMailer.create(
            api_key=resolved_settings.sendgrid_api_key,
            sender=resolved_settings.mail_from,
            app_url=resolved_settings.app_url,
        )
    navigation_service = NavigationService(
        catalog=catalog,
        auth_service=auth_service,
        notifier=notifier,
        mailer=mailer,
        custom_tours=custom_tour_service,
    )
    description_client = OpenAIDescriptionClient.create(
        resolved_settings.openai_api_key
    )
    description_service = DescriptionService(
        client=description_client,
        model=resolved_settings.openai_model,
    )

    async def close_resources() -> None:
        await description_client.close()
        if mailer is not None:
            await mailer.close()

    return AppContainer(
        settings=resolved_settings,
        notifier=notifier,
        catalog=catalog,
        auth_service=auth_service,
        attendance_service=attendance_service,
        custom_tour_service=custom_tour_service,
        navigation_service=navigation_service,
        description_service=description_service,
        close_resources=close_resources,
    )
