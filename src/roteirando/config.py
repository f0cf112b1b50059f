"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    fallback_admin_emails: str | None = None
    fallback_admin_password: str | None = None
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    sendgrid_api_key: str | None = None
    mail_from: str = "noreply@roteirando.com"
    app_url: str = "https://roteirando.com"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_email_list(raw: str | None) -> set[str]:
    """Parse a comma separated list of e-mails, normalized to lowercase."""
    if raw is None:
        return set()
    emails: set[str] = set()
    for chunk in raw.split(","):
        value = chunk.strip().lower()
        if value:
            emails.add(value)
    return emails
