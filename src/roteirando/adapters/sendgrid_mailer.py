"""SendGrid mail adapter."""

from dataclasses import dataclass

import httpx

from roteirando.services.mailer import (
    CREDENTIALS_SUBJECT,
    RESET_SUBJECT,
    LeaderCredentials,
    ResetCode,
    render_credentials_email,
    render_reset_email,
)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass
class HttpxCredentialsMailer:
    """Account mailer implemented with httpx against SendGrid."""

    api_key: str
    sender: str
    app_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str, sender: str, app_url: str
    ) -> "HttpxCredentialsMailer":
        """Create a mailer with a managed httpx session."""
        return cls(
            api_key=api_key,
            sender=sender,
            app_url=app_url,
            http_client=httpx.AsyncClient(),
        )

    async def send_credentials(self, credentials: LeaderCredentials) -> None:
        """Send the credentials e-mail to the group leader."""
        await self._send(
            credentials.email,
            CREDENTIALS_SUBJECT,
            render_credentials_email(credentials, self.app_url),
        )

    async def send_reset_code(self, reset: ResetCode) -> None:
        """Send a password reset code."""
        await self._send(
            reset.email, RESET_SUBJECT, render_reset_email(reset, self.app_url)
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.http_client.aclose()

    async def _send(self, to: str, subject: str, body: str) -> None:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender, "name": "Roteirando"},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        response = await self.http_client.post(
            SENDGRID_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=10,
        )
        response.raise_for_status()
