"""Account e-mails: leader credentials and password reset codes."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class LeaderCredentials:
    """What a new group leader needs to sign in."""

    email: str
    password: str
    leader_name: str
    group_name: str
    trip_name: str


@dataclass(frozen=True)
class ResetCode:
    """A password reset code addressed to one account."""

    email: str
    name: str
    code: str


class CredentialsMailer(Protocol):
    """Interface for delivering account e-mails."""

    async def send_credentials(self, credentials: LeaderCredentials) -> None:
        """Send the credentials e-mail, raising on delivery failure."""

    async def send_reset_code(self, reset: ResetCode) -> None:
        """Send the password reset code, raising on delivery failure."""


CREDENTIALS_SUBJECT = "Credenciais de Acesso - Roteirando"
RESET_SUBJECT = "Código de Recuperação de Senha - Roteirando"


def render_credentials_email(credentials: LeaderCredentials, app_url: str) -> str:
    """Render the plain-text body of the credentials e-mail."""
    return (
        f"Olá {credentials.leader_name},\n\n"
        "Sua conta foi criada com sucesso no sistema Roteirando!\n\n"
        "Aqui estão suas credenciais de acesso:\n\n"
        f"E-mail: {credentials.email}\n"
        f"Senha: {credentials.password}\n\n"
        f"Grupo: {credentials.group_name}\n"
        f"Viagem: {credentials.trip_name}\n\n"
        "IMPORTANTE: Por segurança, altere sua senha no primeiro acesso.\n\n"
        f"Acesse: {app_url}\n\n"
        "Atenciosamente,\n"
        "Equipe Roteirando"
    )


def render_reset_email(reset: ResetCode, app_url: str) -> str:
    """Render the plain-text body of the reset code e-mail."""
    return (
        f"Olá {reset.name},\n\n"
        "Recebemos uma solicitação para redefinir sua senha.\n\n"
        f"Seu código de recuperação: {reset.code}\n\n"
        "Se você não fez esta solicitação, ignore este e-mail.\n\n"
        f"Acesse: {app_url}\n\n"
        "Atenciosamente,\n"
        "Equipe Roteirando"
    )
