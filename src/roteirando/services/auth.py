"""Credential checks for admins and group leaders."""

import base64
import binascii
import hmac
import logging
import secrets
import string
from dataclasses import dataclass, field
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from roteirando.domain.models import Group
from roteirando.domain.session import Role
from roteirando.services.catalog import GroupRepository

_logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
RESET_CODE_LENGTH = 6
_SYMBOLS = "!@#$%&*"
# Method prefixes written by werkzeug's generate_password_hash.
_HASH_PREFIXES = ("scrypt:", "pbkdf2:")


@dataclass(frozen=True)
class AdminAccount:
    """An administrator registered in storage."""

    email: str
    name: str | None
    password: str | None


class AdminRepository(Protocol):
    """Persistence interface for administrator accounts."""

    def get_admin(self, email: str) -> AdminAccount | None:
        """Return the admin for a normalized e-mail, if present."""

    def update_password(self, email: str, password: str) -> None:
        """Store a new password hash for the admin."""


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a successful login."""

    role: Role
    group: Group | None = None
    email: str | None = None


@dataclass(frozen=True)
class PasswordReset:
    """A pending reset: who asked and the code mailed to them."""

    email: str
    role: Role
    code: str
    group_id: str | None = None
    name: str = ""


class PasswordChangeError(ValueError):
    """Raised when a requested password change is not acceptable."""


@dataclass
class AuthService:
    """Resolves e-mail and password into a console role."""

    admin_repository: AdminRepository
    group_repository: GroupRepository
    fallback_admin_emails: set[str] = field(default_factory=set)
    fallback_admin_password: str | None = None

    def login(self, email: str, password: str) -> LoginResult | None:
        """Return the role for valid credentials, or None."""
        normalized = email.strip().lower()
        if not normalized or not password:
            return None

        admin = self._lookup_admin(normalized)
        if admin is not None:
            if admin.password and verify_password(password, admin.password):
                _logger.info("Admin login: %s", normalized)
                return LoginResult(role=Role.ADMIN, email=normalized)
            return None
        if normalized in self.fallback_admin_emails:
            if self.fallback_admin_password and verify_password(
                password, self.fallback_admin_password
            ):
                _logger.info("Fallback admin login: %s", normalized)
                return LoginResult(role=Role.ADMIN, email=normalized)
            return None

        group = self._find_leader_group(normalized)
        if group is None:
            return None
        if group.leader_password and not verify_password(
            password, group.leader_password
        ):
            return None
        _logger.info("Leader login: group=%s", group.id)
        return LoginResult(role=Role.USER, group=group, email=normalized)

    def change_admin_password(
        self, email: str, new_password: str, current_password: str | None
    ) -> None:
        """Replace a stored admin's password after checking the current one.

        Fallback admins have no stored account; their password lives in the
        configuration and cannot be changed here.
        """
        admin = self.admin_repository.get_admin(email.strip().lower())
        if admin is None:
            raise PasswordChangeError(
                "This account's password is managed in the configuration."
            )
        current = (current_password or "").strip()
        if not current:
            raise PasswordChangeError("Current password is required.")
        if not admin.password or not verify_password(current, admin.password):
            raise PasswordChangeError("Current password is incorrect.")
        new = _validate_new_password(new_password, current)
        self.admin_repository.update_password(admin.email, hash_password(new))
        _logger.info("Admin password changed: %s", admin.email)

    def start_password_reset(self, email: str) -> PasswordReset | None:
        """Return a reset with a fresh code, or None for unknown e-mails.

        Group leaders are matched before stored admins.
        """
        normalized = email.strip().lower()
        if not normalized:
            return None
        code = generate_reset_code()
        group = self._find_leader_group(normalized)
        if group is not None:
            return PasswordReset(
                email=normalized,
                role=Role.USER,
                code=code,
                group_id=group.id,
                name=group.leader_name,
            )
        admin = self._lookup_admin(normalized)
        if admin is not None:
            return PasswordReset(
                email=normalized,
                role=Role.ADMIN,
                code=code,
                name=admin.name or normalized.split("@")[0],
            )
        return None

    def complete_password_reset(
        self, reset: PasswordReset, code: str, new_password: str
    ) -> None:
        """Store the new password when the code matches the mailed one."""
        if not hmac.compare_digest(code.strip().encode(), reset.code.encode()):
            raise PasswordChangeError("Incorrect reset code.")
        new = _validate_new_password(new_password)
        if reset.role == Role.ADMIN:
            self.admin_repository.update_password(reset.email, hash_password(new))
        else:
            self.group_repository.update_password(
                str(reset.group_id), hash_password(new)
            )
        _logger.info("Password reset: %s %s", reset.role, reset.email)

    def _lookup_admin(self, email: str) -> AdminAccount | None:
        try:
            return self.admin_repository.get_admin(email)
        except Exception:
            _logger.warning("Admin lookup failed, using fallback list", exc_info=True)
            return None

    def _find_leader_group(self, email: str) -> Group | None:
        for group in self.group_repository.list_groups():
            if group.leader_email and group.leader_email.strip().lower() == email:
                return group
        return None


def hash_password(password: str) -> str:
    """Return a salted hash for storing a password."""
    return generate_password_hash(password.strip())


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored credential.

    Current rows hold a werkzeug hash. Legacy rows hold the password as plain
    text or base64.
    """
    candidate = password.strip()
    reference = stored.strip()
    if not candidate or not reference:
        return False
    if reference.startswith(_HASH_PREFIXES):
        return check_password_hash(reference, candidate)
    if hmac.compare_digest(candidate.encode("utf-8"), reference.encode("utf-8")):
        return True
    try:
        decoded = base64.b64decode(reference, validate=True)
    except (binascii.Error, ValueError):
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), decoded)


def validate_password_change(
    group: Group, new_password: str, current_password: str | None = None
) -> None:
    """Raise PasswordChangeError when the new password is not acceptable."""
    current = (current_password or "").strip()
    if group.password_changed:
        if not current:
            raise PasswordChangeError("Current password is required.")
        if group.leader_password and not verify_password(
            current, group.leader_password
        ):
            raise PasswordChangeError("Current password is incorrect.")
    _validate_new_password(new_password, current)


def _validate_new_password(new_password: str, current: str = "") -> str:
    new = new_password.strip()
    if not new:
        raise PasswordChangeError("New password is required.")
    if len(new) < MIN_PASSWORD_LENGTH:
        raise PasswordChangeError(
            f"Password must have at least {MIN_PASSWORD_LENGTH} characters."
        )
    if current and new == current:
        raise PasswordChangeError("New password must differ from the current one.")
    return new


def generate_password(length: int = 12) -> str:
    """Generate a leader password with mixed character classes."""
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, _SYMBOLS]
    alphabet = "".join(pools)
    chars = [secrets.choice(pool) for pool in pools]
    remaining = max(length, len(pools)) - len(pools)
    chars.extend(secrets.choice(alphabet) for _ in range(remaining))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def generate_reset_code() -> str:
    """Return a six digit numeric code."""
    return "".join(secrets.choice(string.digits) for _ in range(RESET_CODE_LENGTH))
