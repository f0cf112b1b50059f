"""User-facing notifications."""

from dataclasses import dataclass, field
from typing import Protocol


class Notifier(Protocol):
    """Interface for showing short messages to the console user."""

    def success(self, message: str) -> None:
        """Report a completed action."""

    def info(self, message: str) -> None:
        """Report neutral information."""

    def warning(self, message: str) -> None:
        """Report a degraded but non-fatal outcome."""

    def error(self, message: str) -> None:
        """Report a failed action."""


@dataclass(frozen=True)
class Notification:
    """A message queued for display."""

    level: str
    message: str


@dataclass
class NotificationLog(Notifier):
    """Keeps notifications in memory until the UI drains them."""

    entries: list[Notification] = field(default_factory=list)

    def success(self, message: str) -> None:
        """Queue a success message."""
        self.entries.append(Notification("success", message))

    def info(self, message: str) -> None:
        """Queue an informational message."""
        self.entries.append(Notification("info", message))

    def warning(self, message: str) -> None:
        """Queue a warning."""
        self.entries.append(Notification("warning", message))

    def error(self, message: str) -> None:
        """Queue an error."""
        self.entries.append(Notification("error", message))

    def drain(self) -> list[Notification]:
        """Return and clear every queued message."""
        drained = list(self.entries)
        self.entries.clear()
        return drained
