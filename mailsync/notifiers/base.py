"""Base protocol for user notification channels."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Notifier(Protocol):
    """Protocol for notification channels (desktop, push, console)."""

    @property
    def name(self) -> str:
        """Return the channel identifier."""
        ...

    def notify(self, title: str, message: str, urgent: bool = False) -> bool:
        """Deliver a notification.

        Args:
            title: Short heading
            message: Notification body
            urgent: Request higher priority where the channel supports it

        Returns:
            True if the channel accepted the notification
        """
        ...
