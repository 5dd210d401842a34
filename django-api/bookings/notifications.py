"""Outbound member notifications.

Delivery (push, email, in-app) belongs to the notification service. The
booking engine only hands messages over, fire-and-forget.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    user_id: str
    studio_id: str
    type: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    channels: tuple[str, ...] = ("push", "in_app")


class Notifier(ABC):
    """Interface for the notification service."""

    @abstractmethod
    def send(self, notification: Notification) -> None:
        ...


class LoggingNotifier(Notifier):
    """Default backend: records the notification in the application log."""

    def send(self, notification: Notification) -> None:
        logger.info(
            "Notification %s for user %s: %s",
            notification.type,
            notification.user_id,
            notification.title,
            extra={"notification_data": notification.data, "channels": notification.channels},
        )


def send_quietly(notifier: Notifier, notification: Notification) -> None:
    """Hand a notification to the notifier; delivery failures are logged, never raised."""
    try:
        notifier.send(notification)
    except Exception:
        logger.warning(
            "Failed to send %s notification to user %s",
            notification.type,
            notification.user_id,
            exc_info=True,
        )
