"""
Notification sink.

The core never renders anything; it publishes Notification events that the
UI subscribes to and displays.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from storefront.config import Limits
from storefront.events import EventChannel, Subscription
from storefront.logging import get_logger

logger = get_logger(__name__)


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    """User-visible event."""
    type: NotificationType
    title: str
    message: str
    duration_ms: int = Limits.NOTIFICATION_DURATION_MS


class NotificationCenter:
    """Publishes notifications and keeps the most recent ones."""

    def __init__(self, history_size: int = Limits.NOTIFICATION_HISTORY) -> None:
        self.channel: EventChannel[Notification] = EventChannel("notifications")
        self._history: deque[Notification] = deque(maxlen=history_size)

    def subscribe(self, callback: Callable[[Notification], None]) -> Subscription:
        return self.channel.subscribe(callback)

    def notify(self, type: NotificationType, title: str, message: str) -> Notification:
        notification = Notification(type=type, title=title, message=message)
        self._history.append(notification)
        if type is NotificationType.ERROR:
            logger.info(f"Notify error: {title} - {message}")
        else:
            logger.debug(f"Notify {type.value}: {title}")
        self.channel.publish(notification)
        return notification

    def success(self, title: str, message: str) -> Notification:
        return self.notify(NotificationType.SUCCESS, title, message)

    def error(self, title: str, message: str) -> Notification:
        return self.notify(NotificationType.ERROR, title, message)

    def warning(self, title: str, message: str) -> Notification:
        return self.notify(NotificationType.WARNING, title, message)

    def info(self, title: str, message: str) -> Notification:
        return self.notify(NotificationType.INFO, title, message)

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
