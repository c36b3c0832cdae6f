# bookstock/services/notifications.py
import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Notifier:
    """Collects user-visible messages and forwards them to subscribed listeners"""

    def __init__(self):
        self.notifications: List[Notification] = []
        self._listeners: List[Callable[[Notification], None]] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> None:
        self._listeners.append(listener)

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> Notification:
        notification = Notification(message=message, level=level)
        self.notifications.append(notification)
        logger.debug(f"[{level.value}] {message}")
        for listener in self._listeners:
            listener(notification)
        return notification

    def info(self, message: str) -> Notification:
        return self.notify(message, NotificationLevel.INFO)

    def success(self, message: str) -> Notification:
        return self.notify(message, NotificationLevel.SUCCESS)

    def warning(self, message: str) -> Notification:
        return self.notify(message, NotificationLevel.WARNING)

    def error(self, message: str) -> Notification:
        return self.notify(message, NotificationLevel.ERROR)

    def of_level(self, level: NotificationLevel) -> List[Notification]:
        return [n for n in self.notifications if n.level == level]
