"""In-memory notification centre with optional delivery listeners (toasts, push)."""

import logging
import uuid
from typing import Callable, List, Optional

from .models import Notification, NotificationType

logger = logging.getLogger(__name__)

Listener = Callable[[Notification], None]


class NotificationCenter:
    """Newest-first notification list. Notifications change only by being marked read."""

    def __init__(self, listeners: Optional[List[Listener]] = None):
        self._notifications: List[Notification] = []
        self.listeners: List[Listener] = list(listeners or [])

    @property
    def notifications(self) -> List[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._notifications if not n.read)

    def subscribe(self, listener: Listener) -> None:
        self.listeners.append(listener)

    def add(self, title: str, message: str, type: NotificationType = NotificationType.INFO) -> Notification:
        """Record a notification and hand it to every listener (fire-and-forget)."""
        notification = Notification(
            id=f"notif_{uuid.uuid4().hex[:12]}",
            title=title,
            message=message,
            type=NotificationType(type),
        )
        self._notifications.insert(0, notification)

        for listener in self.listeners:
            try:
                listener(notification)
            except Exception as e:
                # Delivery is not awaited or inspected by the session
                logger.warning(f"Notification listener failed for {notification.id}: {e}")

        return notification

    def mark_read(self, notification_id: str) -> bool:
        for index, notification in enumerate(self._notifications):
            if notification.id == notification_id:
                if not notification.read:
                    self._notifications[index] = notification.model_copy(update={"read": True})
                return True
        return False

    def clear(self) -> None:
        self._notifications.clear()
