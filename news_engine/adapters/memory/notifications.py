from __future__ import annotations

import logging
import threading

from news_engine.core.ports.notifications import NewsNotification, NotificationKind
from news_engine.domain.errors import NotificationFailure

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Notification adapter that logs and keeps every sent notification."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sent: list[NewsNotification] = []
        self.fail = False

    def send(self, notification: NewsNotification) -> None:
        if self.fail:
            raise NotificationFailure(
                f"Unable to send {notification.kind.value} notification",
                notification.article_id,
            )
        with self._lock:
            self.sent.append(notification)
        logger.info(
            "Notification %s for article %s (user %s)",
            notification.kind.value,
            notification.article_id,
            notification.current_user,
        )

    def of_kind(self, kind: NotificationKind) -> list[NewsNotification]:
        with self._lock:
            return [n for n in self.sent if n.kind == kind]
