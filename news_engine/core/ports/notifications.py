"""
Notification port.

Rendering and delivery are owned by the notification system; the engine
only decides who is told what.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class NotificationKind(Enum):
    POST = "post"
    PUBLISH = "publish"
    MENTION = "mention"


@dataclass(frozen=True)
class NewsNotification:
    """A notification request about an article."""

    kind: NotificationKind
    article_id: str
    title: str
    author: str
    current_user: str
    space_id: str
    activity_id: str | None = None
    audience: str | None = None
    # Space members were already told under a "space" audience
    exclude_space_members: bool = False
    excluded_users: tuple[str, ...] = field(default_factory=tuple)
    mentioned_users: tuple[str, ...] = field(default_factory=tuple)


class NotificationPort(Protocol):
    """Notification dispatcher."""

    def send(self, notification: NewsNotification) -> None:
        """
        Dispatch a notification.

        Raises:
            NotificationFailure: dispatch failed
        """
        ...
