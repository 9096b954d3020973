"""
Domain event bus port.

Lifecycle events are broadcast fire-and-forget; listeners (gamification,
analytics, activity updates, permission sync) are owned elsewhere.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class NewsEvent(str, Enum):
    """Event names broadcast by the lifecycle engine."""

    NEWS_POSTED = "news.postArticle"
    ARTICLE_POSTED = "news.gamification.postArticle"
    PUBLISH = "news.gamification.publishArticle"
    VIEW = "news.viewArticle"
    SHARE = "news.shareArticle"
    DELETE = "news.deleteArticle"
    UPDATE = "news.updateArticle"
    SCHEDULE = "news.scheduleArticle"
    UNSCHEDULE = "news.unscheduleArticle"
    TRANSLATION_ADDED = "content.add.article.translation"
    TRANSLATION_REMOVED = "content.remove.article.translation"
    PERMISSIONS_UPDATED = "content.update.permissions"


@dataclass(frozen=True)
class DomainEvent:
    """A broadcast event."""

    name: str
    source: str
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime | None = None


EventListener = Callable[[DomainEvent], None]


class EventBusPort(Protocol):
    """Event broadcaster."""

    def broadcast(self, event_name: str, source: str, payload: dict[str, Any]) -> None:
        """Deliver an event to every listener. Never raises for listener errors."""
        ...
