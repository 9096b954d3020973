# news-lifecycle-engine - Ports (Protocol Interfaces)
# Abstract interfaces for external collaborators; no implementations here

from news_engine.core.ports.clock import ClockPort
from news_engine.core.ports.documents import DocumentStorePort
from news_engine.core.ports.events import DomainEvent, EventBusPort, EventListener, NewsEvent
from news_engine.core.ports.notifications import (
    NewsNotification,
    NotificationKind,
    NotificationPort,
)
from news_engine.core.ports.properties import PropertyStorePort
from news_engine.core.ports.search import SearchIndexPort
from news_engine.core.ports.social import ActivityFeedPort, SpacePort

__all__ = [
    # Storage
    "DocumentStorePort",
    "PropertyStorePort",
    # Social
    "SpacePort",
    "ActivityFeedPort",
    # Read models
    "SearchIndexPort",
    # Events
    "DomainEvent",
    "EventBusPort",
    "EventListener",
    "NewsEvent",
    # Notifications
    "NewsNotification",
    "NotificationKind",
    "NotificationPort",
    # Time
    "ClockPort",
]
