"""Deletion component - grace-period deletion with undo."""

from news_engine.components.deletion.component import (
    DeletionQueue,
    DeletionScheduler,
    thread_timer,
)
from news_engine.components.deletion.models import (
    ARTICLES_QUEUE,
    TARGETS_QUEUE,
    DeleteHandler,
    PendingDeletion,
    TimerFactory,
    TimerHandle,
)

__all__ = [
    # Component
    "DeletionQueue",
    "DeletionScheduler",
    "thread_timer",
    # Models
    "ARTICLES_QUEUE",
    "TARGETS_QUEUE",
    "DeleteHandler",
    "PendingDeletion",
    "TimerFactory",
    "TimerHandle",
]
