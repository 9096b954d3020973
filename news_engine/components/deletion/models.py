"""Deletion component models - frozen dataclasses."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from news_engine.domain.entities import CallerContext

ARTICLES_QUEUE = "articles"
TARGETS_QUEUE = "targets"

# Deletes the object identified by key, acting as the given caller
DeleteHandler = Callable[[str, CallerContext], Any]


@dataclass(frozen=True)
class PendingDeletion:
    """A delete request waiting for its grace period to end."""

    queue: str
    key: str
    requested_by: str
    requested_at: datetime
    fires_at: datetime


class TimerHandle(Protocol):
    """The subset of threading.Timer used by the queues."""

    daemon: bool

    def start(self) -> None:
        ...

    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], Any]], TimerHandle]
