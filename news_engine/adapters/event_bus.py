"""
In-process event bus.

Dispatches synchronously, in subscription order. A failing listener is
logged and skipped; the broadcaster never sees the error.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any

from news_engine.core.ports.events import DomainEvent, EventListener

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"


class InMemoryEventBus:
    """Synchronous event bus keeping a history of broadcast events."""

    def __init__(self, keep_history: bool = True) -> None:
        self._listeners: dict[str, list[EventListener]] = defaultdict(list)
        self._lock = threading.Lock()
        self._keep_history = keep_history
        self.history: list[DomainEvent] = []

    def subscribe(self, event_name: str, listener: EventListener) -> None:
        """Register a listener for an event name, or ``"*"`` for every event."""
        with self._lock:
            self._listeners[event_name].append(listener)

    def unsubscribe(self, event_name: str, listener: EventListener) -> None:
        with self._lock:
            if listener in self._listeners.get(event_name, []):
                self._listeners[event_name].remove(listener)

    def broadcast(self, event_name: str, source: str, payload: dict[str, Any]) -> None:
        event = DomainEvent(
            name=event_name,
            source=source,
            payload=dict(payload),
            occurred_at=datetime.now(UTC),
        )
        with self._lock:
            if self._keep_history:
                self.history.append(event)
            listeners = list(self._listeners.get(event_name, [])) + list(
                self._listeners.get(ALL_EVENTS, [])
            )

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for event %s (source %s)", event_name, source)

    def names(self, source: str | None = None) -> list[str]:
        """Names of broadcast events, optionally for one source."""
        return [e.name for e in self.history if source is None or e.source == source]
