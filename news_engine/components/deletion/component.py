"""
Grace-period deletion scheduler.

A delete request is held for a caller supplied delay before it runs, and
can be undone in the meantime by the user who requested it. Each kind of
object (articles, targets) has its own queue and worker pool.

Key behaviors:
- Pending entries are keyed by object id; check-then-act on the pending map
  happens under the queue lock
- When the timer fires the entry is removed atomically; an undo that won the
  race leaves nothing to run
- The deletion runs with the caller context captured at request time
- A delay <= 0 deletes immediately on the calling thread
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from news_engine.components.deletion.models import (
    DeleteHandler,
    PendingDeletion,
    TimerFactory,
    TimerHandle,
)
from news_engine.core.ports.clock import ClockPort
from news_engine.domain.entities import CallerContext
from news_engine.domain.errors import Conflict, Forbidden, NotFound
from news_engine.rules.models import DeletionRules

logger = logging.getLogger(__name__)


def thread_timer(delay: float, callback: Callable[[], Any]) -> TimerHandle:
    return threading.Timer(delay, callback)


@dataclass
class _Armed:
    pending: PendingDeletion
    caller: CallerContext
    timer: TimerHandle


class DeletionQueue:
    """Pending deletions of one kind of object, with a dedicated worker pool."""

    def __init__(
        self,
        name: str,
        handler: DeleteHandler,
        clock: ClockPort,
        pool_size: int = 1,
        timer_factory: TimerFactory = thread_timer,
    ) -> None:
        self.name = name
        self._handler = handler
        self._clock = clock
        self._timer_factory = timer_factory
        self._pool = ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix=f"delete-{name}")
        self._pending: dict[str, _Armed] = {}
        self._lock = threading.Lock()
        self._closed = False

    def request_delete(
        self, key: str, caller: CallerContext, delay_seconds: float
    ) -> PendingDeletion | None:
        """
        Schedule the deletion of ``key`` after ``delay_seconds``.

        Returns the pending entry, or None when the deletion ran immediately.

        Raises:
            Conflict: a deletion of this key is already pending
        """
        if delay_seconds <= 0:
            self._handler(key, caller)
            return None

        now = self._clock.now_utc()
        pending = PendingDeletion(
            queue=self.name,
            key=key,
            requested_by=caller.user_id,
            requested_at=now,
            fires_at=now + timedelta(seconds=delay_seconds),
        )
        with self._lock:
            if self._closed:
                raise RuntimeError(f"Delete queue {self.name} is shut down")
            if key in self._pending:
                raise Conflict(f"Deletion of {key} is already pending", key)
            timer = self._timer_factory(delay_seconds, lambda: self._fire(key))
            timer.daemon = True
            self._pending[key] = _Armed(pending=pending, caller=caller, timer=timer)
            timer.start()

        logger.info(
            "Deletion of %s/%s requested by %s, fires at %s",
            self.name,
            key,
            caller.user_id,
            pending.fires_at.isoformat(),
        )
        return pending

    def undo_delete(self, key: str, user_id: str) -> PendingDeletion:
        """
        Cancel a pending deletion.

        Raises:
            NotFound: nothing is pending for this key
            Forbidden: the deletion was requested by another user; it stays armed
        """
        with self._lock:
            armed = self._pending.get(key)
            if armed is None:
                raise NotFound(f"No pending deletion for {key}", key)
            if armed.pending.requested_by != user_id:
                raise Forbidden(f"User {user_id} cannot undo deletion of {key}", key)
            del self._pending[key]
            armed.timer.cancel()

        logger.info("Deletion of %s/%s undone by %s", self.name, key, user_id)
        return armed.pending

    def get_pending(self, key: str) -> PendingDeletion | None:
        with self._lock:
            armed = self._pending.get(key)
            return armed.pending if armed else None

    def is_pending(self, key: str) -> bool:
        return self.get_pending(key) is not None

    def _fire(self, key: str) -> Future[None] | None:
        """Timer callback: hand the deletion over to the worker pool."""
        try:
            return self._pool.submit(self._run, key)
        except RuntimeError:
            logger.warning("Delete queue %s closed before %s fired", self.name, key)
            return None

    def _run(self, key: str) -> None:
        with self._lock:
            armed = self._pending.pop(key, None)
        if armed is None:
            logger.info("Deletion of %s/%s was undone before it fired", self.name, key)
            return

        try:
            self._handler(key, armed.caller)
            logger.info("Deleted %s/%s after grace period", self.name, key)
        except Exception:
            logger.exception("Scheduled deletion of %s/%s failed", self.name, key)

    def shutdown(self, wait: bool = True) -> None:
        """Cancel every pending timer and stop the worker pool."""
        with self._lock:
            self._closed = True
            for armed in self._pending.values():
                armed.timer.cancel()
            self._pending.clear()
        self._pool.shutdown(wait=wait)


class DeletionScheduler:
    """Registry of the delete queues configured in the rules."""

    def __init__(
        self,
        rules: DeletionRules,
        clock: ClockPort,
        timer_factory: TimerFactory = thread_timer,
    ) -> None:
        self._rules = rules
        self._clock = clock
        self._timer_factory = timer_factory
        self._queues: dict[str, DeletionQueue] = {}

    def register(self, queue: str, handler: DeleteHandler) -> DeletionQueue:
        config = self._rules.queues.get(queue)
        if config is None:
            raise ValueError(f"Unknown delete queue: {queue}")
        if queue in self._queues:
            raise ValueError(f"Delete queue already registered: {queue}")
        self._queues[queue] = DeletionQueue(
            name=queue,
            handler=handler,
            clock=self._clock,
            pool_size=config.pool_size,
            timer_factory=self._timer_factory,
        )
        return self._queues[queue]

    def queue(self, name: str) -> DeletionQueue:
        try:
            return self._queues[name]
        except KeyError:
            raise ValueError(f"Delete queue not registered: {name}") from None

    def default_delay(self, queue: str) -> float:
        return self._rules.queues[queue].default_delay_seconds

    def request_delete(
        self, queue: str, key: str, caller: CallerContext, delay_seconds: float | None = None
    ) -> PendingDeletion | None:
        if delay_seconds is None:
            delay_seconds = self.default_delay(queue)
        return self.queue(queue).request_delete(key, caller, delay_seconds)

    def undo_delete(self, queue: str, key: str, user_id: str) -> PendingDeletion:
        return self.queue(queue).undo_delete(key, user_id)

    def shutdown(self, wait: bool = True) -> None:
        for q in self._queues.values():
            q.shutdown(wait=wait)
