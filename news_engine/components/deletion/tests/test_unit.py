"""
Deletion component unit tests.

Timers are replaced by manual timers; firing one hands the deletion to the
queue's worker pool and returns the Future of the run.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from news_engine.adapters.clock import FixedClock
from news_engine.components.deletion import (
    ARTICLES_QUEUE,
    TARGETS_QUEUE,
    DeletionQueue,
    DeletionScheduler,
)
from news_engine.domain.entities import CallerContext
from news_engine.domain.errors import Conflict, Forbidden, NotFound
from news_engine.rules.models import DeleteQueueRules, DeletionRules

JOHN = CallerContext(user_id="john")
MARY = CallerContext(user_id="mary")


class ManualTimer:
    def __init__(self, delay, callback) -> None:
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self):
        return self.callback()


class ManualTimers:
    def __init__(self) -> None:
        self.created: list[ManualTimer] = []

    def __call__(self, delay, callback) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.created.append(timer)
        return timer


class RecordingHandler:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[str, str]] = []
        self.fail = fail

    def __call__(self, key: str, caller: CallerContext) -> None:
        self.calls.append((key, caller.user_id))
        if self.fail:
            raise RuntimeError("delete failed")


# --- Fixtures ---


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 6, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def queue(handler, clock, timers):
    q = DeletionQueue("articles", handler, clock, pool_size=2, timer_factory=timers)
    yield q
    q.shutdown()


class TestRequestDelete:
    def test_pending_entry(self, queue, timers, clock):
        pending = queue.request_delete("a1", JOHN, 6)

        assert pending.key == "a1"
        assert pending.requested_by == "john"
        assert pending.fires_at == clock.now_utc() + timedelta(seconds=6)
        assert queue.is_pending("a1")
        assert timers.created[0].started
        assert timers.created[0].daemon
        assert timers.created[0].delay == 6

    def test_fire_runs_handler_with_requesting_caller(self, queue, timers, handler):
        queue.request_delete("a1", JOHN, 6)

        timers.created[0].fire().result(timeout=5)

        assert handler.calls == [("a1", "john")]
        assert not queue.is_pending("a1")

    def test_zero_delay_runs_immediately(self, queue, timers, handler):
        assert queue.request_delete("a1", JOHN, 0) is None
        assert handler.calls == [("a1", "john")]
        assert timers.created == []

    def test_duplicate_request_conflicts(self, queue):
        queue.request_delete("a1", JOHN, 6)
        with pytest.raises(Conflict):
            queue.request_delete("a1", MARY, 6)

    def test_handler_failure_is_logged(self, clock, timers):
        failing = RecordingHandler(fail=True)
        q = DeletionQueue("articles", failing, clock, timer_factory=timers)
        q.request_delete("a1", JOHN, 6)

        timers.created[0].fire().result(timeout=5)

        assert failing.calls == [("a1", "john")]
        assert not q.is_pending("a1")
        q.shutdown()

    def test_closed_queue_rejects_requests(self, queue):
        queue.shutdown()
        with pytest.raises(RuntimeError):
            queue.request_delete("a1", JOHN, 6)


class TestUndoDelete:
    def test_undo_cancels(self, queue, timers, handler):
        queue.request_delete("a1", JOHN, 6)

        undone = queue.undo_delete("a1", "john")

        assert undone.key == "a1"
        assert timers.created[0].cancelled
        assert not queue.is_pending("a1")

    def test_undo_before_worker_runs_leaves_nothing(self, queue, timers, handler):
        queue.request_delete("a1", JOHN, 6)
        queue.undo_delete("a1", "john")

        # Timer raced the undo
        timers.created[0].fire().result(timeout=5)

        assert handler.calls == []

    def test_only_requester_can_undo(self, queue):
        queue.request_delete("a1", JOHN, 6)

        with pytest.raises(Forbidden):
            queue.undo_delete("a1", "mary")

        assert queue.is_pending("a1")

    def test_undo_without_pending(self, queue):
        with pytest.raises(NotFound):
            queue.undo_delete("a1", "john")

    def test_request_again_after_undo(self, queue):
        queue.request_delete("a1", JOHN, 6)
        queue.undo_delete("a1", "john")
        assert queue.request_delete("a1", JOHN, 6) is not None


class TestDeletionScheduler:
    @pytest.fixture
    def rules(self) -> DeletionRules:
        return DeletionRules(
            queues={
                ARTICLES_QUEUE: DeleteQueueRules(pool_size=2, default_delay_seconds=6),
                TARGETS_QUEUE: DeleteQueueRules(pool_size=1, default_delay_seconds=3),
            }
        )

    def test_default_delay_from_rules(self, rules, clock, timers, handler):
        scheduler = DeletionScheduler(rules, clock, timers)
        scheduler.register(TARGETS_QUEUE, handler)

        scheduler.request_delete(TARGETS_QUEUE, "homepage", JOHN)

        assert timers.created[0].delay == 3
        scheduler.shutdown()

    def test_queues_are_independent(self, rules, clock, timers):
        articles, targets = RecordingHandler(), RecordingHandler()
        scheduler = DeletionScheduler(rules, clock, timers)
        scheduler.register(ARTICLES_QUEUE, articles)
        scheduler.register(TARGETS_QUEUE, targets)

        scheduler.request_delete(ARTICLES_QUEUE, "same-key", JOHN)
        scheduler.request_delete(TARGETS_QUEUE, "same-key", JOHN)
        scheduler.undo_delete(TARGETS_QUEUE, "same-key", "john")
        timers.created[0].fire().result(timeout=5)

        assert articles.calls == [("same-key", "john")]
        assert targets.calls == []
        scheduler.shutdown()

    def test_unknown_queue(self, rules, clock, handler):
        scheduler = DeletionScheduler(rules, clock)
        with pytest.raises(ValueError):
            scheduler.register("comments", handler)
        with pytest.raises(ValueError):
            scheduler.queue(ARTICLES_QUEUE)

    def test_register_twice(self, rules, clock, handler):
        scheduler = DeletionScheduler(rules, clock)
        scheduler.register(ARTICLES_QUEUE, handler)
        with pytest.raises(ValueError):
            scheduler.register(ARTICLES_QUEUE, handler)
        scheduler.shutdown()

    def test_shutdown_cancels_pending(self, rules, clock, timers, handler):
        scheduler = DeletionScheduler(rules, clock, timers)
        scheduler.register(ARTICLES_QUEUE, handler)
        scheduler.request_delete(ARTICLES_QUEUE, "a1", JOHN)

        scheduler.shutdown()

        assert timers.created[0].cancelled
        assert not scheduler.queue(ARTICLES_QUEUE).is_pending("a1")
