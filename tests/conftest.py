from collections.abc import Callable, Iterator
from concurrent.futures import Future
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from news_engine.adapters.clock import FixedClock
from news_engine.context import ServiceContext
from news_engine.domain.entities import CallerContext, Space
from news_engine.rules.loader import load_rules
from news_engine.rules.models import Rules

PUBLISHER_GROUP = "/platform/web-contributors"


class FakeTimer:
    """Timer that only fires when the test says so."""

    def __init__(self, delay: float, callback: Callable[[], Any]) -> None:
        self.delay = delay
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> Future[None] | None:
        return self.callback()


class FakeTimers:
    def __init__(self) -> None:
        self.created: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], Any]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.created.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.created[-1]


@pytest.fixture
def rules() -> Rules:
    # Load REAL rules from project root
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def timers() -> FakeTimers:
    return FakeTimers()


def add_spaces(services: ServiceContext) -> None:
    """
    newsroom: john redacts, paula publishes, root manages, mary is a member.
    sales: sam is a member. olivia belongs nowhere.
    """
    services.spaces.add_space(
        Space(id="newsroom", pretty_name="newsroom", display_name="Newsroom"),
        members=["mary"],
        managers=["root"],
        redactors=["john"],
        publishers=["paula"],
    )
    services.spaces.add_space(
        Space(id="sales", pretty_name="sales", display_name="Sales"),
        members=["sam"],
    )


@pytest.fixture
def services(rules: Rules, clock: FixedClock, timers: FakeTimers) -> Iterator[ServiceContext]:
    """
    Creates a full ServiceContext on the in-memory adapters with manual timers.
    """
    ctx = ServiceContext.create(rules, clock=clock, timer_factory=timers)
    add_spaces(ctx)
    yield ctx
    ctx.shutdown()


@pytest.fixture
def redactor() -> CallerContext:
    return CallerContext(user_id="john")


@pytest.fixture
def publisher() -> CallerContext:
    return CallerContext(user_id="paula")


@pytest.fixture
def manager() -> CallerContext:
    return CallerContext(user_id="root")


@pytest.fixture
def member() -> CallerContext:
    return CallerContext(user_id="mary")


@pytest.fixture
def outsider() -> CallerContext:
    return CallerContext(user_id="olivia")


@pytest.fixture
def platform_publisher() -> CallerContext:
    return CallerContext(user_id="pat", memberships=frozenset({f"publisher:{PUBLISHER_GROUP}"}))


@pytest.fixture
def target_manager() -> CallerContext:
    return CallerContext(user_id="tina", memberships=frozenset({f"manager:{PUBLISHER_GROUP}"}))
