"""
Service wiring.

Builds the engine from the rules: adapters, permission evaluator, sibling
components and the lifecycle coordinator. Document, social, search and
notification collaborators default to the in-memory adapters; the
property store is SQLite when a database path is given.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from news_engine.adapters.clock import SystemClock
from news_engine.adapters.dev_jobs import DevJobScheduler
from news_engine.adapters.event_bus import InMemoryEventBus
from news_engine.adapters.memory.documents import InMemoryDocumentStore
from news_engine.adapters.memory.notifications import LoggingNotifier
from news_engine.adapters.memory.properties import InMemoryPropertyStore
from news_engine.adapters.memory.search import RecordingSearchIndex
from news_engine.adapters.memory.social import InMemoryActivityFeed, InMemorySpaceDirectory
from news_engine.adapters.sqlite.migrator import SQLiteMigrator
from news_engine.adapters.sqlite.properties import SQLitePropertyStore
from news_engine.components.deletion import (
    ARTICLES_QUEUE,
    TARGETS_QUEUE,
    DeletionScheduler,
    TimerFactory,
    thread_timer,
)
from news_engine.components.indexing import IndexSynchronizer
from news_engine.components.lifecycle import LifecycleCoordinator
from news_engine.components.scheduler import ScheduledArticleJob
from news_engine.components.targeting import TargetingService
from news_engine.core.ports import (
    ActivityFeedPort,
    ClockPort,
    DocumentStorePort,
    EventBusPort,
    NotificationPort,
    PropertyStorePort,
    SearchIndexPort,
    SpacePort,
)
from news_engine.domain.policy import PermissionEvaluator
from news_engine.rules.models import Rules


@dataclass
class ServiceContext:
    rules: Rules
    documents: DocumentStorePort
    properties: PropertyStorePort
    spaces: SpacePort
    activities: ActivityFeedPort
    search: SearchIndexPort
    events: EventBusPort
    notifier: NotificationPort
    clock: ClockPort
    policy: PermissionEvaluator
    indexer: IndexSynchronizer
    deletion: DeletionScheduler
    targeting: TargetingService
    lifecycle: LifecycleCoordinator
    job: ScheduledArticleJob

    @classmethod
    def create(
        cls,
        rules: Rules,
        db_path: str | None = None,
        migrations_dir: str | None = None,
        clock: ClockPort | None = None,
        timer_factory: TimerFactory = thread_timer,
        **overrides: Any,
    ) -> ServiceContext:
        """
        Wire the engine.

        ``overrides`` replaces a collaborator by field name (properties,
        documents, spaces, activities, search, events, notifier).
        """
        # Adapters
        if "properties" in overrides:
            properties: PropertyStorePort = overrides["properties"]
        elif db_path is not None:
            if migrations_dir is not None:
                SQLiteMigrator(db_path, migrations_dir).run_migrations()
            properties = SQLitePropertyStore(db_path)
        else:
            properties = InMemoryPropertyStore()
        documents = overrides.get("documents") or InMemoryDocumentStore()
        spaces = overrides.get("spaces") or InMemorySpaceDirectory()
        activities = overrides.get("activities") or InMemoryActivityFeed()
        search = overrides.get("search") or RecordingSearchIndex()
        events = overrides.get("events") or InMemoryEventBus()
        notifier = overrides.get("notifier") or LoggingNotifier()
        clock = clock or SystemClock()

        # Domain
        policy = PermissionEvaluator(rules.permissions, spaces)

        # Components
        indexer = IndexSynchronizer(search, rules.indexing)
        deletion = DeletionScheduler(rules.deletion, clock, timer_factory)
        targeting = TargetingService(properties, policy, deletion)
        lifecycle = LifecycleCoordinator(
            documents=documents,
            properties=properties,
            spaces=spaces,
            activities=activities,
            policy=policy,
            targeting=targeting,
            indexer=indexer,
            events=events,
            notifier=notifier,
            clock=clock,
            rules=rules.lifecycle,
            deletion=deletion,
        )
        deletion.register(ARTICLES_QUEUE, lifecycle.delete_news)
        deletion.register(TARGETS_QUEUE, targeting.delete_target_by_name)
        job = ScheduledArticleJob(properties, lifecycle, clock, rules.scheduler.batch_size)

        return cls(
            rules=rules,
            documents=documents,
            properties=properties,
            spaces=spaces,
            activities=activities,
            search=search,
            events=events,
            notifier=notifier,
            clock=clock,
            policy=policy,
            indexer=indexer,
            deletion=deletion,
            targeting=targeting,
            lifecycle=lifecycle,
            job=job,
        )

    def job_scheduler(self) -> DevJobScheduler:
        return DevJobScheduler(self.job, self.rules.scheduler.poll_interval_seconds)

    def shutdown(self) -> None:
        self.deletion.shutdown(wait=True)
