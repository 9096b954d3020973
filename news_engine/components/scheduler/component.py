"""
Scheduled article job.

Posts staged articles whose schedule date has passed and unpublishes
articles whose unpublish date has passed. Each article is processed on
its own: a failure is logged and left for the next run.
"""

from __future__ import annotations

import logging
from datetime import datetime

from news_engine.components.scheduler.models import JobFailure, JobReport
from news_engine.components.scheduler.ports import ScheduledPublisherPort
from news_engine.core.ports.clock import ClockPort
from news_engine.core.ports.properties import PropertyStorePort
from news_engine.domain.properties import NEWS_PAGE, PUBLICATION_STATE, PUBLISHED, PageState
from news_engine.domain.schedule import is_due

logger = logging.getLogger(__name__)


class ScheduledArticleJob:
    def __init__(
        self,
        properties: PropertyStorePort,
        publisher: ScheduledPublisherPort,
        clock: ClockPort,
        batch_size: int = 50,
    ) -> None:
        self._properties = properties
        self._publisher = publisher
        self._clock = clock
        self._batch_size = batch_size

    def due_for_posting(self, now: datetime) -> list[str]:
        items = self._properties.find_items(NEWS_PAGE, properties={PUBLICATION_STATE: "staged"})
        due = []
        for item in items:
            state = PageState.from_properties(item.properties)
            if not state.deleted and is_due(state.schedule_post_date, now):
                due.append(item.object_id)
        return due[: self._batch_size]

    def due_for_unpublishing(self, now: datetime) -> list[str]:
        items = self._properties.find_items(NEWS_PAGE, properties={PUBLISHED: "true"})
        due = []
        for item in items:
            state = PageState.from_properties(item.properties)
            if not state.deleted and is_due(state.schedule_unpublish_date, now):
                due.append(item.object_id)
        return due[: self._batch_size]

    def run_due(self, now: datetime | None = None) -> JobReport:
        """Process every due article, up to the batch size per action."""
        now = now or self._clock.now_utc()
        report = JobReport()

        for article_id in self.due_for_posting(now):
            try:
                self._publisher.post_scheduled_article(article_id)
                report.posted.append(article_id)
            except Exception as e:
                logger.exception("Scheduled posting of article %s failed", article_id)
                report.failed.append(JobFailure(article_id, "post", str(e)))

        for article_id in self.due_for_unpublishing(now):
            try:
                self._publisher.unpublish_scheduled_article(article_id)
                report.unpublished.append(article_id)
            except Exception as e:
                logger.exception("Scheduled unpublishing of article %s failed", article_id)
                report.failed.append(JobFailure(article_id, "unpublish", str(e)))

        if report.total_processed:
            logger.info(
                "Scheduled job: %d posted, %d unpublished, %d failed",
                len(report.posted),
                len(report.unpublished),
                len(report.failed),
            )
        return report
