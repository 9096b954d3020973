"""Scheduler component - posts and unpublishes articles when their dates come due."""

from news_engine.components.scheduler.component import ScheduledArticleJob
from news_engine.components.scheduler.models import JobFailure, JobReport
from news_engine.components.scheduler.ports import ScheduledPublisherPort

__all__ = [
    # Component
    "ScheduledArticleJob",
    # Models
    "JobFailure",
    "JobReport",
    # Ports
    "ScheduledPublisherPort",
]
