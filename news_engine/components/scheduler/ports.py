"""Scheduler component port definitions."""

from __future__ import annotations

from typing import Any, Protocol


class ScheduledPublisherPort(Protocol):
    """The lifecycle operations the job drives."""

    def post_scheduled_article(self, article_id: str) -> Any:
        """Post a due staged article on behalf of its author."""
        ...

    def unpublish_scheduled_article(self, article_id: str) -> Any:
        """Unpublish an article whose unpublish date has passed."""
        ...
