"""Scheduler component models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class JobFailure:
    """An article the job could not process; retried on the next run."""

    article_id: str
    action: str
    error: str


@dataclass(frozen=True)
class JobReport:
    """Outcome of one scheduled-article run."""

    posted: list[str] = field(default_factory=list)
    unpublished: list[str] = field(default_factory=list)
    failed: list[JobFailure] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return len(self.posted) + len(self.unpublished) + len(self.failed)
