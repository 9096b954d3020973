"""Lifecycle component port definitions - protocols for sibling components."""

from collections.abc import Iterable
from typing import Protocol

from news_engine.components.deletion.models import PendingDeletion
from news_engine.domain.entities import CallerContext
from news_engine.domain.properties import TargetAssignment


class TargetingPort(Protocol):
    """Protocol for article target assignments."""

    def replace_targets(
        self,
        article_id: str,
        space_id: str,
        target_names: list[str],
        displayed: bool,
        ctx: CallerContext | None,
    ) -> list[str]:
        """Replace assignments; ctx None runs without a capability check."""
        ...

    def remove_targets(self, article_id: str) -> int:
        ...

    def get_targets(self, article_id: str) -> list[str]:
        ...

    def get_displayed_assignments(
        self, target_name: str, offset: int = 0, limit: int | None = None
    ) -> list[TargetAssignment]:
        ...


class IndexingPort(Protocol):
    """Protocol for search index synchronization. Never raises."""

    def index_article(self, article_id: str) -> bool:
        ...

    def index_translation(self, article_id: str, lang: str) -> bool:
        ...

    def unindex_translation(self, article_id: str, lang: str) -> bool:
        ...

    def unindex_article(self, article_id: str, langs: Iterable[str] = ()) -> bool:
        ...


class DeletionPort(Protocol):
    """Protocol for grace-period deletion."""

    def request_delete(
        self, queue: str, key: str, caller: CallerContext, delay_seconds: float | None = None
    ) -> PendingDeletion | None:
        ...

    def undo_delete(self, queue: str, key: str, user_id: str) -> PendingDeletion:
        ...
