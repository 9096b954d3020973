"""Targeting component port definitions - protocols for dependencies."""

from typing import Protocol

from news_engine.components.deletion.models import PendingDeletion
from news_engine.domain.entities import CallerContext


class PublishPolicyPort(Protocol):
    """Protocol for the capability checks targeting relies on."""

    def can_publish(self, space_id: str, ctx: CallerContext) -> bool:
        ...

    def can_manage_targets(self, ctx: CallerContext) -> bool:
        ...


class DeletionPort(Protocol):
    """Protocol for grace-period deletion."""

    def request_delete(
        self, queue: str, key: str, caller: CallerContext, delay_seconds: float | None = None
    ) -> PendingDeletion | None:
        ...

    def undo_delete(self, queue: str, key: str, user_id: str) -> PendingDeletion:
        ...
