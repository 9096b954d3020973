"""
Social graph ports: spaces and the activity feed.
"""

from __future__ import annotations

from typing import Protocol

from news_engine.domain.entities import Activity, Space


class SpacePort(Protocol):
    """Space directory and role lookups."""

    def get_space(self, space_id: str) -> Space | None:
        ...

    def is_member(self, space_id: str, user_id: str) -> bool:
        ...

    def is_manager(self, space_id: str, user_id: str) -> bool:
        ...

    def is_redactor(self, space_id: str, user_id: str) -> bool:
        ...

    def is_publisher(self, space_id: str, user_id: str) -> bool:
        ...

    def is_super_manager(self, user_id: str) -> bool:
        ...

    def can_redact(self, space_id: str, user_id: str) -> bool:
        """Whether the user may write content in the space."""
        ...

    def members_of(self, space_id: str) -> list[str]:
        ...


class ActivityFeedPort(Protocol):
    """Activity stream storage."""

    def create_activity(self, activity: Activity) -> Activity:
        ...

    def get_activity(self, activity_id: str) -> Activity | None:
        ...

    def update_activity(self, activity: Activity) -> Activity:
        ...

    def delete_activity(self, activity_id: str) -> None:
        ...
