"""In-memory space directory and activity feed."""

from __future__ import annotations

import threading

from news_engine.domain.entities import Activity, Space
from news_engine.domain.errors import NotFound


class InMemorySpaceDirectory:
    """
    Spaces with their role lists.

    A space without redactors lets every member write; managers and
    super managers can always write.
    """

    def __init__(self) -> None:
        self._spaces: dict[str, Space] = {}
        self._members: dict[str, set[str]] = {}
        self._managers: dict[str, set[str]] = {}
        self._redactors: dict[str, set[str]] = {}
        self._publishers: dict[str, set[str]] = {}
        self._super_managers: set[str] = set()

    def add_space(
        self,
        space: Space,
        members: list[str] | None = None,
        managers: list[str] | None = None,
        redactors: list[str] | None = None,
        publishers: list[str] | None = None,
    ) -> Space:
        self._spaces[space.id] = space
        managers = managers or []
        redactors = redactors or []
        publishers = publishers or []
        # Every role holder is a member
        self._members[space.id] = set(members or []) | set(managers) | set(redactors) | set(
            publishers
        )
        self._managers[space.id] = set(managers)
        self._redactors[space.id] = set(redactors)
        self._publishers[space.id] = set(publishers)
        return space

    def add_member(self, space_id: str, user_id: str) -> None:
        self._members.setdefault(space_id, set()).add(user_id)

    def add_super_manager(self, user_id: str) -> None:
        self._super_managers.add(user_id)

    def get_space(self, space_id: str) -> Space | None:
        return self._spaces.get(space_id)

    def is_member(self, space_id: str, user_id: str) -> bool:
        return user_id in self._members.get(space_id, set())

    def is_manager(self, space_id: str, user_id: str) -> bool:
        return user_id in self._managers.get(space_id, set())

    def is_redactor(self, space_id: str, user_id: str) -> bool:
        return user_id in self._redactors.get(space_id, set())

    def is_publisher(self, space_id: str, user_id: str) -> bool:
        return user_id in self._publishers.get(space_id, set())

    def is_super_manager(self, user_id: str) -> bool:
        return user_id in self._super_managers

    def can_redact(self, space_id: str, user_id: str) -> bool:
        if self.is_super_manager(user_id) or self.is_manager(space_id, user_id):
            return True
        if self._redactors.get(space_id):
            return self.is_redactor(space_id, user_id)
        return self.is_member(space_id, user_id)

    def members_of(self, space_id: str) -> list[str]:
        return sorted(self._members.get(space_id, set()))


class InMemoryActivityFeed:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._activities: dict[str, Activity] = {}

    def create_activity(self, activity: Activity) -> Activity:
        with self._lock:
            self._activities[activity.id] = activity
            return activity

    def get_activity(self, activity_id: str) -> Activity | None:
        with self._lock:
            return self._activities.get(activity_id)

    def update_activity(self, activity: Activity) -> Activity:
        with self._lock:
            if activity.id not in self._activities:
                raise NotFound(f"Activity {activity.id} not found", activity.id)
            self._activities[activity.id] = activity
            return activity

    def delete_activity(self, activity_id: str) -> None:
        with self._lock:
            self._activities.pop(activity_id, None)

    def list_activities(self, space_id: str | None = None) -> list[Activity]:
        with self._lock:
            return [
                a for a in self._activities.values() if space_id is None or a.space_id == space_id
            ]
