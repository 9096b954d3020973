"""
Targeting component - named distribution slots for published articles.

Assignments are ``newsTarget`` property items keyed by target name and
attached to the article. Target definitions are ``newsTargetDefinition``
items keyed by name.

Invariants:
- Assigning the same target twice is a no-op (logged, not an error)
- Creating a definition with an existing name raises Conflict
- Assignment changes require publish capability in the article's space
"""

from __future__ import annotations

import logging

from news_engine.components.deletion.models import TARGETS_QUEUE, PendingDeletion
from news_engine.components.targeting.ports import DeletionPort, PublishPolicyPort
from news_engine.core.ports.properties import PropertyStorePort
from news_engine.domain.entities import CallerContext, PropertyItem, TargetDefinition
from news_engine.domain.errors import Conflict, Forbidden, NotFound
from news_engine.domain.properties import (
    NEWS_TARGET,
    NEWS_TARGET_DEFINITION,
    TargetAssignment,
    target_definition_from_properties,
    target_definition_to_properties,
)

logger = logging.getLogger(__name__)

# Owner object of every target definition item
TARGET_DEFINITIONS_OWNER = "newsTargets"
SPACE_PERMISSION_PREFIX = "space:"


class TargetingService:
    """Assigns articles to targets and manages target definitions."""

    def __init__(
        self,
        properties: PropertyStorePort,
        policy: PublishPolicyPort,
        deletion: DeletionPort | None = None,
    ) -> None:
        self._properties = properties
        self._policy = policy
        self._deletion = deletion

    # --- Assignments ---

    def assign_targets(
        self,
        article_id: str,
        space_id: str,
        target_names: list[str],
        displayed: bool,
        ctx: CallerContext,
    ) -> list[str]:
        """
        Assign an article to targets. Returns the names newly assigned.

        Raises:
            Forbidden: caller cannot publish in the article's space
        """
        if not self._policy.can_publish(space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot assign targets", article_id)
        return self._create_assignments(article_id, space_id, target_names, displayed, ctx.user_id)

    def _create_assignments(
        self,
        article_id: str,
        space_id: str,
        target_names: list[str],
        displayed: bool,
        creator_id: str,
    ) -> list[str]:
        assigned: list[str] = []
        for name in dict.fromkeys(target_names):
            assignment = TargetAssignment(
                target_name=name, article_id=article_id, displayed=displayed
            )
            item = PropertyItem(
                key=name,
                object_type=NEWS_TARGET,
                object_id=article_id,
                space_id=space_id,
                creator_id=creator_id,
                properties=assignment.to_properties(),
            )
            try:
                self._properties.create_item(item)
                assigned.append(name)
            except Conflict:
                logger.info("Article %s is already assigned to target %s", article_id, name)
        return assigned

    def replace_targets(
        self,
        article_id: str,
        space_id: str,
        target_names: list[str],
        displayed: bool,
        ctx: CallerContext | None,
    ) -> list[str]:
        """
        Delete every assignment of the article, then assign the given targets.

        ``ctx`` None is a system call (scheduled posting) and skips the
        capability check made when the article was scheduled.
        """
        if ctx is not None and not self._policy.can_publish(space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot assign targets", article_id)
        self.remove_targets(article_id)
        creator_id = ctx.user_id if ctx is not None else ""
        return self._create_assignments(article_id, space_id, target_names, displayed, creator_id)

    def remove_targets(self, article_id: str) -> int:
        removed = self._properties.delete_items(NEWS_TARGET, article_id)
        if removed:
            logger.debug("Removed %d target assignments of article %s", removed, article_id)
        return removed

    def remove_targets_checked(self, article_id: str, space_id: str, ctx: CallerContext) -> int:
        """
        Remove every assignment of the article.

        Raises:
            Forbidden: caller cannot publish in the article's space
        """
        if not self._policy.can_publish(space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot remove targets", article_id)
        return self.remove_targets(article_id)

    def get_targets(self, article_id: str) -> list[str]:
        return [item.key for item in self._properties.find_items(NEWS_TARGET, object_id=article_id)]

    def get_displayed_assignments(
        self, target_name: str, offset: int = 0, limit: int | None = None
    ) -> list[TargetAssignment]:
        items = self._properties.find_items(
            NEWS_TARGET, key=target_name, properties={"displayed": "true"}
        )
        # Most recent assignments first
        items.sort(key=lambda i: i.created_at, reverse=True)
        assignments = [
            TargetAssignment.from_item(i.key, i.object_id, i.properties) for i in items
        ]
        end = None if limit is None else offset + limit
        return assignments[offset:end]

    # --- Definitions ---

    def _get_definition_item(self, name: str) -> PropertyItem | None:
        return self._properties.get_item(name, NEWS_TARGET_DEFINITION, TARGET_DEFINITIONS_OWNER)

    def _require_manager(self, ctx: CallerContext, name: str) -> None:
        if not self._policy.can_manage_targets(ctx):
            raise Forbidden(f"User {ctx.user_id} cannot manage targets", name)

    def get_target(self, name: str) -> TargetDefinition | None:
        item = self._get_definition_item(name)
        return target_definition_from_properties(item.key, item.properties) if item else None

    def list_targets(self) -> list[TargetDefinition]:
        items = self._properties.find_items(
            NEWS_TARGET_DEFINITION, object_id=TARGET_DEFINITIONS_OWNER
        )
        return [target_definition_from_properties(i.key, i.properties) for i in items]

    def list_allowed_targets(self, ctx: CallerContext) -> list[TargetDefinition]:
        """Targets the caller may assign articles to."""
        allowed = []
        for definition in self.list_targets():
            for permission in definition.permissions:
                if permission.startswith(SPACE_PERMISSION_PREFIX):
                    space_id = permission[len(SPACE_PERMISSION_PREFIX):]
                    if self._policy.can_publish(space_id, ctx):
                        allowed.append(definition)
                        break
                elif permission in ctx.memberships:
                    allowed.append(definition)
                    break
        return allowed

    def create_target(self, definition: TargetDefinition, ctx: CallerContext) -> TargetDefinition:
        """
        Raises:
            Forbidden: caller cannot manage targets
            Conflict: a target with this name exists
        """
        self._require_manager(ctx, definition.name)
        if not definition.name.strip():
            raise ValueError("Target name is required")
        if self._get_definition_item(definition.name) is not None:
            raise Conflict(f"Target {definition.name} already exists", definition.name)

        self._properties.create_item(
            PropertyItem(
                key=definition.name,
                object_type=NEWS_TARGET_DEFINITION,
                object_id=TARGET_DEFINITIONS_OWNER,
                creator_id=ctx.user_id,
                properties=target_definition_to_properties(definition),
            )
        )
        logger.info("Target %s created by %s", definition.name, ctx.user_id)
        return definition

    def update_target(
        self, original_name: str, definition: TargetDefinition, ctx: CallerContext
    ) -> TargetDefinition:
        """
        Update a target; a new name moves its assignments along.

        Raises:
            Forbidden: caller cannot manage targets
            NotFound: no target named original_name
            Conflict: nothing changed, or the new name is taken
        """
        self._require_manager(ctx, original_name)
        item = self._get_definition_item(original_name)
        if item is None:
            raise NotFound(f"Target {original_name} not found", original_name)

        current = target_definition_from_properties(item.key, item.properties)
        if current == definition:
            raise Conflict(f"Target {original_name} is unchanged", original_name)

        if definition.name == original_name:
            self._properties.update_item(
                item.model_copy(update={"properties": target_definition_to_properties(definition)})
            )
            return definition

        if self._get_definition_item(definition.name) is not None:
            raise Conflict(f"Target {definition.name} already exists", definition.name)

        self._properties.create_item(
            PropertyItem(
                key=definition.name,
                object_type=NEWS_TARGET_DEFINITION,
                object_id=TARGET_DEFINITIONS_OWNER,
                creator_id=ctx.user_id,
                properties=target_definition_to_properties(definition),
            )
        )
        for assignment in self._properties.find_items(NEWS_TARGET, key=original_name):
            self._properties.delete_item(assignment.id)
            self._properties.create_item(
                assignment.model_copy(update={"key": definition.name})
            )
        self._properties.delete_item(item.id)
        logger.info("Target %s renamed to %s", original_name, definition.name)
        return definition

    def delete_target_by_name(self, name: str, ctx: CallerContext) -> None:
        """
        Delete a target definition and every assignment to it.

        Raises:
            Forbidden: caller cannot manage targets
            NotFound: no such target
        """
        self._require_manager(ctx, name)
        item = self._get_definition_item(name)
        if item is None:
            raise NotFound(f"Target {name} not found", name)

        for assignment in self._properties.find_items(NEWS_TARGET, key=name):
            self._properties.delete_item(assignment.id)
        self._properties.delete_item(item.id)
        logger.info("Target %s deleted by %s", name, ctx.user_id)

    def request_delete_target(
        self, name: str, ctx: CallerContext, delay_seconds: float | None = None
    ) -> PendingDeletion | None:
        """Delete a target after a grace period, undoable by the same user."""
        self._require_manager(ctx, name)
        if self._get_definition_item(name) is None:
            raise NotFound(f"Target {name} not found", name)
        if self._deletion is None:
            self.delete_target_by_name(name, ctx)
            return None
        return self._deletion.request_delete(TARGETS_QUEUE, name, ctx, delay_seconds)

    def undo_delete_target(self, name: str, ctx: CallerContext) -> PendingDeletion:
        if self._deletion is None:
            raise NotFound(f"No pending deletion for {name}", name)
        return self._deletion.undo_delete(TARGETS_QUEUE, name, ctx.user_id)
