from news_engine.core.ports.social import SpacePort
from news_engine.domain.entities import Article, CallerContext
from news_engine.rules.models import PermissionRules


class PermissionEvaluator:
    def __init__(self, rules: PermissionRules, spaces: SpacePort):
        self.rules = rules
        self.spaces = spaces

    def _has_membership(self, ctx: CallerContext, membership: str) -> bool:
        group = self.rules.publisher_group
        return (
            f"{membership}:{group}" in ctx.memberships
            or f"{self.rules.any_membership}:{group}" in ctx.memberships
        )

    def is_platform_publisher(self, ctx: CallerContext) -> bool:
        return self._has_membership(ctx, self.rules.publisher_membership)

    def can_publish(self, space_id: str, ctx: CallerContext) -> bool:
        """
        Publish capability: platform publisher group membership, space
        publisher or manager, or super manager.
        """
        if self.is_platform_publisher(ctx):
            return True
        if self.spaces.get_space(space_id) is None:
            return False
        return (
            self.spaces.is_publisher(space_id, ctx.user_id)
            or self.spaces.is_manager(space_id, ctx.user_id)
            or self.spaces.is_super_manager(ctx.user_id)
        )

    def can_redact(self, space_id: str, ctx: CallerContext) -> bool:
        if self.spaces.get_space(space_id) is None:
            return False
        return self.spaces.can_redact(space_id, ctx.user_id)

    def can_create(self, space_id: str, ctx: CallerContext) -> bool:
        return self.can_publish(space_id, ctx) or self.can_redact(space_id, ctx)

    def can_edit(self, space_id: str, ctx: CallerContext) -> bool:
        return self.can_create(space_id, ctx)

    def can_delete(self, space_id: str, ctx: CallerContext) -> bool:
        # Publish capability alone is not enough
        return self.can_redact(space_id, ctx)

    def can_schedule(self, space_id: str, ctx: CallerContext) -> bool:
        if self.spaces.get_space(space_id) is None:
            return False
        return (
            self.spaces.is_manager(space_id, ctx.user_id)
            or self.spaces.is_redactor(space_id, ctx.user_id)
            or self.can_publish(space_id, ctx)
        )

    def can_manage_targets(self, ctx: CallerContext) -> bool:
        return self._has_membership(ctx, self.rules.manager_membership)

    def is_member_or_shared_member(self, article: Article, ctx: CallerContext) -> bool:
        if self.spaces.is_member(article.space_id, ctx.user_id):
            return True
        return any(
            self.spaces.is_member(space_id, ctx.user_id) for space_id in article.shared_in_spaces
        )

    def can_view(self, article: Article, ctx: CallerContext) -> bool:
        """
        Visibility of an article for a user.

        Denied when:
        1. the article is neither posted nor published and the user is not a
           member, shared-space member or super manager
        2. it is posted and published to the "space" audience and the user is
           not a member or shared-space member
        3. it is staged and the user cannot schedule in its space
        """
        if article.publication_state != "posted" and not article.published:
            if not (
                self.spaces.is_super_manager(ctx.user_id)
                or self.is_member_or_shared_member(article, ctx)
            ):
                return False

        if (
            article.published
            and article.publication_state == "posted"
            and article.audience == "space"
            and not self.is_member_or_shared_member(article, ctx)
        ):
            return False

        if article.publication_state == "staged" and not self.can_schedule(
            article.space_id, ctx
        ):
            return False

        return True
