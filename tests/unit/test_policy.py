"""
Permission evaluator tests.

Covers publish, redact, schedule and view decisions against an in-memory
space directory.
"""

from __future__ import annotations

import pytest

from news_engine.adapters.memory.social import InMemorySpaceDirectory
from news_engine.domain.entities import ActivityRef, Article, CallerContext, Space
from news_engine.domain.policy import PermissionEvaluator
from news_engine.rules.models import PermissionRules

GROUP = "/platform/web-contributors"


@pytest.fixture
def spaces() -> InMemorySpaceDirectory:
    directory = InMemorySpaceDirectory()
    directory.add_space(
        Space(id="newsroom", pretty_name="newsroom"),
        members=["mary"],
        managers=["root"],
        redactors=["john"],
        publishers=["paula"],
    )
    directory.add_space(Space(id="open", pretty_name="open"), members=["mary", "sam"])
    directory.add_space(Space(id="sales", pretty_name="sales"), members=["sam"])
    directory.add_super_manager("boss")
    return directory


@pytest.fixture
def policy(spaces: InMemorySpaceDirectory) -> PermissionEvaluator:
    return PermissionEvaluator(PermissionRules(publisher_group=GROUP), spaces)


def caller(user_id: str, *memberships: str) -> CallerContext:
    return CallerContext(user_id=user_id, memberships=frozenset(memberships))


def article(**kwargs) -> Article:
    defaults = {"id": "a1", "space_id": "newsroom", "author": "john", "title": "T"}
    defaults.update(kwargs)
    return Article(**defaults)


class TestPublish:
    def test_platform_publisher_can_publish_anywhere(self, policy):
        assert policy.can_publish("sales", caller("pat", f"publisher:{GROUP}"))

    def test_any_membership_counts(self, policy):
        assert policy.can_publish("sales", caller("pat", f"*:{GROUP}"))

    def test_other_group_membership_does_not_count(self, policy):
        assert not policy.can_publish("sales", caller("pat", "publisher:/spaces/other"))

    @pytest.mark.parametrize("user", ["paula", "root", "boss"])
    def test_space_roles_can_publish(self, policy, user):
        assert policy.can_publish("newsroom", caller(user))

    @pytest.mark.parametrize("user", ["john", "mary", "olivia"])
    def test_others_cannot_publish(self, policy, user):
        assert not policy.can_publish("newsroom", caller(user))

    def test_unknown_space(self, policy):
        assert not policy.can_publish("ghost", caller("root"))


class TestRedact:
    def test_redactor_list_restricts_members(self, policy):
        assert policy.can_redact("newsroom", caller("john"))
        assert not policy.can_redact("newsroom", caller("mary"))

    def test_space_without_redactors_lets_members_write(self, policy):
        assert policy.can_redact("open", caller("mary"))

    def test_publisher_can_create_but_not_delete(self, policy):
        paula = caller("paula")
        assert policy.can_create("newsroom", paula)
        assert policy.can_edit("newsroom", paula)
        assert not policy.can_delete("newsroom", paula)

    def test_redactor_can_delete(self, policy):
        assert policy.can_delete("newsroom", caller("john"))


class TestSchedule:
    @pytest.mark.parametrize("user", ["root", "john", "paula"])
    def test_can_schedule(self, policy, user):
        assert policy.can_schedule("newsroom", caller(user))

    def test_member_cannot_schedule(self, policy):
        assert not policy.can_schedule("newsroom", caller("mary"))


class TestTargets:
    def test_manager_membership_manages_targets(self, policy):
        assert policy.can_manage_targets(caller("tina", f"manager:{GROUP}"))
        assert not policy.can_manage_targets(caller("pat", f"publisher:{GROUP}"))


class TestView:
    def test_draft_visible_to_members_only(self, policy):
        draft = article(publication_state="draft")
        assert policy.can_view(draft, caller("mary"))
        assert policy.can_view(draft, caller("boss"))
        assert not policy.can_view(draft, caller("olivia"))

    def test_draft_visible_to_shared_space_members(self, policy):
        draft = article(
            publication_state="draft",
            activities=[
                ActivityRef(space_id="newsroom", activity_id="p"),
                ActivityRef(space_id="sales", activity_id="s"),
            ],
        )
        assert policy.can_view(draft, caller("sam"))

    def test_posted_unpublished_is_visible(self, policy):
        assert policy.can_view(article(publication_state="posted"), caller("olivia"))

    def test_space_audience_hidden_from_non_members(self, policy):
        published = article(publication_state="posted", published=True, audience="space")
        assert policy.can_view(published, caller("mary"))
        assert not policy.can_view(published, caller("olivia"))

    def test_all_audience_visible_to_everyone(self, policy):
        published = article(publication_state="posted", published=True, audience="all")
        assert policy.can_view(published, caller("olivia"))

    def test_staged_requires_schedule_capability(self, policy):
        staged = article(publication_state="staged")
        assert policy.can_view(staged, caller("john"))
        assert not policy.can_view(staged, caller("mary"))

    def test_primary_activity_is_not_a_share(self):
        shared = article(
            activities=[
                ActivityRef(space_id="newsroom", activity_id="p"),
                ActivityRef(space_id="sales", activity_id="s"),
            ]
        )
        assert shared.primary_activity == ActivityRef(space_id="newsroom", activity_id="p")
        assert shared.shared_in_spaces == ["sales"]
