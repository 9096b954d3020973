"""
End-to-end article journeys on the SQLite property store.

Draft -> schedule -> scheduled posting -> publish to a target -> share ->
translate -> grace-period delete, checked through the stores and read models.
"""

from datetime import timedelta

import pytest

from news_engine.components.lifecycle import ArticleInput, ArticleUpdate, LatestDraftUpdate
from news_engine.context import ServiceContext
from news_engine.core.ports.events import NewsEvent
from news_engine.domain.entities import TargetDefinition
from news_engine.domain.errors import Forbidden, NotFound
from news_engine.domain.properties import NEWS_KEY, NEWS_PAGE, NEWS_PAGE_VERSION

from tests.conftest import add_spaces


@pytest.fixture
def sqlite_services(rules, clock, timers, tmp_path):
    ctx = ServiceContext.create(
        rules,
        db_path=str(tmp_path / "news.db"),
        migrations_dir="migrations",
        clock=clock,
        timer_factory=timers,
    )
    add_spaces(ctx)
    yield ctx
    ctx.shutdown()


def test_scheduled_article_journey(
    sqlite_services, clock, timers, redactor, publisher, member, outsider, target_manager
):
    services = sqlite_services
    lifecycle = services.lifecycle
    services.targeting.create_target(
        TargetDefinition(name="homepage", label="Home page"), target_manager
    )

    # 1. Redactor writes a draft
    draft = lifecycle.create_draft(
        ArticleInput(space_id="newsroom", title="Quarterly results", body="Numbers for @mary"),
        redactor,
    )

    # 2. Publisher schedules it for publication on the home page
    staged = lifecycle.schedule_news(
        ArticleInput(
            space_id="newsroom",
            draft_id=draft.id,
            schedule_post_date="2025-06-16T09:00",
            time_zone="Europe/Paris",
            published=True,
            audience="all",
            targets=("homepage",),
        ),
        publisher,
    )
    assert staged.publication_state == "staged"
    assert staged.schedule_post_date == "2025-06-16T07:00:00+00:00"
    assert services.documents.get_draft(draft.id) is None
    assert lifecycle.get_news_by_target_name("homepage", outsider) == []
    with pytest.raises(Forbidden):
        lifecycle.get_news_by_id(staged.id, member)

    # 3. Nothing is due yet
    assert services.job.run_due().total_processed == 0

    # 4. The job posts it once the date passes
    clock.advance(timedelta(days=1))
    report = services.job.run_due()
    assert report.posted == [staged.id]

    posted = lifecycle.get_news_by_id(staged.id, outsider)
    assert posted.publication_state == "posted"
    assert posted.published is True
    assert posted.schedule_post_date is None
    assert len(posted.activities) == 1
    assert [a.id for a in lifecycle.get_news_by_target_name("homepage", outsider)] == [staged.id]
    assert services.job.run_due().total_processed == 0

    # 5. Viewed, shared and translated
    assert lifecycle.mark_read(staged.id, "mary") is True
    assert lifecycle.mark_read(staged.id, "mary") is False
    lifecycle.share_news(staged.id, "sales", member, "share-1")
    lifecycle.add_translation_version(staged.id, "fr", "Résultats", "Chiffres", redactor)

    article = lifecycle.get_news_by_id(staged.id, outsider, lang="fr")
    assert article.title == "Résultats"
    assert article.views_count == 1
    assert article.shared_in_spaces == ["sales"]

    # 6. Deleted after the grace period
    lifecycle.request_delete(staged.id, redactor)
    timers.last.fire().result(timeout=5)

    with pytest.raises(NotFound):
        lifecycle.get_news_by_id(staged.id, redactor)
    tombstone = services.properties.get_item(NEWS_KEY, NEWS_PAGE, staged.id)
    assert tombstone.properties == {"deleted": "true"}
    assert services.properties.find_items(NEWS_PAGE_VERSION, object_id=staged.id) == []
    assert {staged.id, f"{staged.id}-fr"} <= services.search.unindexed_ids()
    assert lifecycle.get_news_by_target_name("homepage", outsider) == []

    names = services.events.names(staged.id)
    assert names.count(NewsEvent.NEWS_POSTED.value) == 1
    assert names[-1] == NewsEvent.DELETE.value


def test_editing_journey(sqlite_services, redactor, publisher, member):
    lifecycle = sqlite_services.lifecycle

    article = lifecycle.promote(
        ArticleInput(
            space_id="newsroom", title="Launch", body="Hello", publication_state="posted"
        ),
        redactor,
    )

    # Work in progress is kept apart from the published content
    lifecycle.update_article(
        LatestDraftUpdate(article_id=article.id, title="Launch (WIP)", body="Hello @sam"),
        redactor,
    )
    assert lifecycle.get_news_by_id(article.id, member).title == "Launch"

    updated = lifecycle.update_article(
        ArticleUpdate(article_id=article.id, title="Launch day", body="Hello @sam"), redactor
    )
    assert updated.title == "Launch day"
    assert sqlite_services.documents.list_drafts_of_page(article.id) == []

    # The publisher widens the audience step by step
    lifecycle.publish(article.id, publisher, audience="space")
    lifecycle.unpublish(article.id, publisher)
    republished = lifecycle.publish(article.id, publisher, audience="all")

    assert republished.published is True
    assert republished.audience == "all"
    assert len(republished.activities) == 1


def test_state_survives_a_new_context(rules, clock, timers, tmp_path, redactor):
    db_path = str(tmp_path / "news.db")
    first = ServiceContext.create(
        rules, db_path=db_path, migrations_dir="migrations", clock=clock, timer_factory=timers
    )
    add_spaces(first)
    staged = first.lifecycle.schedule_news(
        ArticleInput(
            space_id="newsroom",
            title="Later",
            body="Soon",
            schedule_post_date="2025-06-15T11:00",
        ),
        redactor,
    )
    first.shutdown()

    # A fresh context sees the staged article as due through the property store
    second = ServiceContext.create(
        rules, db_path=db_path, migrations_dir="migrations", clock=clock, timer_factory=timers
    )
    try:
        assert second.job.due_for_posting(clock.now_utc()) == [staged.id]
    finally:
        second.shutdown()
