"""
Lifecycle coordinator - drives articles through draft, schedule, post,
publish, translation, share and deletion.

The newsPage property item anchors every operation: it is written first,
and the read models follow it best-effort.

Side-effect order for every mutating operation:
content commit -> targets -> publish state -> permission resync ->
notifications -> reindex -> domain event

Invariants:
- views_count always equals the number of distinct viewers
- The primary activity is posted at most once per article
- Share only ever appends to the activities list
- A store failure aborts the operation before any broadcast
- Notification, reindex and permission-resync failures never propagate
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any

from news_engine.components.deletion.models import ARTICLES_QUEUE, PendingDeletion
from news_engine.components.lifecycle.models import (
    ArticleChange,
    ArticleInput,
    ArticleUpdate,
    DraftUpdate,
    LatestDraftUpdate,
    SearchHit,
)
from news_engine.components.lifecycle.ports import DeletionPort, IndexingPort, TargetingPort
from news_engine.components.lifecycle.reader import ArticleReader
from news_engine.core.ports.clock import ClockPort
from news_engine.core.ports.documents import DocumentStorePort
from news_engine.core.ports.events import EventBusPort, NewsEvent
from news_engine.core.ports.notifications import (
    NewsNotification,
    NotificationKind,
    NotificationPort,
)
from news_engine.core.ports.properties import PropertyStorePort
from news_engine.core.ports.social import ActivityFeedPort, SpacePort
from news_engine.domain.entities import (
    Activity,
    ActivityRef,
    Article,
    Audience,
    CallerContext,
    Draft,
    DraftPage,
    Note,
    PageVersion,
    PropertyItem,
    Space,
)
from news_engine.domain.errors import Forbidden, InvalidTransition, NotFound, storage_call
from news_engine.domain.mentions import new_mentions
from news_engine.domain.policy import PermissionEvaluator
from news_engine.domain.properties import (
    NEWS_DRAFT_PAGE,
    NEWS_KEY,
    NEWS_LATEST_DRAFT_PAGE,
    NEWS_PAGE,
    NEWS_PAGE_VERSION,
    DraftMarker,
    PageState,
    VersionMarker,
)
from news_engine.domain.schedule import normalize_schedule_date
from news_engine.domain.state import select_promote_path, transition
from news_engine.rules.models import LifecycleRules

logger = logging.getLogger(__name__)


def _widens(previous: PageState, audience: Audience | None) -> bool:
    return previous.audience == "space" and audience == "all"


class LifecycleCoordinator:
    """Orchestrates article state changes across the stores and read models."""

    def __init__(
        self,
        documents: DocumentStorePort,
        properties: PropertyStorePort,
        spaces: SpacePort,
        activities: ActivityFeedPort,
        policy: PermissionEvaluator,
        targeting: TargetingPort,
        indexer: IndexingPort,
        events: EventBusPort,
        notifier: NotificationPort,
        clock: ClockPort,
        rules: LifecycleRules,
        deletion: DeletionPort | None = None,
    ) -> None:
        self._documents = documents
        self._properties = properties
        self._spaces = spaces
        self._activities = activities
        self._policy = policy
        self._targeting = targeting
        self._indexer = indexer
        self._events = events
        self._notifier = notifier
        self._clock = clock
        self._rules = rules
        self._deletion = deletion
        self._reader = ArticleReader(documents, properties, rules)
        # Serializes latest-draft create-or-update per coordinator
        self._draft_lock = threading.Lock()

    @property
    def reader(self) -> ArticleReader:
        return self._reader

    # --- Helpers ---

    def _now_iso(self) -> str:
        return self._clock.now_utc().replace(microsecond=0).isoformat()

    def _require_space(self, space_id: str) -> Space:
        space = self._spaces.get_space(space_id)
        if space is None:
            raise NotFound(f"Space {space_id} not found", space_id)
        return space

    def _ensure_root(self, space_id: str) -> Note:
        with storage_call("create root page", space_id):
            root = self._documents.get_root(space_id)
            if root is None:
                root = self._documents.create_root(space_id, self._rules.root_page_name)
                logger.info("Created root page %s for space %s", root.id, space_id)
            return root

    def _save_state(self, item: PropertyItem, state: PageState) -> PropertyItem:
        with storage_call("update article state", item.object_id):
            return self._properties.update_item(
                item.model_copy(update={"properties": state.to_properties()})
            )

    def _broadcast(self, event: NewsEvent, article_id: str, **payload: Any) -> None:
        self._events.broadcast(event.value, article_id, payload)

    def _notify(self, notification: NewsNotification) -> None:
        try:
            self._notifier.send(notification)
        except Exception:
            logger.warning(
                "Sending %s notification for article %s failed",
                notification.kind.value,
                notification.article_id,
                exc_info=True,
            )

    def _resync_permissions(self, article_id: str, space_id: str, state: PageState) -> None:
        """
        Ask for read permissions to be recomputed across the primary space and
        every shared space.

        The document store side listens for ``PERMISSIONS_UPDATED`` and does the
        recompute; listener failures are contained by the event bus.
        """
        space_ids = list(dict.fromkeys([space_id, *(r.space_id for r in state.activities)]))
        self._broadcast(
            NewsEvent.PERMISSIONS_UPDATED,
            article_id,
            space_ids=space_ids,
            published=state.published,
            audience=state.audience,
        )

    def _delete_draft_page(self, draft: DraftPage) -> None:
        object_type = NEWS_LATEST_DRAFT_PAGE if draft.target_page_id else NEWS_DRAFT_PAGE
        self._documents.delete_draft(draft.id)
        self._properties.delete_items(object_type, draft.id)

    def _write_version_marker(
        self,
        article_id: str,
        space_id: str,
        lang: str | None,
        summary: str,
        illustration_id: str | None,
        ctx: CallerContext,
    ) -> None:
        marker = VersionMarker(lang=lang, summary=summary, illustration_id=illustration_id)
        existing = self._properties.get_item(NEWS_KEY, NEWS_PAGE_VERSION, article_id, lang or "")
        if existing is None:
            self._properties.create_item(
                PropertyItem(
                    key=NEWS_KEY,
                    object_type=NEWS_PAGE_VERSION,
                    object_id=article_id,
                    parent_id=lang or "",
                    space_id=space_id,
                    creator_id=ctx.user_id,
                    properties=marker.to_properties(),
                )
            )
        else:
            # update_item refreshes the marker timestamp
            self._properties.update_item(
                existing.model_copy(update={"properties": marker.to_properties()})
            )

    def _with_draft_fields(self, data: ArticleInput) -> ArticleInput:
        """Fill fields the caller left unset from the draft being promoted."""
        if not data.draft_id:
            return data
        with storage_call("read draft", data.draft_id):
            draft = self._documents.get_draft(data.draft_id)
        if draft is None:
            raise NotFound(f"Draft {data.draft_id} not found", data.draft_id)
        marker = self._reader.draft_marker(draft)
        return replace(
            data,
            title=data.title if data.title is not None else draft.title,
            body=data.body if data.body is not None else draft.content,
            summary=data.summary if data.summary is not None else marker.summary,
            audience=data.audience or marker.audience,
            published=data.published or marker.published,
            schedule_post_date=data.schedule_post_date or marker.schedule_post_date,
            targets=data.targets if data.targets is not None else tuple(marker.targets),
            illustration_id=data.illustration_id or marker.illustration_id,
        )

    def _create_article_document(
        self, data: ArticleInput, ctx: CallerContext, state: PageState
    ) -> PropertyItem:
        """Write the document, its canonical version, version marker and page item."""
        root = self._ensure_root(data.space_id)
        title = data.title or ""
        body = data.body or ""
        with storage_call("create article"):
            note = self._documents.create_note(
                Note(
                    space_id=data.space_id,
                    parent_id=root.id,
                    name=title,
                    title=title,
                    content=body,
                    author=ctx.user_id,
                )
            )
            self._documents.create_version(
                PageVersion(note_id=note.id, title=title, content=body, author=ctx.user_id)
            )
            self._write_version_marker(
                note.id, data.space_id, None, state.summary, state.illustration_id, ctx
            )
            item = self._properties.create_item(
                PropertyItem(
                    key=NEWS_KEY,
                    object_type=NEWS_PAGE,
                    object_id=note.id,
                    space_id=data.space_id,
                    creator_id=ctx.user_id,
                    properties=state.to_properties(),
                )
            )
            if data.draft_id:
                draft = self._documents.get_draft(data.draft_id)
                if draft is not None:
                    self._delete_draft_page(draft)
        logger.info("Article %s created in space %s by %s", note.id, data.space_id, ctx.user_id)
        return item

    def _commit_content(
        self,
        article_id: str,
        space_id: str,
        title: str | None,
        body: str | None,
        state: PageState,
        ctx: CallerContext,
    ) -> None:
        """Commit a new canonical version and drop the caller's now stale draft."""
        with storage_call("commit article content", article_id):
            note = self._documents.get_note(article_id)
            if note is None:
                raise NotFound(f"Article {article_id} has no document", article_id)
            note = self._documents.update_note(
                note.model_copy(
                    update={
                        "title": title if title is not None else note.title,
                        "content": body if body is not None else note.content,
                    }
                )
            )
            self._documents.create_version(
                PageVersion(
                    note_id=article_id, title=note.title, content=note.content, author=ctx.user_id
                )
            )
            self._write_version_marker(
                article_id, space_id, None, state.summary, state.illustration_id, ctx
            )
            stale = self._documents.get_latest_draft(ctx.user_id, article_id, None)
            if stale is not None:
                self._delete_draft_page(stale)

    def _post_primary_activity(
        self, item: PropertyItem, state: PageState, title: str, ctx: CallerContext
    ) -> tuple[PropertyItem, PageState, Activity | None]:
        if state.activities:
            return item, state, None
        with storage_call("post activity", item.object_id):
            activity = self._activities.create_activity(
                Activity(
                    space_id=item.space_id,
                    poster_id=ctx.user_id,
                    type=self._rules.activity_type,
                    title=title,
                    template_params={"newsId": item.object_id},
                )
            )
        state = state.model_copy(
            update={
                "activities": [ActivityRef(space_id=item.space_id, activity_id=activity.id)],
                "activity_posted": True,
            }
        )
        return self._save_state(item, state), state, activity

    def _publish(
        self,
        item: PropertyItem,
        state: PageState,
        ctx: CallerContext,
        audience: Audience | None,
        targets: list[str] | None,
        previous: PageState | None,
        system: bool = False,
    ) -> tuple[PropertyItem, PageState]:
        article_id = item.object_id
        names = targets if targets is not None else self._targeting.get_targets(article_id)
        with storage_call("assign targets", article_id):
            self._targeting.replace_targets(
                article_id,
                item.space_id,
                names,
                state.publication_state != "staged",
                None if system else ctx,
            )

        new_audience = audience or state.audience or self._rules.default_audience
        state = state.model_copy(
            update={"published": True, "audience": new_audience, "publish_date": self._now_iso()}
        )
        item = self._save_state(item, state)
        self._resync_permissions(article_id, item.space_id, state)

        widened = previous is not None and previous.published and _widens(previous, new_audience)
        self._notify_publish(item, state, ctx, widened)
        self._indexer.index_article(article_id)
        self._broadcast(
            NewsEvent.PUBLISH, article_id, user_id=ctx.user_id, space_id=item.space_id
        )
        return item, state

    def _unpublish(
        self, item: PropertyItem, state: PageState
    ) -> tuple[PropertyItem, PageState]:
        state = state.model_copy(update={"published": False, "audience": None, "publish_date": None})
        item = self._save_state(item, state)
        with storage_call("remove targets", item.object_id):
            self._targeting.remove_targets(item.object_id)
        self._resync_permissions(item.object_id, item.space_id, state)
        return item, state

    def _notify_publish(
        self, item: PropertyItem, state: PageState, ctx: CallerContext, widened: bool
    ) -> None:
        # Members already told under the "space" audience are not told twice
        excluded: tuple[str, ...] = ()
        if widened:
            with storage_call("list space members", item.space_id):
                excluded = tuple(self._spaces.members_of(item.space_id))
        primary = state.activities[0] if state.activities else None
        self._notify(
            NewsNotification(
                kind=NotificationKind.PUBLISH,
                article_id=item.object_id,
                title=self._current_title(item.object_id),
                author=item.creator_id,
                current_user=ctx.user_id,
                space_id=item.space_id,
                activity_id=primary.activity_id if primary else None,
                audience=state.audience,
                exclude_space_members=widened,
                excluded_users=excluded,
            )
        )

    def _change_audience(
        self,
        item: PropertyItem,
        state: PageState,
        ctx: CallerContext,
        audience: Audience,
        previous: PageState,
    ) -> tuple[PropertyItem, PageState]:
        """Move a published article to another audience; only space -> all notifies."""
        state = state.model_copy(update={"audience": audience})
        item = self._save_state(item, state)
        self._resync_permissions(item.object_id, item.space_id, state)
        if _widens(previous, audience):
            self._notify_publish(item, state, ctx, widened=True)
        self._indexer.index_article(item.object_id)
        return item, state

    def _sync_primary_activity(self, article_id: str, state: PageState, post: bool) -> None:
        primary = state.activities[0] if state.activities else None
        if primary is None:
            return
        with storage_call("update activity", article_id):
            activity = self._activities.get_activity(primary.activity_id)
            if activity is None:
                logger.warning(
                    "Primary activity %s of article %s is gone", primary.activity_id, article_id
                )
                return
            updates: dict[str, Any] = {
                "hidden": not state.activity_posted,
                "template_params": {**activity.template_params, "newsId": article_id},
            }
            if post:
                updates["updated_at"] = self._clock.now_utc()
            self._activities.update_activity(activity.model_copy(update=updates))

    def _current_title(self, article_id: str) -> str:
        note = self._documents.get_note(article_id)
        return note.title if note else ""

    def _decorate(self, article: Article, ctx: CallerContext) -> Article:
        return article.model_copy(
            update={
                "targets": self._targeting.get_targets(article.id),
                "can_edit": self._policy.can_edit(article.space_id, ctx),
                "can_delete": self._policy.can_delete(article.space_id, ctx),
                "can_publish": self._policy.can_publish(article.space_id, ctx),
            }
        )

    # --- Drafts ---

    def create_draft(self, data: ArticleInput, ctx: CallerContext) -> Draft:
        """
        Create a new-page draft.

        Raises:
            NotFound: unknown space
            Forbidden: caller cannot create in the space
            StorageUnavailable: root page or draft could not be written
        """
        space = self._require_space(data.space_id)
        if not self._policy.can_create(space.id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot create articles in {space.id}", space.id)

        schedule = (
            normalize_schedule_date(data.schedule_post_date, data.time_zone)
            if data.schedule_post_date
            else None
        )
        root = self._ensure_root(space.id)
        marker = DraftMarker(
            summary=data.summary or "",
            illustration_id=data.illustration_id,
            audience=data.audience,
            schedule_post_date=schedule,
            published=data.published,
            targets=list(data.targets or ()),
        )
        with storage_call("create draft"):
            draft = self._documents.create_draft(
                DraftPage(
                    space_id=space.id,
                    author=ctx.user_id,
                    title=data.title or "",
                    content=data.body or "",
                    lang=data.lang,
                    parent_page_id=root.id,
                )
            )
            self._properties.create_item(
                PropertyItem(
                    key=NEWS_KEY,
                    object_type=NEWS_DRAFT_PAGE,
                    object_id=draft.id,
                    space_id=space.id,
                    creator_id=ctx.user_id,
                    properties=marker.to_properties(),
                )
            )
        logger.info("Draft %s created in space %s by %s", draft.id, space.id, ctx.user_id)
        return self._reader.to_draft(draft, marker)

    def create_news(self, data: ArticleInput, ctx: CallerContext) -> Article | Draft:
        """Entry point for new content: post, schedule or save as draft."""
        if data.publication_state == "posted":
            return self.promote(data, ctx)
        if data.schedule_post_date:
            return self.schedule_news(data, ctx)
        return self.create_draft(data, ctx)

    def delete_draft(self, draft_id: str, ctx: CallerContext) -> None:
        with storage_call("read draft", draft_id):
            draft = self._documents.get_draft(draft_id)
        if draft is None:
            raise NotFound(f"Draft {draft_id} not found", draft_id)
        if draft.author != ctx.user_id and not self._policy.can_delete(draft.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot delete draft {draft_id}", draft_id)
        with storage_call("delete draft", draft_id):
            self._delete_draft_page(draft)

    def list_drafts(self, ctx: CallerContext, space_ids: list[str]) -> list[Draft]:
        allowed = [s for s in space_ids if self._policy.can_create(s, ctx)]
        if not allowed:
            return []
        with storage_call("list drafts"):
            drafts = self._documents.list_new_page_drafts(ctx.user_id, allowed)
        return [self._reader.to_draft(d) for d in drafts]

    # --- Posting ---

    def promote(self, data: ArticleInput, ctx: CallerContext) -> Article:
        """
        Post an article: create it from a draft, flip a staged article to
        posted, or commit new content of a posted one.

        Raises:
            NotFound: unknown space, draft or article
            Forbidden: caller cannot create in the space
        """
        space = self._require_space(data.space_id)
        if not self._policy.can_create(space.id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot post in {space.id}", space.id)
        article = self._promote(data, ctx, can_publish=self._policy.can_publish(space.id, ctx))
        return self._decorate(article, ctx)

    def _promote(
        self,
        data: ArticleInput,
        ctx: CallerContext,
        can_publish: bool,
        system: bool = False,
    ) -> Article:
        stored_item = self._reader.page_item(data.article_id) if data.article_id else None
        stored = PageState.from_properties(stored_item.properties) if stored_item else None
        if stored is not None and stored.deleted:
            raise NotFound(f"Article {data.article_id} was deleted", data.article_id)

        path = select_promote_path(stored)
        publish_requested = data.published and can_publish

        if path == "create":
            data = self._with_draft_fields(data)
            publish_requested = data.published and can_publish
            seed = PageState(
                publication_state="posted",
                summary=data.summary or "",
                illustration_id=data.illustration_id,
                publish_date=self._now_iso(),
            )
            item = self._create_article_document(data, ctx, seed)
            state = seed
        elif path == "flip":
            assert stored_item is not None and stored is not None
            state = transition(stored, "posted", self._clock.now_utc())
            item = self._save_state(stored_item, state)
            publish_requested = (publish_requested or stored.published)
            logger.info("Article %s moved from %s to posted", item.object_id, stored.publication_state)
        else:
            assert stored_item is not None and stored is not None
            item, state = stored_item, stored
            if data.title is not None or data.body is not None:
                self._commit_content(
                    item.object_id, item.space_id, data.title, data.body, state, ctx
                )
            publish_requested = publish_requested and not stored.published

        article_id = item.object_id
        title = self._current_title(article_id)
        item, state, activity = self._post_primary_activity(item, state, title, ctx)
        if activity is not None:
            self._notify(
                NewsNotification(
                    kind=NotificationKind.POST,
                    article_id=article_id,
                    title=title,
                    author=item.creator_id,
                    current_user=ctx.user_id,
                    space_id=item.space_id,
                    activity_id=activity.id,
                )
            )

        if publish_requested:
            targets = list(data.targets) if data.targets is not None else None
            item, state = self._publish(
                item, state, ctx, data.audience, targets, previous=stored, system=system
            )
        else:
            self._indexer.index_article(article_id)

        if activity is not None:
            self._broadcast(
                NewsEvent.ARTICLE_POSTED, article_id, user_id=ctx.user_id, space_id=item.space_id
            )
            self._broadcast(
                NewsEvent.NEWS_POSTED, article_id, user_id=ctx.user_id, space_id=item.space_id
            )
        return self._reader.build_article(article_id)

    # --- Scheduling ---

    def schedule_news(self, data: ArticleInput, ctx: CallerContext) -> Article:
        """
        Stage an article for posting at a future date.

        No activity is posted and nothing is published; when the caller can
        publish, the requested ``published`` flag and targets are stored so
        the scheduled posting publishes the article.

        Raises:
            NotFound: unknown space, draft or article
            Forbidden: caller cannot schedule in the space
            ValueError: missing or malformed schedule date
            InvalidTransition: the article is already posted
        """
        space = self._require_space(data.space_id)
        if not self._policy.can_schedule(space.id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot schedule in {space.id}", space.id)
        data = self._with_draft_fields(data)
        if not data.schedule_post_date:
            raise ValueError("Schedule date is required")
        schedule = normalize_schedule_date(data.schedule_post_date, data.time_zone)
        can_publish = self._policy.can_publish(space.id, ctx)

        stored_item = self._reader.page_item(data.article_id) if data.article_id else None
        if stored_item is not None:
            item, previous = self._reader.require_page(stored_item.object_id)
            state = transition(previous, "staged", self._clock.now_utc(), schedule)
            if data.title is not None or data.body is not None:
                self._commit_content(item.object_id, item.space_id, data.title, data.body, state, ctx)
        else:
            state = PageState(
                publication_state="staged",
                schedule_post_date=schedule,
                summary=data.summary or "",
                illustration_id=data.illustration_id,
            )
            item = self._create_article_document(data, ctx, state)

        if can_publish and data.published:
            with storage_call("assign targets", item.object_id):
                self._targeting.replace_targets(
                    item.object_id, item.space_id, list(data.targets or ()), False, ctx
                )
            state = state.model_copy(
                update={
                    "published": True,
                    "audience": data.audience or state.audience or self._rules.default_audience,
                }
            )
        elif not can_publish:
            state = state.model_copy(update={"published": False})
        item = self._save_state(item, state)

        self._broadcast(
            NewsEvent.SCHEDULE,
            item.object_id,
            user_id=ctx.user_id,
            space_id=item.space_id,
            schedule_post_date=schedule,
        )
        return self._decorate(self._reader.build_article(item.object_id), ctx)

    def unschedule_news(self, article_id: str, ctx: CallerContext) -> Article:
        """Return a staged article to draft state."""
        item, state = self._reader.require_page(article_id)
        if not self._policy.can_schedule(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot unschedule {article_id}", article_id)
        if state.publication_state != "staged":
            raise InvalidTransition(state.publication_state, "draft", article_id)

        state = transition(state, "draft", self._clock.now_utc())
        state = state.model_copy(update={"published": False, "audience": None})
        item = self._save_state(item, state)
        with storage_call("remove targets", article_id):
            self._targeting.remove_targets(article_id)
        self._broadcast(NewsEvent.UNSCHEDULE, article_id, user_id=ctx.user_id)
        return self._decorate(self._reader.build_article(article_id), ctx)

    def schedule_unpublish(
        self, article_id: str, at: str, ctx: CallerContext, time_zone: str | None = None
    ) -> Article:
        """Record a date after which the scheduled job unpublishes the article."""
        item, state = self._reader.require_page(article_id)
        if not self._policy.can_publish(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot unpublish {article_id}", article_id)
        when = normalize_schedule_date(at, time_zone)
        self._save_state(item, state.model_copy(update={"schedule_unpublish_date": when}))
        return self._decorate(self._reader.build_article(article_id), ctx)

    def post_scheduled_article(self, article_id: str) -> Article:
        """Post a due staged article on behalf of its author."""
        item, _ = self._reader.require_page(article_id)
        author = CallerContext(user_id=item.creator_id)
        data = ArticleInput(
            space_id=item.space_id, article_id=article_id, publication_state="posted"
        )
        return self._promote(data, author, can_publish=True, system=True)

    def unpublish_scheduled_article(self, article_id: str) -> Article:
        """Unpublish an article whose unpublish date has passed."""
        item, state = self._reader.require_page(article_id)
        state = state.model_copy(update={"schedule_unpublish_date": None})
        if state.published:
            item, state = self._unpublish(item, state)
        else:
            item = self._save_state(item, state)
        self._indexer.index_article(article_id)
        self._broadcast(NewsEvent.UPDATE, article_id, user_id=item.creator_id)
        return self._reader.build_article(article_id)

    # --- Publishing ---

    def publish(
        self,
        article_id: str,
        ctx: CallerContext,
        audience: Audience | None = None,
        targets: list[str] | None = None,
    ) -> Article:
        """
        Raises:
            NotFound: unknown or deleted article
            Forbidden: caller cannot publish in the article's space
        """
        item, state = self._reader.require_page(article_id)
        if not self._policy.can_publish(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot publish {article_id}", article_id)
        self._publish(item, state, ctx, audience, targets, previous=state)
        return self._decorate(self._reader.build_article(article_id), ctx)

    def unpublish(self, article_id: str, ctx: CallerContext) -> Article:
        """
        Raises:
            NotFound: unknown or deleted article
            Forbidden: caller cannot publish in the article's space
        """
        item, state = self._reader.require_page(article_id)
        if not self._policy.can_publish(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot unpublish {article_id}", article_id)
        self._unpublish(item, state)
        self._indexer.index_article(article_id)
        return self._decorate(self._reader.build_article(article_id), ctx)

    # --- Updates ---

    def update_article(self, change: ArticleChange, ctx: CallerContext) -> Article | Draft:
        """Main dispatcher - routes to the handler of the update variant."""
        if isinstance(change, DraftUpdate):
            return self._update_draft(change, ctx)
        elif isinstance(change, LatestDraftUpdate):
            return self._save_latest_draft(change, ctx)
        elif isinstance(change, ArticleUpdate):
            return self._update_article(change, ctx)
        else:
            raise TypeError(f"Unknown update type: {type(change)}")

    def _update_draft(self, change: DraftUpdate, ctx: CallerContext) -> Draft:
        with storage_call("read draft", change.draft_id):
            draft = self._documents.get_draft(change.draft_id)
        if draft is None or draft.target_page_id is not None:
            raise NotFound(f"Draft {change.draft_id} not found", change.draft_id)
        if not self._policy.can_edit(draft.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot edit draft {draft.id}", draft.id)

        marker = self._reader.draft_marker(draft)
        updates: dict[str, Any] = {}
        if change.summary is not None:
            updates["summary"] = change.summary
        if change.audience is not None:
            updates["audience"] = change.audience
        if change.published is not None:
            updates["published"] = change.published
        if change.schedule_post_date is not None:
            updates["schedule_post_date"] = normalize_schedule_date(
                change.schedule_post_date, change.time_zone
            )
        if change.targets is not None:
            updates["targets"] = list(change.targets)
        if change.illustration_id is not None:
            updates["illustration_id"] = change.illustration_id
        marker = marker.model_copy(update=updates)

        with storage_call("update draft", draft.id):
            draft = self._documents.update_draft(
                draft.model_copy(
                    update={
                        "title": change.title if change.title is not None else draft.title,
                        "content": change.body if change.body is not None else draft.content,
                    }
                )
            )
            item = self._properties.get_item(NEWS_KEY, NEWS_DRAFT_PAGE, draft.id)
            if item is None:
                self._properties.create_item(
                    PropertyItem(
                        key=NEWS_KEY,
                        object_type=NEWS_DRAFT_PAGE,
                        object_id=draft.id,
                        space_id=draft.space_id,
                        creator_id=ctx.user_id,
                        properties=marker.to_properties(),
                    )
                )
            else:
                self._properties.update_item(
                    item.model_copy(update={"properties": marker.to_properties()})
                )
        return self._reader.to_draft(draft, marker)

    def _save_latest_draft(self, change: LatestDraftUpdate, ctx: CallerContext) -> Draft:
        item, state = self._reader.require_page(change.article_id)
        if not self._policy.can_edit(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot edit {change.article_id}", change.article_id)

        marker = DraftMarker(
            summary=change.summary if change.summary is not None else state.summary,
            illustration_id=state.illustration_id,
            audience=state.audience,
            publication_state=state.publication_state,
            published=state.published,
        )
        with self._draft_lock, storage_call("save draft", change.article_id):
            existing = self._documents.get_latest_draft(ctx.user_id, change.article_id, change.lang)
            if existing is not None:
                draft = self._documents.update_draft(
                    existing.model_copy(update={"title": change.title, "content": change.body})
                )
                marker_item = self._properties.get_item(
                    NEWS_KEY, NEWS_LATEST_DRAFT_PAGE, draft.id, change.article_id
                )
                if marker_item is not None:
                    self._properties.update_item(
                        marker_item.model_copy(update={"properties": marker.to_properties()})
                    )
            else:
                draft = self._documents.create_draft(
                    DraftPage(
                        space_id=item.space_id,
                        author=ctx.user_id,
                        title=change.title,
                        content=change.body,
                        lang=change.lang,
                        parent_page_id=change.article_id,
                        target_page_id=change.article_id,
                    )
                )
                self._properties.create_item(
                    PropertyItem(
                        key=NEWS_KEY,
                        object_type=NEWS_LATEST_DRAFT_PAGE,
                        object_id=draft.id,
                        parent_id=change.article_id,
                        space_id=item.space_id,
                        creator_id=ctx.user_id,
                        properties=marker.to_properties(),
                    )
                )
        return self._reader.to_draft(draft, marker)

    def _update_article(self, change: ArticleUpdate, ctx: CallerContext) -> Article:
        item, previous = self._reader.require_page(change.article_id)
        article_id = item.object_id
        space_id = item.space_id
        if not self._policy.can_edit(space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot edit {article_id}", article_id)

        if change.update_kind == "content_and_title" and change.lang:
            return self.add_translation_version(
                article_id,
                change.lang,
                change.title or "",
                change.body or "",
                ctx,
                summary=change.summary,
            )

        if self._policy.can_publish(space_id, ctx):
            audience = change.audience
            targets = list(change.targets) if change.targets is not None else None
            publish_requested = (
                change.published if change.published is not None else previous.published
            )
        else:
            # Publishing fields stay as stored for callers who cannot publish
            if change.published is not None or change.audience or change.targets is not None:
                logger.debug("Ignoring publish fields from %s on %s", ctx.user_id, article_id)
            audience, targets, publish_requested = None, None, previous.published
        audience_changed = audience is not None and audience != previous.audience
        if change.publication_state == "posted" and previous.publication_state != "posted":
            # Posting goes through promote so the activity is created
            raise InvalidTransition(previous.publication_state, "posted", article_id)

        previous_body = ""
        with storage_call("read article", article_id):
            note = self._documents.get_note(article_id)
        if note is not None:
            previous_body = note.content

        # 1. Metadata commit
        updates: dict[str, Any] = {}
        if change.summary is not None:
            updates["summary"] = change.summary
        if change.illustration_id is not None:
            updates["illustration_id"] = change.illustration_id
        if change.activity_posted is not None:
            updates["activity_posted"] = change.activity_posted
        state = previous.model_copy(update=updates)
        new_state = change.publication_state
        if new_state is None and change.update_kind == "schedule" and change.schedule_post_date:
            new_state = "staged"
        if new_state is not None:
            schedule = (
                normalize_schedule_date(change.schedule_post_date, change.time_zone)
                if change.schedule_post_date
                else None
            )
            state = transition(state, new_state, self._clock.now_utc(), schedule)
        item = self._save_state(item, state)

        if change.update_kind == "content_and_title":
            self._commit_content(article_id, space_id, change.title, change.body, state, ctx)

        # 2. Targets, then 3. publish state and audience
        targets_changed = targets is not None and set(targets) != set(
            self._targeting.get_targets(article_id)
        )
        if publish_requested and state.publication_state == "staged":
            # Applied when the scheduled posting runs
            if targets_changed:
                with storage_call("assign targets", article_id):
                    self._targeting.replace_targets(article_id, space_id, targets, False, ctx)
            state = state.model_copy(
                update={
                    "published": True,
                    "audience": audience or state.audience or self._rules.default_audience,
                }
            )
            item = self._save_state(item, state)
        elif publish_requested and not previous.published:
            item, state = self._publish(item, state, ctx, audience, targets, previous=previous)
        elif previous.published and not publish_requested:
            item, state = self._unpublish(item, state)
        elif publish_requested:
            if targets_changed:
                with storage_call("assign targets", article_id):
                    self._targeting.replace_targets(article_id, space_id, targets, True, ctx)
            if audience_changed:
                item, state = self._change_audience(item, state, ctx, audience, previous)

        # 4. Mentions, 5. reindex
        if state.publication_state == "posted":
            if change.body is not None:
                mentioned = new_mentions(previous_body, change.body)
                if mentioned:
                    primary = state.activities[0] if state.activities else None
                    self._notify(
                        NewsNotification(
                            kind=NotificationKind.MENTION,
                            article_id=article_id,
                            title=self._current_title(article_id),
                            author=item.creator_id,
                            current_user=ctx.user_id,
                            space_id=space_id,
                            activity_id=primary.activity_id if primary else None,
                            mentioned_users=tuple(sorted(mentioned)),
                        )
                    )
            self._indexer.index_article(article_id)

        # 6. Primary activity, then the domain event
        if state.publication_state != "draft":
            if change.post is not None or change.activity_posted is not None:
                self._sync_primary_activity(article_id, state, post=bool(change.post))
            self._broadcast(
                NewsEvent.UPDATE,
                article_id,
                user_id=ctx.user_id,
                update_kind=change.update_kind,
            )
        return self._decorate(self._reader.build_article(article_id), ctx)

    # --- Translations ---

    def add_translation_version(
        self,
        article_id: str,
        lang: str,
        title: str,
        body: str,
        ctx: CallerContext,
        summary: str | None = None,
    ) -> Article:
        """
        Add or replace the version of an article in a language.

        Raises:
            NotFound: unknown or deleted article
            Forbidden: caller cannot edit the article
        """
        item, state = self._reader.require_page(article_id)
        if not self._policy.can_edit(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot translate {article_id}", article_id)

        with storage_call("add translation", article_id):
            self._documents.create_version(
                PageVersion(
                    note_id=article_id, lang=lang, title=title, content=body, author=ctx.user_id
                )
            )
            self._write_version_marker(
                article_id,
                item.space_id,
                lang,
                summary if summary is not None else "",
                state.illustration_id,
                ctx,
            )
            draft = self._documents.get_latest_draft(ctx.user_id, article_id, lang)
            if draft is not None:
                self._delete_draft_page(draft)

        self._indexer.index_translation(article_id, lang)
        self._broadcast(NewsEvent.TRANSLATION_ADDED, article_id, user_id=ctx.user_id, lang=lang)
        return self._decorate(
            self._reader.build_article(article_id, lang, fallback_allowed=False), ctx
        )

    def remove_translation(self, article_id: str, lang: str, ctx: CallerContext) -> None:
        item, _ = self._reader.require_page(article_id)
        if not self._policy.can_edit(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot edit {article_id}", article_id)

        with storage_call("remove translation", article_id):
            removed = self._documents.delete_versions(article_id, lang)
            marker = self._properties.get_item(NEWS_KEY, NEWS_PAGE_VERSION, article_id, lang)
            if marker is not None:
                self._properties.delete_item(marker.id)
        if not removed:
            raise NotFound(f"Article {article_id} has no {lang} version", article_id)

        self._indexer.unindex_translation(article_id, lang)
        self._broadcast(NewsEvent.TRANSLATION_REMOVED, article_id, user_id=ctx.user_id, lang=lang)

    # --- Views and shares ---

    def mark_read(self, article_id: str, user_id: str) -> bool:
        """
        Record that a user viewed an article. Returns False when already recorded.

        Concurrent views of the same article are last-write-wins on the page item.
        """
        item, state = self._reader.require_page(article_id)
        if user_id in state.viewers:
            return False
        state = state.model_copy(update={"viewers": [*state.viewers, user_id]})
        self._save_state(item, state)
        self._broadcast(NewsEvent.VIEW, article_id, user_id=user_id, views_count=state.views_count)
        return True

    def share_news(
        self,
        article_id: str,
        target_space_id: str,
        ctx: CallerContext,
        new_activity_id: str,
    ) -> Article:
        """
        Record a share of the article into another space.

        Raises:
            NotFound: unknown or deleted article
            Forbidden: caller cannot view the article
        """
        article = self._reader.build_article(article_id)
        if not self._policy.can_view(article, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot share {article_id}", article_id)

        item, state = self._reader.require_page(article_id)
        ref = ActivityRef(space_id=target_space_id, activity_id=new_activity_id)
        if ref not in state.activities:
            state = state.model_copy(update={"activities": [*state.activities, ref]})
            item = self._save_state(item, state)

        self._resync_permissions(article_id, item.space_id, state)
        self._broadcast(
            NewsEvent.SHARE,
            article_id,
            user_id=ctx.user_id,
            space_id=target_space_id,
            activity_id=new_activity_id,
        )
        return self._decorate(self._reader.build_article(article_id), ctx)

    # --- Deletion ---

    def delete_news(self, article_id: str, ctx: CallerContext) -> None:
        """
        Delete an article with its drafts, activities and read-model entries.

        The page item stays as a deleted=true tombstone.

        Raises:
            NotFound: unknown or already deleted article
            Forbidden: caller cannot delete in the article's space
        """
        item, state = self._reader.require_page(article_id)
        if not self._policy.can_delete(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot delete {article_id}", article_id)

        with storage_call("delete article", article_id):
            langs = self._documents.list_translation_languages(article_id)
            for draft in self._documents.list_drafts_of_page(article_id):
                self._delete_draft_page(draft)
            self._documents.delete_note(article_id)
            self._save_state(item, PageState(deleted=True))
            for ref in state.activities:
                self._activities.delete_activity(ref.activity_id)
            self._properties.delete_items(NEWS_PAGE_VERSION, article_id)
            self._targeting.remove_targets(article_id)

        self._indexer.unindex_article(article_id, langs)
        self._broadcast(
            NewsEvent.DELETE, article_id, user_id=ctx.user_id, space_id=item.space_id
        )
        logger.info("Article %s deleted by %s", article_id, ctx.user_id)

    def request_delete(
        self, article_id: str, ctx: CallerContext, delay_seconds: float | None = None
    ) -> PendingDeletion | None:
        """
        Delete after a grace period; undo_delete by the same user cancels it.
        Returns None when the deletion ran immediately.
        """
        item, _ = self._reader.require_page(article_id)
        if not self._policy.can_delete(item.space_id, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot delete {article_id}", article_id)
        if self._deletion is None:
            self.delete_news(article_id, ctx)
            return None
        return self._deletion.request_delete(ARTICLES_QUEUE, article_id, ctx, delay_seconds)

    def undo_delete(self, article_id: str, ctx: CallerContext) -> PendingDeletion:
        if self._deletion is None:
            raise NotFound(f"No pending deletion for {article_id}", article_id)
        return self._deletion.undo_delete(ARTICLES_QUEUE, article_id, ctx.user_id)

    # --- Reads ---

    def build_article(
        self, article_id: str, lang: str | None = None, fallback_allowed: bool = True
    ) -> Article:
        return self._reader.build_article(article_id, lang, fallback_allowed)

    def get_news_by_id(
        self,
        article_id: str,
        ctx: CallerContext,
        lang: str | None = None,
        edit_mode: bool = False,
    ) -> Article:
        """
        Raises:
            NotFound: unknown or deleted article
            Forbidden: caller cannot view (or, in edit mode, edit) the article
        """
        article = self._reader.build_article(article_id, lang, fallback_allowed=True)
        if edit_mode:
            if not self._policy.can_edit(article.space_id, ctx):
                raise Forbidden(f"User {ctx.user_id} cannot edit {article_id}", article_id)
        elif not self._policy.can_view(article, ctx):
            raise Forbidden(f"User {ctx.user_id} cannot view {article_id}", article_id)
        return self._decorate(article, ctx)

    def get_news_by_activity_id(self, activity_id: str, ctx: CallerContext) -> Article:
        """Resolve the article behind an activity, following shares to the original."""
        seen: set[str] = set()
        current = activity_id
        while current not in seen:
            seen.add(current)
            with storage_call("read activity", current):
                activity = self._activities.get_activity(current)
            if activity is None:
                break
            article_id = activity.template_params.get("newsId")
            if article_id:
                return self.get_news_by_id(article_id, ctx)
            original = activity.template_params.get("originalActivityId")
            if not original:
                break
            current = original
        raise NotFound(f"No article for activity {activity_id}", activity_id)

    def get_news_by_target_name(
        self, target_name: str, ctx: CallerContext, offset: int = 0, limit: int = 10
    ) -> list[Article]:
        """Published articles displayed in a target that the caller can view."""
        articles: list[Article] = []
        for assignment in self._targeting.get_displayed_assignments(target_name):
            try:
                article = self._reader.build_article(assignment.article_id)
            except NotFound:
                continue
            if article.published and self._policy.can_view(article, ctx):
                articles.append(article)
        return [self._decorate(a, ctx) for a in articles[offset:offset + limit]]

    def hydrate_search_results(
        self, hits: list[SearchHit], ctx: CallerContext
    ) -> list[Article]:
        """Turn search hits into articles, applying the language fallback."""
        articles = []
        for hit in hits:
            try:
                article = self._reader.build_article(hit.article_id, hit.lang, fallback_allowed=True)
            except NotFound:
                logger.debug("Search hit %s no longer exists", hit.article_id)
                continue
            if self._policy.can_view(article, ctx):
                articles.append(self._decorate(article, ctx))
        return articles
