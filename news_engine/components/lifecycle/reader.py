"""
Article read path.

Rebuilds Articles and Drafts from the page property item plus the document
store. Every outward-facing read goes through build_article so the
language fallback is applied the same way everywhere.
"""

from __future__ import annotations

from news_engine.core.ports.documents import DocumentStorePort
from news_engine.core.ports.properties import PropertyStorePort
from news_engine.domain.entities import Article, Draft, DraftPage, PropertyItem
from news_engine.domain.errors import NotFound, storage_call
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
from news_engine.rules.models import LifecycleRules


class ArticleReader:
    def __init__(
        self,
        documents: DocumentStorePort,
        properties: PropertyStorePort,
        rules: LifecycleRules,
    ) -> None:
        self._documents = documents
        self._properties = properties
        self._rules = rules

    def illustration_url(self, object_id: str, illustration_id: str | None) -> str | None:
        if not illustration_id:
            return None
        return self._rules.illustration_url.format(
            article_id=object_id, illustration_id=illustration_id
        )

    def page_item(self, article_id: str) -> PropertyItem | None:
        with storage_call("read article state", article_id):
            return self._properties.get_item(NEWS_KEY, NEWS_PAGE, article_id)

    def require_page(self, article_id: str) -> tuple[PropertyItem, PageState]:
        """
        Load the page item of a live article.

        Raises:
            NotFound: no page item, or the article was deleted
        """
        item = self.page_item(article_id)
        if item is None:
            raise NotFound(f"Article {article_id} not found", article_id)
        state = PageState.from_properties(item.properties)
        if state.deleted:
            raise NotFound(f"Article {article_id} was deleted", article_id)
        return item, state

    def version_marker(self, article_id: str, lang: str | None) -> VersionMarker | None:
        with storage_call("read version marker", article_id):
            item = self._properties.get_item(NEWS_KEY, NEWS_PAGE_VERSION, article_id, lang or "")
        return VersionMarker.from_properties(item.properties) if item else None

    def build_article(
        self, article_id: str, lang: str | None = None, fallback_allowed: bool = True
    ) -> Article:
        """
        Rebuild an article in a language.

        When ``lang`` has no version the canonical version is used if
        ``fallback_allowed``; otherwise, or when neither exists, NotFound.
        """
        item, state = self.require_page(article_id)

        with storage_call("read article", article_id):
            note = self._documents.get_note(article_id)
            if note is None:
                raise NotFound(f"Article {article_id} has no document", article_id)

            version = self._documents.get_version(article_id, lang) if lang else None
            if lang and version is None and not fallback_allowed:
                raise NotFound(f"Article {article_id} has no {lang} version", article_id)
            if version is None:
                version = self._documents.get_version(article_id, None)
            if version is None:
                raise NotFound(f"Article {article_id} has no published version", article_id)

        summary = state.summary
        if version.lang:
            marker = self.version_marker(article_id, version.lang)
            if marker and marker.summary:
                summary = marker.summary

        return Article(
            id=article_id,
            space_id=item.space_id or note.space_id,
            author=note.author,
            title=version.title,
            body=version.content,
            summary=summary,
            lang=version.lang,
            publication_state=state.publication_state,
            published=state.published,
            audience=state.audience,
            activities=state.activities,
            viewers=state.viewers,
            views_count=state.views_count,
            schedule_post_date=state.schedule_post_date,
            schedule_unpublish_date=state.schedule_unpublish_date,
            publish_date=state.publish_date,
            activity_posted=state.activity_posted,
            latest_version_id=version.id,
            illustration_url=self.illustration_url(article_id, state.illustration_id),
            created_at=note.created_at,
            updated_at=max(note.updated_at, item.updated_at),
        )

    def draft_marker(self, draft: DraftPage) -> DraftMarker:
        object_type = NEWS_LATEST_DRAFT_PAGE if draft.target_page_id else NEWS_DRAFT_PAGE
        with storage_call("read draft state", draft.id):
            item = self._properties.get_item(
                NEWS_KEY, object_type, draft.id, draft.target_page_id or ""
            )
        return DraftMarker.from_properties(item.properties) if item else DraftMarker()

    def to_draft(self, draft: DraftPage, marker: DraftMarker | None = None) -> Draft:
        marker = marker or self.draft_marker(draft)
        return Draft(
            id=draft.id,
            space_id=draft.space_id,
            author=draft.author,
            title=draft.title,
            body=draft.content,
            summary=marker.summary,
            lang=draft.lang,
            target_article_id=draft.target_page_id,
            publication_state=marker.publication_state,
            published=marker.published,
            audience=marker.audience,
            schedule_post_date=marker.schedule_post_date,
            targets=marker.targets,
            illustration_url=self.illustration_url(draft.id, marker.illustration_id),
            created_at=draft.created_at,
            updated_at=draft.updated_at,
        )
