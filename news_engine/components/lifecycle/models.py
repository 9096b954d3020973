"""Lifecycle component models - frozen dataclass inputs."""

from __future__ import annotations

from dataclasses import dataclass

from news_engine.domain.entities import Audience, PublicationState, UpdateKind


@dataclass(frozen=True)
class ArticleInput:
    """Input for creating, scheduling or promoting an article.

    ``draft_id`` names the new-page draft being promoted; ``article_id`` an
    existing article. Fields left as None are taken from the draft.
    ``schedule_post_date`` is the user's local date-time, ``time_zone`` its
    offset ("+02:00") or zone id.
    """

    space_id: str
    title: str | None = None
    body: str | None = None
    summary: str | None = None
    lang: str | None = None
    audience: Audience | None = None
    publication_state: PublicationState = "draft"
    published: bool = False
    schedule_post_date: str | None = None
    time_zone: str | None = None
    targets: tuple[str, ...] | None = None
    illustration_id: str | None = None
    draft_id: str | None = None
    article_id: str | None = None


# --- Update variants ---


@dataclass(frozen=True)
class DraftUpdate:
    """Edit a new-page draft in place."""

    draft_id: str
    title: str | None = None
    body: str | None = None
    summary: str | None = None
    audience: Audience | None = None
    published: bool | None = None
    schedule_post_date: str | None = None
    time_zone: str | None = None
    targets: tuple[str, ...] | None = None
    illustration_id: str | None = None


@dataclass(frozen=True)
class LatestDraftUpdate:
    """Create or update the caller's draft of an existing article for a language."""

    article_id: str
    title: str
    body: str = ""
    summary: str | None = None
    lang: str | None = None


@dataclass(frozen=True)
class ArticleUpdate:
    """Update an existing article.

    ``update_kind="content_and_title"`` with a ``lang`` adds a translation;
    without one it commits a new canonical version.
    """

    article_id: str
    update_kind: UpdateKind = "content_and_title"
    title: str | None = None
    body: str | None = None
    summary: str | None = None
    lang: str | None = None
    publication_state: PublicationState | None = None
    schedule_post_date: str | None = None
    time_zone: str | None = None
    published: bool | None = None
    audience: Audience | None = None
    targets: tuple[str, ...] | None = None
    activity_posted: bool | None = None
    # Re-post: refresh the primary activity timestamp
    post: bool | None = None
    illustration_id: str | None = None


ArticleChange = DraftUpdate | LatestDraftUpdate | ArticleUpdate


@dataclass(frozen=True)
class SearchHit:
    """A search result to hydrate into an article."""

    article_id: str
    lang: str | None = None
    score: float = 0.0
