"""
Typed accessors over the attached-properties string bag.

Every workflow concern stored in a PropertyItem has a model here that knows
how to read itself from, and write itself to, the ``dict[str, str]`` bag.
Callers work with these models and never touch raw property keys.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field

from news_engine.domain.entities import ActivityRef, Audience, PublicationState, TargetDefinition

# --- Object types ---
NEWS_PAGE = "newsPage"
NEWS_PAGE_VERSION = "newsPageVersion"
NEWS_DRAFT_PAGE = "newsDraftPage"
NEWS_LATEST_DRAFT_PAGE = "newsLatestDraftPage"
NEWS_TARGET = "newsTarget"
NEWS_TARGET_DEFINITION = "newsTargetDefinition"

# Item key for object types holding one item per object
NEWS_KEY = "news"

# --- Property keys ---
PUBLICATION_STATE = "publicationState"
PUBLISHED = "published"
AUDIENCE = "audience"
SCHEDULE_POST_DATE = "schedulePostDate"
SCHEDULE_UNPUBLISH_DATE = "scheduleUnpublishDate"
PUBLISH_DATE = "publishDate"
ACTIVITIES = "activities"
ACTIVITY_POSTED = "activityPosted"
VIEWERS = "viewers"
VIEWS_COUNT = "viewsCount"
SUMMARY = "summary"
ILLUSTRATION_ID = "illustrationId"
DELETED = "deleted"
LANG = "lang"
DRAFT = "draft"
TARGETS = "targets"
DISPLAYED = "displayed"
LABEL = "label"
DESCRIPTION = "description"
PERMISSIONS = "permissions"


def _to_bool(value: str | None) -> bool:
    return value == "true"


def _from_bool(value: bool) -> str:
    return "true" if value else "false"


def _dump_list(values: list[Any]) -> str | None:
    # JSON keeps ids containing any separator intact
    return json.dumps(values) if values else None


def _load_list(value: str | None) -> list[Any]:
    if not value:
        return []
    loaded = json.loads(value)
    if not isinstance(loaded, list):
        raise ValueError(f"Expected a JSON array, got {value!r}")
    return loaded


def _put(props: dict[str, str], key: str, value: Any) -> None:
    if value is None or value == "":
        return
    props[key] = value


class PageState(BaseModel):
    """Workflow state of an article, stored on its ``newsPage`` item."""

    publication_state: PublicationState = "draft"
    published: bool = False
    audience: Audience | None = None
    schedule_post_date: str | None = None
    schedule_unpublish_date: str | None = None
    publish_date: str | None = None
    activities: list[ActivityRef] = Field(default_factory=list)
    activity_posted: bool = False
    viewers: list[str] = Field(default_factory=list)
    summary: str = ""
    illustration_id: str | None = None
    deleted: bool = False

    @property
    def views_count(self) -> int:
        return len(self.viewers)

    def to_properties(self) -> dict[str, str]:
        if self.deleted:
            # Tombstone: every other workflow key is dropped
            return {DELETED: _from_bool(True)}
        props = {
            PUBLICATION_STATE: self.publication_state,
            PUBLISHED: _from_bool(self.published),
            ACTIVITY_POSTED: _from_bool(self.activity_posted),
            VIEWS_COUNT: str(self.views_count),
        }
        _put(props, AUDIENCE, self.audience)
        _put(props, SCHEDULE_POST_DATE, self.schedule_post_date)
        _put(props, SCHEDULE_UNPUBLISH_DATE, self.schedule_unpublish_date)
        _put(props, PUBLISH_DATE, self.publish_date)
        _put(props, ACTIVITIES, _dump_list([[r.space_id, r.activity_id] for r in self.activities]))
        _put(props, VIEWERS, _dump_list(self.viewers))
        _put(props, SUMMARY, self.summary)
        _put(props, ILLUSTRATION_ID, self.illustration_id)
        return props

    @classmethod
    def from_properties(cls, props: dict[str, str]) -> PageState:
        if _to_bool(props.get(DELETED)):
            return cls(deleted=True)
        return cls(
            publication_state=props.get(PUBLICATION_STATE) or "draft",
            published=_to_bool(props.get(PUBLISHED)),
            audience=props.get(AUDIENCE) or None,
            schedule_post_date=props.get(SCHEDULE_POST_DATE) or None,
            schedule_unpublish_date=props.get(SCHEDULE_UNPUBLISH_DATE) or None,
            publish_date=props.get(PUBLISH_DATE) or None,
            activities=[
                ActivityRef(space_id=space_id, activity_id=activity_id)
                for space_id, activity_id in _load_list(props.get(ACTIVITIES))
            ],
            activity_posted=_to_bool(props.get(ACTIVITY_POSTED)),
            # viewsCount is derived; a stored value is never trusted
            viewers=_load_list(props.get(VIEWERS)),
            summary=props.get(SUMMARY, ""),
            illustration_id=props.get(ILLUSTRATION_ID) or None,
        )


class VersionMarker(BaseModel):
    """Per-language version marker stored on a ``newsPageVersion`` item."""

    lang: str | None = None
    summary: str = ""
    illustration_id: str | None = None
    draft: bool = False

    def to_properties(self) -> dict[str, str]:
        props = {DRAFT: _from_bool(self.draft)}
        _put(props, LANG, self.lang)
        _put(props, SUMMARY, self.summary)
        _put(props, ILLUSTRATION_ID, self.illustration_id)
        return props

    @classmethod
    def from_properties(cls, props: dict[str, str]) -> VersionMarker:
        return cls(
            lang=props.get(LANG) or None,
            summary=props.get(SUMMARY, ""),
            illustration_id=props.get(ILLUSTRATION_ID) or None,
            draft=_to_bool(props.get(DRAFT)),
        )


class DraftMarker(BaseModel):
    """Workflow fields carried by a draft until it is promoted."""

    summary: str = ""
    illustration_id: str | None = None
    audience: Audience | None = None
    schedule_post_date: str | None = None
    publication_state: PublicationState = "draft"
    published: bool = False
    targets: list[str] = Field(default_factory=list)

    def to_properties(self) -> dict[str, str]:
        props = {
            PUBLICATION_STATE: self.publication_state,
            PUBLISHED: _from_bool(self.published),
        }
        _put(props, SUMMARY, self.summary)
        _put(props, ILLUSTRATION_ID, self.illustration_id)
        _put(props, AUDIENCE, self.audience)
        _put(props, SCHEDULE_POST_DATE, self.schedule_post_date)
        _put(props, TARGETS, _dump_list(self.targets))
        return props

    @classmethod
    def from_properties(cls, props: dict[str, str]) -> DraftMarker:
        return cls(
            summary=props.get(SUMMARY, ""),
            illustration_id=props.get(ILLUSTRATION_ID) or None,
            audience=props.get(AUDIENCE) or None,
            schedule_post_date=props.get(SCHEDULE_POST_DATE) or None,
            publication_state=props.get(PUBLICATION_STATE) or "draft",
            published=_to_bool(props.get(PUBLISHED)),
            targets=_load_list(props.get(TARGETS)),
        )


class TargetAssignment(BaseModel):
    """Assignment of an article to a named target (``newsTarget`` item, key = target name)."""

    target_name: str
    article_id: str
    displayed: bool = True

    def to_properties(self) -> dict[str, str]:
        return {DISPLAYED: _from_bool(self.displayed)}

    @classmethod
    def from_item(cls, key: str, object_id: str, props: dict[str, str]) -> TargetAssignment:
        return cls(target_name=key, article_id=object_id, displayed=_to_bool(props.get(DISPLAYED)))


def target_definition_to_properties(definition: TargetDefinition) -> dict[str, str]:
    props: dict[str, str] = {}
    _put(props, LABEL, definition.label)
    _put(props, DESCRIPTION, definition.description)
    _put(props, PERMISSIONS, _dump_list(definition.permissions))
    return props


def target_definition_from_properties(name: str, props: dict[str, str]) -> TargetDefinition:
    return TargetDefinition(
        name=name,
        label=props.get(LABEL, ""),
        description=props.get(DESCRIPTION, ""),
        permissions=_load_list(props.get(PERMISSIONS)),
    )
