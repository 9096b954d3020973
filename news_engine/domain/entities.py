from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
PublicationState = Literal["draft", "staged", "posted"]
Audience = Literal["all", "space"]
UpdateKind = Literal["content_and_title", "schedule", "posting_and_publishing"]


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return uuid4().hex


# --- Identity ---

class CallerContext(BaseModel):
    """Identity of the user performing an operation.

    ``memberships`` holds platform group memberships as
    ``"<membership>:<group>"`` strings, e.g. ``"publisher:/platform/web-contributors"``.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    memberships: frozenset[str] = Field(default_factory=frozenset)


class Space(BaseModel):
    id: str
    pretty_name: str
    display_name: str = ""


# --- Social ---

class ActivityRef(BaseModel):
    """A (space, activity) pair; the first ref of an article is its primary activity."""

    model_config = ConfigDict(frozen=True)

    space_id: str
    activity_id: str


class Activity(BaseModel):
    id: str = Field(default_factory=new_id)
    space_id: str
    poster_id: str
    type: str
    title: str = ""
    template_params: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    hidden: bool = False


# --- Documents ---

class Note(BaseModel):
    id: str = Field(default_factory=new_id)
    space_id: str
    parent_id: str | None = None
    name: str = ""
    title: str = ""
    content: str = ""
    author: str = ""
    lang: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class PageVersion(BaseModel):
    id: str = Field(default_factory=new_id)
    note_id: str
    lang: str | None = None
    title: str
    content: str = ""
    author: str
    created_at: datetime = Field(default_factory=utcnow)


class DraftPage(BaseModel):
    id: str = Field(default_factory=new_id)
    space_id: str
    author: str
    title: str = ""
    content: str = ""
    lang: str | None = None
    parent_page_id: str | None = None
    target_page_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# --- Attached properties ---

class PropertyItem(BaseModel):
    """Generic property bag attached to an object.

    Unique per ``(key, object_type, object_id, parent_id)``.
    """

    id: str = Field(default_factory=new_id)
    key: str
    object_type: str
    object_id: str
    parent_id: str = ""
    space_id: str = ""
    creator_id: str = ""
    properties: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TargetDefinition(BaseModel):
    name: str
    label: str = ""
    description: str = ""
    permissions: list[str] = Field(default_factory=list)


# --- Aggregates ---

class Draft(BaseModel):
    id: str
    space_id: str
    author: str
    title: str = ""
    body: str = ""
    summary: str = ""
    lang: str | None = None
    target_article_id: str | None = None
    publication_state: PublicationState = "draft"
    published: bool = False
    audience: Audience | None = None
    schedule_post_date: str | None = None
    targets: list[str] = Field(default_factory=list)
    illustration_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Article(BaseModel):
    id: str
    space_id: str
    author: str
    title: str
    body: str = ""
    summary: str = ""
    lang: str | None = None
    publication_state: PublicationState = "draft"
    published: bool = False
    audience: Audience | None = None
    activities: list[ActivityRef] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)
    viewers: list[str] = Field(default_factory=list)
    views_count: int = 0
    schedule_post_date: str | None = None
    schedule_unpublish_date: str | None = None
    publish_date: str | None = None
    activity_posted: bool = False
    deleted: bool = False
    latest_version_id: str | None = None
    illustration_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    # Caller-relative flags
    can_edit: bool = False
    can_delete: bool = False
    can_publish: bool = False

    @property
    def primary_activity(self) -> ActivityRef | None:
        return self.activities[0] if self.activities else None

    @property
    def shared_in_spaces(self) -> list[str]:
        return [ref.space_id for ref in self.activities[1:]]
