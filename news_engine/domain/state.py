from datetime import datetime
from typing import Any, Literal

from news_engine.domain.entities import PublicationState
from news_engine.domain.errors import InvalidTransition
from news_engine.domain.properties import PageState

PromotePath = Literal["commit", "flip", "create"]


def can_transition(current: PublicationState, new: PublicationState) -> bool:
    """
    Determine if a publication state change is allowed.
    """
    if current == new:
        return True

    if current == "draft":
        return new in ("staged", "posted")

    if current == "staged":
        # Posted by the scheduler, or un-scheduled back to draft
        return new in ("posted", "draft")

    # A posted article never goes back; visibility is handled by `published`
    return False


def transition(
    state: PageState,
    new_state: PublicationState,
    now: datetime,
    schedule_post_date: str | None = None,
) -> PageState:
    """
    Return a NEW PageState with the updated publication state.
    Raises InvalidTransition if the change is not allowed.
    """
    if not can_transition(state.publication_state, new_state):
        raise InvalidTransition(state.publication_state, new_state)

    updates: dict[str, Any] = {"publication_state": new_state}

    if new_state == "staged":
        schedule = schedule_post_date or state.schedule_post_date
        if not schedule:
            raise InvalidTransition(state.publication_state, new_state)
        updates["schedule_post_date"] = schedule

    if new_state in ("posted", "draft"):
        updates["schedule_post_date"] = None

    if new_state == "posted" and state.publication_state != "posted":
        updates["publish_date"] = state.publish_date or now.isoformat()

    return state.model_copy(update=updates)


def select_promote_path(stored: PageState | None) -> PromotePath:
    """
    Pick how a promotion is carried out.

    - "create": no page item yet, a new document and page item are written
    - "commit": the article is already posted, only its content is committed
    - "flip": a staged (or scheduled) article is moved to posted
    """
    if stored is None:
        return "create"
    if stored.publication_state == "posted" and not stored.schedule_post_date:
        return "commit"
    return "flip"
