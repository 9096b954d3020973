"""Lifecycle component - article draft, schedule, post, publish and delete."""

from news_engine.components.lifecycle.component import LifecycleCoordinator
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

__all__ = [
    # Component
    "LifecycleCoordinator",
    "ArticleReader",
    # Models
    "ArticleChange",
    "ArticleInput",
    "ArticleUpdate",
    "DraftUpdate",
    "LatestDraftUpdate",
    "SearchHit",
    # Ports
    "DeletionPort",
    "IndexingPort",
    "TargetingPort",
]
