"""Targeting component - article target assignments and target definitions."""

from news_engine.components.targeting.component import (
    TARGET_DEFINITIONS_OWNER,
    TargetingService,
)
from news_engine.components.targeting.ports import DeletionPort, PublishPolicyPort

__all__ = [
    # Component
    "TargetingService",
    "TARGET_DEFINITIONS_OWNER",
    # Ports
    "DeletionPort",
    "PublishPolicyPort",
]
