"""
Lifecycle engine error taxonomy.

Forbidden and NotFound are surfaced to callers and never retried.
Conflict is swallowed for idempotent operations and surfaced for explicit
creates. StorageUnavailable aborts the operation before any broadcast.
NotificationFailure is always caught and logged by the engine.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager


class NewsEngineError(Exception):
    """Base class for lifecycle engine errors."""

    def __init__(self, message: str, object_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.object_id = object_id


class Forbidden(NewsEngineError, PermissionError):
    """Capability check failed."""


class NotFound(NewsEngineError, LookupError):
    """Referenced article, draft or document is missing or deleted."""


class Conflict(NewsEngineError):
    """An object with the same identity already exists."""


class StorageUnavailable(NewsEngineError):
    """Document store or property store call failed."""


class NotificationFailure(NewsEngineError):
    """Notification dispatch failed."""


class InvalidTransition(NewsEngineError, ValueError):
    """Requested publication state change is not allowed."""

    def __init__(self, current: str, new: str, object_id: str | None = None) -> None:
        super().__init__(f"Invalid transition from {current} to {new}", object_id)
        self.current = current
        self.new = new


@contextmanager
def storage_call(action: str, object_id: str | None = None) -> Iterator[None]:
    """Turn a store adapter failure into StorageUnavailable; engine errors pass through."""
    try:
        yield
    except NewsEngineError:
        raise
    except Exception as e:
        raise StorageUnavailable(f"{action} failed: {e}", object_id) from e
