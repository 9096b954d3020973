from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class RecordingSearchIndex:
    """Search index trigger that records requests instead of calling a search engine."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.indexed: list[tuple[str, str]] = []
        self.unindexed: list[tuple[str, str]] = []
        self.fail_with: Exception | None = None

    def reindex(self, index_type: str, object_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            self.indexed.append((index_type, object_id))
        logger.debug("Reindex requested: %s/%s", index_type, object_id)

    def unindex(self, index_type: str, object_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        with self._lock:
            self.unindexed.append((index_type, object_id))
        logger.debug("Unindex requested: %s/%s", index_type, object_id)

    def unindexed_ids(self) -> set[str]:
        with self._lock:
            return {object_id for _, object_id in self.unindexed}
