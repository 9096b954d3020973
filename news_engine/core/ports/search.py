from __future__ import annotations

from typing import Protocol


class SearchIndexPort(Protocol):
    """Search index trigger. Indexing itself happens asynchronously on the index side."""

    def reindex(self, index_type: str, object_id: str) -> None:
        ...

    def unindex(self, index_type: str, object_id: str) -> None:
        ...
