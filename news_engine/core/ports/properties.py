"""
Attached-properties store port.

Key-value property bags attached to (key, object_type, object_id, parent_id).
The newsPage item of an article is the source of truth for its workflow state.
"""

from __future__ import annotations

from typing import Protocol

from news_engine.domain.entities import PropertyItem


class PropertyStorePort(Protocol):
    """Attached-properties storage."""

    def create_item(self, item: PropertyItem) -> PropertyItem:
        """
        Create an item.

        Raises:
            Conflict: an item with the same key tuple exists
        """
        ...

    def get_item(
        self, key: str, object_type: str, object_id: str, parent_id: str = ""
    ) -> PropertyItem | None:
        ...

    def find_items(
        self,
        object_type: str,
        key: str | None = None,
        object_id: str | None = None,
        parent_id: str | None = None,
        properties: dict[str, str] | None = None,
    ) -> list[PropertyItem]:
        """List items matching every given filter (properties match exactly)."""
        ...

    def update_item(self, item: PropertyItem) -> PropertyItem:
        """
        Replace the properties of an existing item.

        Raises:
            NotFound: no item with this id
        """
        ...

    def delete_item(self, item_id: str) -> None:
        ...

    def delete_items(
        self, object_type: str, object_id: str, key: str | None = None
    ) -> int:
        """Delete items of an object. Returns count deleted."""
        ...
