"""In-memory attached-properties store for development and tests."""

from __future__ import annotations

import threading

from news_engine.domain.entities import PropertyItem, utcnow
from news_engine.domain.errors import Conflict, NotFound

ItemKey = tuple[str, str, str, str]


def _key_of(item: PropertyItem) -> ItemKey:
    return (item.key, item.object_type, item.object_id, item.parent_id)


class InMemoryPropertyStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, PropertyItem] = {}
        self._index: dict[ItemKey, str] = {}

    def create_item(self, item: PropertyItem) -> PropertyItem:
        with self._lock:
            key = _key_of(item)
            if key in self._index:
                raise Conflict(
                    f"Property item {item.key} already exists for "
                    f"{item.object_type}:{item.object_id}",
                    item.object_id,
                )
            stored = item.model_copy(deep=True)
            self._items[stored.id] = stored
            self._index[key] = stored.id
            return stored.model_copy(deep=True)

    def get_item(
        self, key: str, object_type: str, object_id: str, parent_id: str = ""
    ) -> PropertyItem | None:
        with self._lock:
            item_id = self._index.get((key, object_type, object_id, parent_id))
            if item_id is None:
                return None
            return self._items[item_id].model_copy(deep=True)

    def find_items(
        self,
        object_type: str,
        key: str | None = None,
        object_id: str | None = None,
        parent_id: str | None = None,
        properties: dict[str, str] | None = None,
    ) -> list[PropertyItem]:
        with self._lock:
            found = []
            for item in self._items.values():
                if item.object_type != object_type:
                    continue
                if key is not None and item.key != key:
                    continue
                if object_id is not None and item.object_id != object_id:
                    continue
                if parent_id is not None and item.parent_id != parent_id:
                    continue
                if properties and any(
                    item.properties.get(k) != v for k, v in properties.items()
                ):
                    continue
                found.append(item.model_copy(deep=True))
            return sorted(found, key=lambda i: i.created_at)

    def update_item(self, item: PropertyItem) -> PropertyItem:
        with self._lock:
            if item.id not in self._items:
                raise NotFound(f"Property item {item.id} not found", item.id)
            stored = item.model_copy(deep=True, update={"updated_at": utcnow()})
            self._items[item.id] = stored
            return stored.model_copy(deep=True)

    def delete_item(self, item_id: str) -> None:
        with self._lock:
            item = self._items.pop(item_id, None)
            if item is not None:
                self._index.pop(_key_of(item), None)

    def delete_items(self, object_type: str, object_id: str, key: str | None = None) -> int:
        with self._lock:
            doomed = [
                item
                for item in self._items.values()
                if item.object_type == object_type
                and item.object_id == object_id
                and (key is None or item.key == key)
            ]
            for item in doomed:
                del self._items[item.id]
                self._index.pop(_key_of(item), None)
            return len(doomed)
