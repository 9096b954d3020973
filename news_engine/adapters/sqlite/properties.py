import json
import sqlite3
from datetime import datetime
from typing import Any

from news_engine.domain.entities import PropertyItem, utcnow
from news_engine.domain.errors import Conflict, NotFound


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _row_to_item(row: dict[str, Any]) -> PropertyItem:
    return PropertyItem(
        id=row["id"],
        key=row["item_key"],
        object_type=row["object_type"],
        object_id=row["object_id"],
        parent_id=row["parent_id"],
        space_id=row["space_id"],
        creator_id=row["creator_id"],
        properties=json.loads(row["properties_json"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLitePropertyStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def create_item(self, item: PropertyItem) -> PropertyItem:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO property_items (
                    id, item_key, object_type, object_id, parent_id,
                    space_id, creator_id, properties_json, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    item.id,
                    item.key,
                    item.object_type,
                    item.object_id,
                    item.parent_id,
                    item.space_id,
                    item.creator_id,
                    json.dumps(item.properties, sort_keys=True),
                    item.created_at.isoformat(),
                    item.updated_at.isoformat(),
                ),
            )
            conn.commit()
            return item
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise Conflict(
                f"Property item {item.key} already exists for "
                f"{item.object_type}:{item.object_id}",
                item.object_id,
            ) from e
        finally:
            conn.close()

    def get_item(
        self, key: str, object_type: str, object_id: str, parent_id: str = ""
    ) -> PropertyItem | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                """
                SELECT * FROM property_items
                WHERE item_key = ? AND object_type = ? AND object_id = ? AND parent_id = ?
            """,
                (key, object_type, object_id, parent_id),
            ).fetchone()
            return _row_to_item(row) if row else None
        finally:
            conn.close()

    def find_items(
        self,
        object_type: str,
        key: str | None = None,
        object_id: str | None = None,
        parent_id: str | None = None,
        properties: dict[str, str] | None = None,
    ) -> list[PropertyItem]:
        clauses = ["object_type = ?"]
        params: list[Any] = [object_type]
        if key is not None:
            clauses.append("item_key = ?")
            params.append(key)
        if object_id is not None:
            clauses.append("object_id = ?")
            params.append(object_id)
        if parent_id is not None:
            clauses.append("parent_id = ?")
            params.append(parent_id)

        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"SELECT * FROM property_items WHERE {' AND '.join(clauses)} "
                "ORDER BY created_at, id",
                params,
            ).fetchall()
        finally:
            conn.close()

        items = [_row_to_item(row) for row in rows]
        if properties:
            # Property values live in a JSON blob; match them in Python
            items = [
                i for i in items if all(i.properties.get(k) == v for k, v in properties.items())
            ]
        return items

    def update_item(self, item: PropertyItem) -> PropertyItem:
        updated = item.model_copy(update={"updated_at": utcnow()})
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE property_items
                SET properties_json = ?, space_id = ?, updated_at = ?
                WHERE id = ?
            """,
                (
                    json.dumps(updated.properties, sort_keys=True),
                    updated.space_id,
                    updated.updated_at.isoformat(),
                    updated.id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotFound(f"Property item {item.id} not found", item.id)
            conn.commit()
            return updated
        finally:
            conn.close()

    def delete_item(self, item_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM property_items WHERE id = ?", (item_id,))
            conn.commit()
        finally:
            conn.close()

    def delete_items(self, object_type: str, object_id: str, key: str | None = None) -> int:
        conn = self._get_conn()
        try:
            if key is None:
                cursor = conn.execute(
                    "DELETE FROM property_items WHERE object_type = ? AND object_id = ?",
                    (object_type, object_id),
                )
            else:
                cursor = conn.execute(
                    "DELETE FROM property_items "
                    "WHERE object_type = ? AND object_id = ? AND item_key = ?",
                    (object_type, object_id, key),
                )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
