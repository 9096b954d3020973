"""
Schema migrations for the SQLite property store.

Migrations are ``NNNN_name.sql`` files applied in file-name order and
recorded in ``schema_migrations``. Only the part of a file above its
``-- Down`` marker is executed.
"""

import logging
import sqlite3
from contextlib import closing
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                filename TEXT PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
        """)
        return conn

    def applied_migrations(self) -> set[str]:
        with closing(self._connect()) as conn:
            return {row[0] for row in conn.execute("SELECT filename FROM schema_migrations")}

    def pending_migrations(self) -> list[str]:
        applied = self.applied_migrations()
        return [p.name for p in sorted(self.migrations_dir.glob("*.sql")) if p.name not in applied]

    def run_migrations(self) -> list[str]:
        """Apply pending migrations in order. Returns the file names applied."""
        pending = self.pending_migrations()
        with closing(self._connect()) as conn:
            # Request threads and delete workers write concurrently
            conn.execute("PRAGMA journal_mode=WAL;")
            for filename in pending:
                logger.info("Applying migration %s to %s", filename, self.db_path)
                self._apply(conn, filename)
        if pending:
            logger.info("Applied %d migrations", len(pending))
        return pending

    def _apply(self, conn: sqlite3.Connection, filename: str) -> None:
        script = (self.migrations_dir / filename).read_text().split(DOWN_MARKER)[0]
        try:
            conn.executescript(script)
            conn.execute(
                "INSERT INTO schema_migrations (filename, applied_at) VALUES (?, ?)",
                (filename, datetime.now(UTC).isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
