import sqlite3
from contextlib import closing

import pytest

from news_engine.adapters.sqlite.migrator import SQLiteMigrator

# Checked-in migrations, so the shipped SQL is exercised
MIGRATIONS = "migrations"


def tables(db_path: str) -> set[str]:
    with closing(sqlite3.connect(db_path)) as conn:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return {name for (name,) in rows}


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "news.sqlite")


@pytest.fixture
def scratch_migrations(tmp_path):
    folder = tmp_path / "scratch"
    folder.mkdir()
    return folder


def test_property_items_schema_is_applied(db_path):
    applied = SQLiteMigrator(db_path, MIGRATIONS).run_migrations()

    assert applied == ["0001_property_items.sql"]
    assert {"schema_migrations", "property_items"} <= tables(db_path)


def test_second_run_applies_nothing(db_path):
    migrator = SQLiteMigrator(db_path, MIGRATIONS)
    migrator.run_migrations()

    assert migrator.run_migrations() == []
    assert migrator.pending_migrations() == []
    assert migrator.applied_migrations() == {"0001_property_items.sql"}


def test_pending_lists_files_in_name_order(db_path, scratch_migrations):
    (scratch_migrations / "0002_b.sql").write_text("CREATE TABLE b (id TEXT);")
    (scratch_migrations / "0001_a.sql").write_text("CREATE TABLE a (id TEXT);")
    (scratch_migrations / "notes.txt").write_text("ignored")

    migrator = SQLiteMigrator(db_path, str(scratch_migrations))

    assert migrator.pending_migrations() == ["0001_a.sql", "0002_b.sql"]
    assert migrator.run_migrations() == ["0001_a.sql", "0002_b.sql"]


def test_down_section_is_ignored(db_path, scratch_migrations):
    (scratch_migrations / "0001_t.sql").write_text(
        "-- Up\nCREATE TABLE t (id TEXT);\n-- Down\nDROP TABLE t;\n"
    )

    SQLiteMigrator(db_path, str(scratch_migrations)).run_migrations()

    assert "t" in tables(db_path)


def test_broken_migration_names_file_and_stays_pending(db_path, scratch_migrations):
    (scratch_migrations / "0001_bad.sql").write_text("CREATE TABLE (;")
    migrator = SQLiteMigrator(db_path, str(scratch_migrations))

    with pytest.raises(RuntimeError, match="0001_bad.sql"):
        migrator.run_migrations()

    assert migrator.pending_migrations() == ["0001_bad.sql"]
