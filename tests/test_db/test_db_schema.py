"""Tests for schema creation, versioning and reset."""

import sqlite3

import pytest

from stigqter.core.constants import DB_VERSION
from stigqter.db import schema
from stigqter.db.manager import DbManager


def table_names(conn):
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    return {r[0] for r in rows}


@pytest.fixture
def conn():
    c = sqlite3.connect(":memory:", isolation_level=None)
    c.row_factory = sqlite3.Row
    yield c
    c.close()


class TestSchemaVersions:

    def test_empty_database_is_version_zero(self, conn):
        assert schema.current_version(conn) == 0

    def test_ensure_schema_creates_tables(self, conn):
        schema.ensure_schema(conn)
        assert set(schema.TABLES) <= table_names(conn)
        assert schema.current_version(conn) == DB_VERSION

    def test_ensure_schema_is_idempotent(self, conn):
        schema.ensure_schema(conn)
        schema.ensure_schema(conn)
        rows = conn.execute("SELECT COUNT(*) FROM variables WHERE name = 'version'").fetchone()
        assert rows[0] == 1

    def test_drop_all(self, conn):
        schema.ensure_schema(conn)
        schema.drop_all(conn)
        assert table_names(conn) & set(schema.TABLES) == set()

    def test_garbage_version_reads_as_zero(self, conn):
        conn.execute("CREATE TABLE variables (name TEXT, value TEXT)")
        conn.execute("INSERT INTO variables VALUES ('version', 'abc')")
        assert schema.current_version(conn) == 0


class TestDbFile:

    def test_manager_creates_file_and_schema(self, db_path):
        with DbManager(db_path) as db:
            assert db.get_variable("version") == str(DB_VERSION)
        assert db_path.exists()

    def test_delete_db_empties_tables(self, db):
        db.add_family("AC", "ACCESS CONTROL")
        db.update_variable("lastExport", "/tmp")
        db.delete_db()
        assert db.get_families() == []
        assert db.get_variable("lastExport") is None
        assert db.get_variable("version") == str(DB_VERSION)
