"""Tests for the SQLite store."""

import pytest

from ontosql.config.schema import ConnectionSettings
from ontosql.errors import StoreError
from ontosql.store import ONTOLOGIES_SQL, Store


class TestStore:
    """Tests for Store."""

    def test_recreate_and_query(self, store):
        """Test creating a table, inserting and querying rows."""
        store.recreate("numbers", "CREATE TABLE numbers (n INTEGER PRIMARY KEY, name TEXT)")
        inserted = store.executemany(
            "INSERT INTO numbers (n, name) VALUES (?, ?)", [(1, "one"), (2, "two")]
        )
        assert inserted == 2
        assert store.scalar("SELECT COUNT(*) FROM numbers") == 2
        assert store.query_one("SELECT name FROM numbers WHERE n = ?", (2,))["name"] == "two"
        assert [row["n"] for row in store.query("SELECT n FROM numbers ORDER BY n")] == [1, 2]

    def test_recreate_drops_rows(self, store):
        """Test that recreate starts from an empty table."""
        ddl = "CREATE TABLE t (x INTEGER)"
        store.recreate("t", ddl)
        store.execute("INSERT INTO t (x) VALUES (1)")
        store.recreate("t", ddl)
        assert store.scalar("SELECT COUNT(*) FROM t") == 0

    def test_scalar_default(self, store):
        """Test that empty results and NULLs fall back to the default."""
        store.recreate("t", "CREATE TABLE t (x INTEGER)")
        assert store.scalar("SELECT x FROM t") is None
        assert store.scalar("SELECT MAX(x) FROM t", default=0) == 0

    def test_insert_returns_rowid(self, store):
        store.executescript(ONTOLOGIES_SQL)
        first = store.insert(
            "INSERT INTO ontologies (ontology_iri) VALUES (?)", ("http://example.org/a",)
        )
        second = store.insert(
            "INSERT INTO ontologies (ontology_iri) VALUES (?)", ("http://example.org/b",)
        )
        assert second == first + 1
        assert store.scalar("SELECT version_iri FROM ontologies WHERE id = ?", (first,)) == ""

    def test_tables_and_wipe(self, store):
        """Test listing and dropping every table."""
        store.recreate("b", "CREATE TABLE b (x INTEGER)")
        store.recreate("a", "CREATE TABLE a (x INTEGER)")
        assert store.tables() == ["a", "b"]
        assert store.table_exists("a")

        store.wipe()
        assert store.tables() == []
        assert not store.table_exists("a")

    def test_errors_are_wrapped(self, store):
        """Test that SQL errors surface as StoreError."""
        with pytest.raises(StoreError):
            store.execute("SELECT * FROM missing_table")

    def test_failed_statement_rolls_back(self, store):
        """Test that a failing batch leaves no partial rows."""
        store.recreate("t", "CREATE TABLE t (x INTEGER UNIQUE)")
        with pytest.raises(StoreError):
            store.executemany("INSERT INTO t (x) VALUES (?)", [(1,), (1,)])
        assert store.scalar("SELECT COUNT(*) FROM t") == 0

    def test_from_settings(self, tmp_path):
        """Test that only the database path is used."""
        path = tmp_path / "onto.db"
        settings = ConnectionSettings(database=str(path), username="ignored")
        with Store.from_settings(settings) as s:
            s.recreate("t", "CREATE TABLE t (x INTEGER)")
        assert path.exists()
