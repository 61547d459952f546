"""Store: the SQLite connection shared by the pipeline and its extractors.

The pipeline owns the Store and lends it to every extractor. Each
extractor creates and drops its own tables through ``recreate``; there
is no global schema besides the ``ontologies`` table written by the
pipeline driver.

Every statement runs inside ``_connection()``, which commits on success,
rolls back on failure and wraps ``sqlite3.Error`` into StoreError.

Example:
    store = Store("ontosql.db")
    store.recreate("leaves", "CREATE TABLE leaves (id INTEGER PRIMARY KEY)")
    store.executemany("INSERT INTO leaves (id) VALUES (?)", [(1,), (2,)])
    store.scalar("SELECT COUNT(*) FROM leaves")   # -> 2
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Sequence, Union

from ontosql.config.schema import ConnectionSettings
from ontosql.errors import StoreError

__all__ = ["ONTOLOGIES_SQL", "Store"]

logger = logging.getLogger(__name__)


# =============================================================================
# SQL Schema
# =============================================================================

ONTOLOGIES_SQL = """
CREATE TABLE IF NOT EXISTS ontologies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    ontology_iri TEXT NOT NULL,
    version_iri TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_ontologies_iri ON ontologies(ontology_iri);
"""


# =============================================================================
# Store
# =============================================================================


class Store:
    """SQLite-backed relational store.

    Attributes:
        database: Path to the SQLite database file (":memory:" for in-memory)
    """

    def __init__(self, database: Union[str, Path] = ":memory:") -> None:
        """Open the store.

        Args:
            database: Path to SQLite database file (":memory:" for in-memory)

        Raises:
            StoreError: If the database cannot be opened
        """
        self.database = str(database)
        try:
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(self.database)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.database}: {e}") from e
        self._conn.row_factory = sqlite3.Row
        logger.debug(f"Opened store {self.database}")

    @classmethod
    def from_settings(cls, settings: ConnectionSettings) -> "Store":
        """Open the store described by the configuration's connection section.

        Only ``database`` is meaningful for SQLite; host and credentials are ignored.
        """
        return cls(settings.database)

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection; commit on success, roll back on failure.

        Raises:
            StoreError: Wrapping any sqlite3.Error raised inside the block
        """
        if self._conn is None:
            raise StoreError(f"Store {self.database} is closed")
        try:
            yield self._conn
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            self._conn.rollback()
            raise

    # ==================== Statements ====================

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one statement and return the number of rows it changed."""
        with self._connection() as conn:
            return conn.execute(sql, params).rowcount

    def insert(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run one INSERT and return the rowid of the new row."""
        with self._connection() as conn:
            return conn.execute(sql, params).lastrowid

    def executemany(self, sql: str, rows: Iterable[Sequence[Any]]) -> int:
        """Run one statement per parameter row; returns the total rows changed."""
        with self._connection() as conn:
            return conn.executemany(sql, rows).rowcount

    def executescript(self, script: str) -> None:
        with self._connection() as conn:
            conn.executescript(script)

    # ==================== Queries ====================

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._connection() as conn:
            return conn.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        with self._connection() as conn:
            return conn.execute(sql, params).fetchone()

    def scalar(self, sql: str, params: Sequence[Any] = (), default: Any = None) -> Any:
        """Return the first column of the first row, or ``default`` when there is none."""
        row = self.query_one(sql, params)
        if row is None or row[0] is None:
            return default
        return row[0]

    # ==================== Schema ====================

    def recreate(self, table: str, ddl: str) -> None:
        """Drop ``table`` if present and run ``ddl`` (which may hold several statements)."""
        logger.debug(f"Recreating table {table}")
        self.executescript(f"DROP TABLE IF EXISTS {table};\n{ddl}")

    def table_exists(self, table: str) -> bool:
        row = self.query_one(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
        )
        return row is not None

    def tables(self) -> list[str]:
        rows = self.query(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row["name"] for row in rows]

    def wipe(self) -> None:
        """Drop every table, leaving an empty database."""
        tables = self.tables()
        logger.info(f"Wiping {len(tables)} tables from {self.database}")
        self.executescript("".join(f"DROP TABLE IF EXISTS {name};\n" for name in tables))
