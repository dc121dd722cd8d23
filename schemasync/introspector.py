import sqlite3
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Tuple

from schemasync.constants import (
    INDICES_QUERY,
    SUFFIXED_TABLES_QUERY,
    TABLES_QUERY,
    TRACKED_PRAGMAS,
)
from schemasync.exceptions import SchemaLoadError
from schemasync.generators.base import quote_ident
from schemasync.logging_config import get_logger
from schemasync.models import CatalogSnapshot

logger = get_logger("introspector")


class CatalogReader:
    """
    Reads the catalog of a SQLite connection. Used the same way against the
    live database and against the pristine database built from schema text.
    """

    def __init__(self, connection: sqlite3.Connection, pragmas: Iterable[str] = TRACKED_PRAGMAS):
        self.connection = connection
        self.pragmas = tuple(pragmas)

    def snapshot(self) -> CatalogSnapshot:
        tables = self.tables()
        snapshot = CatalogSnapshot(
            tables=tables,
            indices=self.indices(),
            columns_by_table={name: self.table_columns(name) for name in tables},
            pragmas={name: self.pragma(name) for name in self.pragmas},
        )
        logger.debug(
            "Captured catalog with %d table(s) and %d index(es)",
            len(snapshot.tables), len(snapshot.indices),
        )
        return snapshot

    def tables(self) -> dict:
        return dict(self.connection.execute(TABLES_QUERY).fetchall())

    def indices(self) -> dict:
        return dict(self.connection.execute(INDICES_QUERY).fetchall())

    def table_columns(self, table_name: str) -> Tuple[str, ...]:
        # table_info rows: (cid, name, type, notnull, dflt_value, pk)
        rows = self.connection.execute(f"PRAGMA table_info({quote_ident(table_name)})").fetchall()
        return tuple(row[1] for row in rows)

    def pragma(self, name: str):
        if not name.isidentifier():
            raise ValueError(f"Invalid pragma name: {name!r}")
        row =self.connection.execute(f"PRAGMA {name}").fetchone()
        return row[0] if row else None

    def suffixed_tables(self, suffix: str) -> List[str]:
        pattern = "%" + suffix.replace("\\", "\\\\").replace("_", "\\_").replace("%", "\\%")
        rows = self.connection.execute(SUFFIXED_TABLES_QUERY, (pattern,)).fetchall()
        # LIKE is case-insensitive, endswith is not
        return [name for (name,) in rows if name.endswith(suffix)]


@contextmanager
def pristine_database(schema: str) -> Iterator[sqlite3.Connection]:
    """
    Materializes ``schema`` into a private in-memory database for the
    duration of the block. The connection is closed on exit whether or not
    the block raised.
    """
    connection = sqlite3.connect(":memory:")
    try:
        try:
            connection.executescript(schema)
        except sqlite3.Error as e:
            raise SchemaLoadError(schema, reason=f"Target schema failed to load ({e})") from e
        yield connection
    finally:
        connection.close()
