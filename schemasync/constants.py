"""
SchemaSync Constants

Centralized definitions for catalog queries, reserved names and the
pragma sets the migrator reads and reconciles.
"""

from enum import Enum
from typing import Tuple


class OperationKind(str, Enum):
    """Kinds of operation a migration plan is made of."""

    CREATE_TABLE = "CREATE_TABLE"
    DROP_TABLE = "DROP_TABLE"
    RENAME_TABLE_FOR_REBUILD = "RENAME_TABLE_FOR_REBUILD"
    COPY_INTERSECTING_COLUMNS = "COPY_INTERSECTING_COLUMNS"
    DROP_INDEX = "DROP_INDEX"
    CREATE_INDEX = "CREATE_INDEX"
    SET_PRAGMA = "SET_PRAGMA"
    DROP_LEFTOVER_TABLE = "DROP_LEFTOVER_TABLE"


# Tables staged under this suffix belong to an in-flight rebuild
MIGRATION_SUFFIX = "_migration_new"

# SQLite's AUTOINCREMENT bookkeeping table
SQLITE_SEQUENCE = "sqlite_sequence"

# Pragmas captured in every catalog snapshot
TRACKED_PRAGMAS: Tuple[str, ...] = ("user_version", "foreign_keys")

# Pragmas written back to the live database when they differ.
# foreign_keys is connection-scoped in SQLite, so it is only read.
RECONCILED_PRAGMAS: Tuple[str, ...] = ("user_version",)

TABLES_QUERY = (
    "SELECT name, sql FROM sqlite_master "
    "WHERE type = 'table' AND name != 'sqlite_sequence' ORDER BY name"
)

# Automatic indices (UNIQUE / PRIMARY KEY constraints) have NULL sql
INDICES_QUERY = (
    "SELECT name, sql FROM sqlite_master "
    "WHERE type = 'index' AND sql IS NOT NULL ORDER BY name"
)

SUFFIXED_TABLES_QUERY = (
    "SELECT name FROM sqlite_master "
    "WHERE type = 'table' AND name LIKE ? ESCAPE '\\' ORDER BY name"
)
