from schemasync.canonical import canonicalize
from schemasync.exceptions import (
    DestructiveChangeRejected,
    ForeignKeyViolation,
    SchemaLoadError,
    SchemaSyncError,
)
from schemasync.migrator import Migrator, migrate

__all__ = [
    "canonicalize",
    "migrate",
    "Migrator",
    "SchemaSyncError",
    "SchemaLoadError",
    "DestructiveChangeRejected",
    "ForeignKeyViolation",
]
