"""
SchemaSync Custom Exceptions

This module defines the errors a migration run can terminate with.
None of them are recovered from inside the engine.
"""


class SchemaSyncError(Exception):
    """Base exception for all SchemaSync errors."""
    pass


class SchemaLoadError(SchemaSyncError):
    """
    Raised when the target schema text does not execute cleanly against
    an empty database.

    Attributes:
        schema: The schema text that failed to load
        reason: Description of the underlying database error
    """
    def __init__(self, schema: str, reason: str = "Failed to load schema"):
        self.schema = schema
        self.reason = reason
        # Truncate long schemas for readability
        display_schema = schema.strip()
        if len(display_schema) > 100:
            display_schema = display_schema[:100] + "..."
        super().__init__(f"{reason}: {display_schema}")


class DestructiveChangeRejected(SchemaSyncError):
    """
    Raised when a table or column would be removed and deletions are not
    authorized.

    Attributes:
        tables: Names of tables that would be dropped
        table: Table being rebuilt when a column deletion was refused
        columns: Names of columns that would be dropped from ``table``
    """
    def __init__(self, tables=(), table=None, columns=()):
        self.tables = tuple(tables)
        self.table = table
        self.columns = tuple(columns)
        if self.table is not None:
            message = (
                f"Refusing to remove columns {', '.join(self.columns)} "
                f"from table {self.table}"
            )
        else:
            message = f"Refusing to delete tables {', '.join(self.tables)}"
        super().__init__(f"Database migration: {message}")


class ForeignKeyViolation(SchemaSyncError):
    """
    Raised when ``PRAGMA foreign_key_check`` reports rows after the plan has
    been applied. The applied DDL is not rolled back.

    Attributes:
        violations: Rows of (table, rowid, parent, fkid)
    """
    def __init__(self, violations):
        self.violations = [tuple(row) for row in violations]
        tables = sorted({row[0] for row in self.violations})
        super().__init__(
            f"Database migration: Would fail foreign_key_check "
            f"({len(self.violations)} violation(s) in {', '.join(tables)})"
        )
