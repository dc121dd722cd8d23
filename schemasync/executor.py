import sqlite3
import textwrap
from typing import Callable, Optional

from schemasync.exceptions import ForeignKeyViolation
from schemasync.logging_config import get_logger
from schemasync.models import CatalogSnapshot, ExecutionRecord, MigrationResult, Operation

logger = get_logger("executor")

Listener = Callable[[ExecutionRecord], None]


class Executor:
    """
    Applies operations to the live connection one statement at a time and
    keeps the audit trail of what ran.

    Every operation is reported to ``listener`` (if given) and to the
    ``schemasync.executor`` logger. Database errors propagate unchanged and
    are never retried.
    """

    def __init__(self, connection: sqlite3.Connection, listener: Optional[Listener] = None):
        self.connection = connection
        self.listener = listener
        self.result = MigrationResult()

    @property
    def n_changes(self) -> int:
        return self.result.n_changes

    def apply(self, operation: Operation) -> ExecutionRecord:
        extra = {"operation": operation.kind.value, "table_name": operation.target}

        if operation.sql and operation.sql.strip():
            sql = textwrap.dedent(operation.sql).strip()
            logger.info(
                "Database migration: %s with SQL:\n%s",
                operation.description, textwrap.indent(sql, "    "),
                extra={**extra, "sql": sql},
            )
            cursor = self.connection.execute(operation.sql)
            rows_affected = cursor.rowcount
            self.result.n_changes += 1
            logger.info(
                "Affected rows: %s", rows_affected,
                extra={**extra, "rows_affected": rows_affected},
            )
        else:
            logger.warning(
                "Database migration: %s (no SQL provided); skipped execution",
                operation.description, extra=extra,
            )
            rows_affected = None

        record = ExecutionRecord(
            kind=operation.kind,
            description=operation.description,
            sql=operation.sql,
            rows_affected=rows_affected,
            target=operation.target,
        )
        self.result.records.append(record)
        if self.listener is not None:
            self.listener(record)
        return record

    def check_foreign_keys(self, target: CatalogSnapshot) -> None:
        """
        Runs ``PRAGMA foreign_key_check`` when the target schema enables
        foreign keys. Raises after the plan has been applied; nothing is
        rolled back.
        """
        if not target.pragmas.get("foreign_keys"):
            return
        violations = self.connection.execute("PRAGMA foreign_key_check").fetchall()
        if violations:
            logger.error("foreign_key_check reported %d violation(s)", len(violations))
            raise ForeignKeyViolation(violations)
