"""
Declarative schema migration for SQLite.

The live database is compared with a pristine in-memory database built from
the target schema text, and the differences are applied in place:

    changed = migrate(connection, open("schema.sql").read())

Tables whose definition changed are rebuilt (create under a temporary name,
copy the common columns, drop, rename) so that existing rows survive.
Dropping tables or columns must be allowed explicitly.

The plan runs in one transaction with foreign key enforcement suspended on
the connection and restored afterwards. Dropping a referenced table during a
rebuild would otherwise count as a violation that no later statement clears.
Consistency is checked with ``PRAGMA foreign_key_check`` instead, before the
commit.

Known limitation: there is no rollback. The transaction is committed whether
the plan finished or failed part way, including a failed foreign key check,
so the statements that already ran stay applied. Re-running after fixing the
cause is safe; leftover ``*_migration_new`` tables are cleaned up.
"""

import sqlite3
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from schemasync.comparator import Comparator
from schemasync.constants import RECONCILED_PRAGMAS, TRACKED_PRAGMAS
from schemasync.executor import Executor, Listener
from schemasync.generators.sqlite import SQLitePlanGenerator
from schemasync.introspector import CatalogReader, pristine_database
from schemasync.logging_config import get_logger
from schemasync.models import CatalogSnapshot, Classification, MigrationResult

logger = get_logger("migrator")


class Migrator:
    def __init__(
        self,
        connection: sqlite3.Connection,
        schema: str,
        allow_deletions: bool = False,
        pragmas: Iterable[str] = RECONCILED_PRAGMAS,
        listener: Optional[Listener] = None,
    ):
        self.connection = connection
        self.schema = schema
        self.allow_deletions = allow_deletions
        self.pragmas = tuple(pragmas)
        self.listener = listener

        tracked = TRACKED_PRAGMAS + tuple(p for p in self.pragmas if p not in TRACKED_PRAGMAS)
        self.live = CatalogReader(connection, pragmas=tracked)
        self._tracked = tracked

    def plan(self) -> Classification:
        """Classifies the differences without touching the live database."""
        with pristine_database(self.schema) as pristine:
            target = CatalogReader(pristine, pragmas=self._tracked).snapshot()
        current = self.live.snapshot()
        return Comparator(self.pragmas).classify(current, target, self.allow_deletions)

    def migrate(self) -> MigrationResult:
        with pristine_database(self.schema) as pristine:
            target = CatalogReader(pristine, pragmas=self._tracked).snapshot()
            current = self.live.snapshot()

            classification = Comparator(self.pragmas).classify(
                current, target, self.allow_deletions
            )

            executor = Executor(self.connection, listener=self.listener)
            generator = SQLitePlanGenerator(allow_deletions=self.allow_deletions)
            with self._foreign_keys_suspended(current, target):
                if not self.connection.in_transaction:
                    self.connection.execute("BEGIN")
                # Cleared at COMMIT; covers callers that hold their own transaction
                self.connection.execute("PRAGMA defer_foreign_keys = ON")
                try:
                    for operation in generator.generate(classification, current, target, self.live):
                        executor.apply(operation)
                    executor.check_foreign_keys(target)
                finally:
                    # Whatever ran stays applied, on success or failure
                    if self.connection.in_transaction:
                        self.connection.commit()

        if executor.n_changes:
            logger.info("Database migration applied %d change(s)", executor.n_changes)
        else:
            logger.info("Database is already up to date")
        return executor.result

    @contextmanager
    def _foreign_keys_suspended(
        self, current: CatalogSnapshot, target: CatalogSnapshot
    ) -> Iterator[None]:
        """
        Turns foreign key enforcement off for the duration of the plan.

        ``PRAGMA foreign_keys`` is a no-op inside a transaction, so a caller
        that already holds one keeps its setting and relies on deferral.
        Afterwards the original setting is restored, or the target's when
        ``foreign_keys`` is one of the reconciled pragmas.
        """
        enabled = bool(current.pragmas.get("foreign_keys"))
        if "foreign_keys" in self.pragmas:
            enabled_after = bool(target.pragmas.get("foreign_keys"))
        else:
            enabled_after = enabled

        suspended = enabled and not self.connection.in_transaction
        if suspended:
            logger.debug("Suspending foreign key enforcement for the migration")
            self.connection.execute("PRAGMA foreign_keys = OFF")
        try:
            yield
        finally:
            if (suspended or enabled_after != enabled) and not self.connection.in_transaction:
                self.connection.execute(f"PRAGMA foreign_keys = {'ON' if enabled_after else 'OFF'}")


def migrate(
    connection: sqlite3.Connection,
    schema: str,
    allow_deletions: bool = False,
    pragmas: Iterable[str] = RECONCILED_PRAGMAS,
    listener: Optional[Listener] = None,
) -> bool:
    """
    Brings ``connection``'s schema in line with the DDL in ``schema``.

    Args:
        connection: Live sqlite3 connection to migrate
        schema: Target schema as SQL text
        allow_deletions: Permit dropping tables and columns
        pragmas: Pragmas to copy from the target when they differ
        listener: Called with an ExecutionRecord for every operation

    Returns:
        True if any statement was executed
    """
    migrator = Migrator(
        connection, schema,
        allow_deletions=allow_deletions, pragmas=pragmas, listener=listener,
    )
    return migrator.migrate().changed
