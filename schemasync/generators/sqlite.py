import re
from typing import Iterator

from schemasync.canonical import canonicalize
from schemasync.constants import MIGRATION_SUFFIX, OperationKind
from schemasync.exceptions import DestructiveChangeRejected
from schemasync.generators.base import BaseGenerator
from schemasync.introspector import CatalogReader
from schemasync.logging_config import get_logger
from schemasync.models import CatalogSnapshot, Classification, Operation

logger = get_logger("generator")


class SQLitePlanGenerator(BaseGenerator):
    """
    Turns a classification into the ordered operations that bring the live
    database in line with the target.

    ``generate`` is lazy: the caller is expected to execute each operation
    before asking for the next one. Index reconciliation and leftover
    cleanup re-read the live catalog, and a refused column deletion only
    stops the plan once earlier operations have run.
    """

    def __init__(self, allow_deletions: bool = False):
        self.allow_deletions = allow_deletions

    def generate(
        self,
        classification: Classification,
        current: CatalogSnapshot,
        target: CatalogSnapshot,
        live: CatalogReader,
    ) -> Iterator[Operation]:
        # New and removed tables are easy
        for name in classification.new_tables:
            yield Operation(
                OperationKind.CREATE_TABLE, f"Create table {name}",
                sql=target.tables[name], target=name,
            )
        for name in classification.removed_tables:
            yield Operation(
                OperationKind.DROP_TABLE, f"Drop table {name}",
                sql=f"DROP TABLE {self.quote_ident(name)}", target=name,
            )

        for name in classification.modified_tables:
            yield from self._rebuild_table(name, target, live)

        yield from self._reconcile_indices(target, live)

        for pragma, (current_value, target_value) in classification.pragma_changes.items():
            yield Operation(
                OperationKind.SET_PRAGMA,
                f"Set {pragma} to {target_value} from {current_value}",
                sql=f"PRAGMA {pragma} = {target_value}", target=pragma,
            )

        for name in live.suffixed_tables(MIGRATION_SUFFIX):
            yield self._drop_leftover(name)

    def _rebuild_table(self, name: str, target: CatalogSnapshot, live: CatalogReader) -> Iterator[Operation]:
        temp_name = name + MIGRATION_SUFFIX
        quoted_name = self.quote_ident(name)
        quoted_temp = self.quote_ident(temp_name)

        # A staging table from an interrupted rebuild of this table would
        # make the CREATE below fail
        if temp_name in live.tables():
            yield self._drop_leftover(temp_name)

        # SQLite wants the new table created and renamed over the old one,
        # not the old one moved out of the way first
        yield Operation(
            OperationKind.CREATE_TABLE,
            f"Columns change: Create table {name} with updated schema",
            sql=rename_table_in_sql(target.tables[name], name, temp_name),
            target=temp_name,
        )

        cols = live.table_columns(name)
        target_cols = target.columns(name)
        logger.debug("cols: %s target cols: %s", cols, target_cols)

        removed_columns = [c for c in cols if c not in target_cols]
        if removed_columns and not self.allow_deletions:
            logger.warning(
                "Refusing to remove columns %s from table %s. Current cols are %s "
                "attempting migration to %s",
                removed_columns, name, list(cols), list(target_cols),
                extra={"table_name": name},
            )
            raise DestructiveChangeRejected(table=name, columns=removed_columns)

        common = tuple(c for c in cols if c in target_cols)
        column_list = ", ".join(self.quote_ident(c) for c in common)
        yield Operation(
            OperationKind.COPY_INTERSECTING_COLUMNS,
            f"Migrate data for table {name}",
            sql=(
                f"INSERT INTO {quoted_temp} ({column_list}) "
                f"SELECT {column_list} FROM {quoted_name}"
            ) if common else None,
            target=name,
            columns=common,
        )

        yield Operation(
            OperationKind.DROP_TABLE,
            f"Drop old table {name} now data has been migrated",
            sql=f"DROP TABLE {quoted_name}", target=name,
        )
        yield Operation(
            OperationKind.RENAME_TABLE_FOR_REBUILD,
            f"Columns change: Move new table {name} over old",
            sql=f"ALTER TABLE {quoted_temp} RENAME TO {quoted_name}", target=name,
        )

    def _reconcile_indices(self, target: CatalogSnapshot, live: CatalogReader) -> Iterator[Operation]:
        # Rebuilt and dropped tables took their indices with them
        indices = live.indices()

        for name in sorted(set(indices) - set(target.indices)):
            yield Operation(
                OperationKind.DROP_INDEX, f"Dropping obsolete index {name}",
                sql=f"DROP INDEX {self.quote_ident(name)}", target=name,
            )

        for name, sql in sorted(target.indices.items()):
            if name not in indices:
                yield Operation(
                    OperationKind.CREATE_INDEX, f"Creating new index {name}",
                    sql=sql, target=name,
                )
            elif canonicalize(sql) != canonicalize(indices[name]):
                # No ALTER INDEX in SQLite
                yield Operation(
                    OperationKind.DROP_INDEX, f"Index {name} changed: Dropping old version",
                    sql=f"DROP INDEX {self.quote_ident(name)}", target=name,
                )
                yield Operation(
                    OperationKind.CREATE_INDEX,
                    f"Index {name} changed: Creating updated version in its place",
                    sql=sql, target=name,
                )

    def _drop_leftover(self, name: str) -> Operation:
        return Operation(
            OperationKind.DROP_LEFTOVER_TABLE, f"Removing leftover temporary table {name}",
            sql=f"DROP TABLE IF EXISTS {self.quote_ident(name)}", target=name,
        )


def rename_table_in_sql(sql: str, old_name: str, new_name: str) -> str:
    """
    Rewrites every whole-word occurrence of ``old_name`` in ``sql``.

    This is a textual substitution: an unrelated identifier spelled the same
    as the table is rewritten too.
    """
    return re.sub(rf"\b{re.escape(old_name)}\b", lambda _: new_name, sql)
