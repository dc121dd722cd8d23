from typing import Dict, Iterable, List

from schemasync.canonical import canonicalize
from schemasync.constants import MIGRATION_SUFFIX, RECONCILED_PRAGMAS
from schemasync.exceptions import DestructiveChangeRejected
from schemasync.logging_config import get_logger
from schemasync.models import CatalogSnapshot, Classification

logger = get_logger("comparator")


class Comparator:
    def __init__(self, pragmas: Iterable[str] = RECONCILED_PRAGMAS):
        self.pragmas = tuple(pragmas)

    def classify(
        self,
        current: CatalogSnapshot,
        target: CatalogSnapshot,
        allow_deletions: bool = False,
    ) -> Classification:
        classification = Classification()

        # Tables
        classification.new_tables = sorted(set(target.tables) - set(current.tables))
        classification.removed_tables = sorted(
            name for name in set(current.tables) - set(target.tables)
            if not name.endswith(MIGRATION_SUFFIX)
        )
        classification.modified_tables = self._modified(current.tables, target.tables)
        classification.leftover_tables = sorted(
            name for name in current.tables if name.endswith(MIGRATION_SUFFIX)
        )

        if classification.removed_tables and not allow_deletions:
            raise DestructiveChangeRejected(tables=classification.removed_tables)

        # Indices are never staged under a temporary name
        classification.new_indices = sorted(set(target.indices) - set(current.indices))
        classification.removed_indices = sorted(set(current.indices) - set(target.indices))
        classification.changed_indices = self._modified(current.indices, target.indices)

        # Pragmas
        for name in self.pragmas:
            current_value = current.pragmas.get(name)
            target_value = target.pragmas.get(name)
            if current_value != target_value:
                classification.pragma_changes[name] = (current_value, target_value)

        logger.info("New tables: %s", classification.new_tables)
        logger.info("Removed tables: %s", classification.removed_tables)
        logger.info("Modified tables: %s", classification.modified_tables)
        return classification

    def _modified(self, old: Dict[str, str], new: Dict[str, str]) -> List[str]:
        return sorted(
            name for name, sql in new.items()
            if name in old and canonicalize(old[name]) != canonicalize(sql)
        )
