from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from schemasync.constants import OperationKind


@dataclass(frozen=True)
class CatalogSnapshot:
    """
    Structured view of one database's catalog, captured once and never
    mutated afterwards.
    """
    tables: Dict[str, str] = field(default_factory=dict)
    indices: Dict[str, str] = field(default_factory=dict)
    columns_by_table: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    pragmas: Dict[str, Any] = field(default_factory=dict)

    def columns(self, table_name: str) -> Tuple[str, ...]:
        return self.columns_by_table.get(table_name, ())

    def to_dict(self):
        return {
            "tables": dict(self.tables),
            "indices": dict(self.indices),
            "columns_by_table": {k: list(v) for k, v in self.columns_by_table.items()},
            "pragmas": dict(self.pragmas),
        }


@dataclass
class Classification:
    new_tables: List[str] = field(default_factory=list)
    removed_tables: List[str] = field(default_factory=list)
    modified_tables: List[str] = field(default_factory=list)
    new_indices: List[str] = field(default_factory=list)
    removed_indices: List[str] = field(default_factory=list)
    changed_indices: List[str] = field(default_factory=list)
    pragma_changes: Dict[str, Tuple[Any, Any]] = field(default_factory=dict)  # name -> (current, target)
    leftover_tables: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return any((
            self.new_tables, self.removed_tables, self.modified_tables,
            self.new_indices, self.removed_indices, self.changed_indices,
            self.pragma_changes, self.leftover_tables,
        ))

    def to_dict(self):
        return {
            "new_tables": list(self.new_tables),
            "removed_tables": list(self.removed_tables),
            "modified_tables": list(self.modified_tables),
            "new_indices": list(self.new_indices),
            "removed_indices": list(self.removed_indices),
            "changed_indices": list(self.changed_indices),
            "pragma_changes": {
                name: {"current": current, "target": target}
                for name, (current, target) in self.pragma_changes.items()
            },
            "leftover_tables": list(self.leftover_tables),
        }


@dataclass(frozen=True)
class Operation:
    """
    One step of a migration plan. ``sql`` is None for entries that are
    logged but not executed.
    """
    kind: OperationKind
    description: str
    sql: Optional[str] = None
    target: Optional[str] = None  # table, index or pragma name
    columns: Tuple[str, ...] = ()

    def __repr__(self):
        return f"Operation(kind='{self.kind.value}', target='{self.target}')"

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "description": self.description,
            "sql": self.sql,
            "target": self.target,
            "columns": list(self.columns),
        }


@dataclass(frozen=True)
class ExecutionRecord:
    kind: OperationKind
    description: str
    sql: Optional[str]
    rows_affected: Optional[int]
    target: Optional[str] = None

    @property
    def executed(self) -> bool:
        return self.rows_affected is not None

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "description": self.description,
            "sql": self.sql,
            "rows_affected": self.rows_affected,
            "target": self.target,
        }


@dataclass
class MigrationResult:
    n_changes: int = 0
    records: List[ExecutionRecord] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.n_changes > 0

    def to_dict(self):
        return {
            "n_changes": self.n_changes,
            "changed": self.changed,
            "records": [r.to_dict() for r in self.records],
        }
