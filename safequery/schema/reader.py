from __future__ import annotations

import logging
from typing import Dict, List, Optional

from adapters.db.base import DBAdapter, MetadataRow
from safequery.schema.models import (
    ColumnInfo,
    ConstraintInfo,
    ForeignKeyInfo,
    TableInfo,
)

log = logging.getLogger(__name__)


def _to_table(row: MetadataRow) -> TableInfo:
    num_rows = row.get("num_rows")
    return TableInfo(
        owner=str(row["owner"]),
        table_name=str(row["table_name"]),
        comments=row.get("comments"),
        num_rows=int(num_rows) if num_rows is not None else None,
    )


def _to_column(row: MetadataRow) -> ColumnInfo:
    def _opt_int(key: str) -> Optional[int]:
        value = row.get(key)
        return int(value) if value is not None else None

    default = row.get("default_value")
    return ColumnInfo(
        column_name=str(row["column_name"]),
        data_type=str(row.get("data_type") or ""),
        data_length=_opt_int("data_length"),
        data_precision=_opt_int("data_precision"),
        data_scale=_opt_int("data_scale"),
        nullable=bool(row.get("nullable", True)),
        default_value=str(default) if default is not None else None,
        comments=row.get("comments"),
        position=int(row.get("position") or 0),
    )


def _to_constraint(row: MetadataRow) -> ConstraintInfo:
    return ConstraintInfo(
        constraint_name=str(row["constraint_name"]),
        constraint_type=str(row["constraint_type"]),
        columns=list(row.get("columns") or []),
        search_condition=row.get("search_condition"),
    )


def _to_foreign_key(row: MetadataRow, qualified: bool) -> ForeignKeyInfo:
    if qualified:
        source = f"{row['owner']}.{row['table_name']}"
        target = f"{row['target_owner']}.{row['target_table']}"
    else:
        source = str(row["table_name"])
        target = str(row["target_table"])
    return ForeignKeyInfo(
        constraint_name=str(row["constraint_name"]),
        source_table=source,
        source_columns=list(row.get("source_columns") or []),
        target_table=target,
        target_columns=list(row.get("target_columns") or []),
        delete_rule=row.get("delete_rule"),
    )


class SchemaReader:
    """
    Read-only, idempotent schema metadata lookups.

    System schemas are filtered by the adapter's metadata queries; this class
    only maps rows into the schema models and composes full table views.
    """

    def __init__(self, db: DBAdapter) -> None:
        self.db = db

    def list_tables(self) -> List[TableInfo]:
        return [_to_table(r) for r in self.db.fetch_tables()]

    def get_columns(self, owner: str, table: str) -> List[ColumnInfo]:
        return [_to_column(r) for r in self.db.fetch_columns(owner, table)]

    def get_constraints(self, owner: str, table: str) -> List[ConstraintInfo]:
        return [_to_constraint(r) for r in self.db.fetch_constraints(owner, table)]

    def get_foreign_keys(self, owner: str, table: str) -> List[ForeignKeyInfo]:
        return [
            _to_foreign_key(r, qualified=False)
            for r in self.db.fetch_foreign_keys(owner, table)
        ]

    def get_all_foreign_keys(self) -> List[ForeignKeyInfo]:
        return [_to_foreign_key(r, qualified=True) for r in self.db.fetch_foreign_keys()]

    def _enrich(self, table: TableInfo) -> TableInfo:
        return (
            table.with_columns(self.get_columns(table.owner, table.table_name))
            .with_constraints(self.get_constraints(table.owner, table.table_name))
            .with_foreign_keys(self.get_foreign_keys(table.owner, table.table_name))
        )

    def get_full_table(self, owner: str, table: str) -> Optional[TableInfo]:
        rows = self.db.fetch_tables(owner=owner, table=table)
        if not rows:
            return None
        return self._enrich(_to_table(rows[0]))

    def find_table(self, table: str) -> Optional[TableInfo]:
        """First table with this name, searching owners in order."""
        rows = self.db.fetch_tables(table=table)
        if not rows:
            return None
        if len(rows) > 1:
            log.debug(
                "Table name matches several owners; using the first",
                extra={"table": table, "owners": [r["owner"] for r in rows]},
            )
        return self._enrich(_to_table(rows[0]))

    def lookup(self, name: str) -> Optional[TableInfo]:
        """Resolve `OWNER.TABLE` or a bare table name."""
        name = (name or "").strip()
        if not name:
            return None
        if "." in name:
            owner, table = name.split(".", 1)
            return self.get_full_table(owner, table)
        return self.find_table(name)

    def get_overview(self) -> Dict[str, List[TableInfo]]:
        """Tables with their columns, grouped by owner in listing order."""
        overview: Dict[str, List[TableInfo]] = {}
        for table in self.list_tables():
            full = table.with_columns(self.get_columns(table.owner, table.table_name))
            overview.setdefault(table.owner, []).append(full)
        return overview
