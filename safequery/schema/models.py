from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional

CONSTRAINT_TYPES = {
    "P": "PRIMARY KEY",
    "U": "UNIQUE",
    "C": "CHECK",
    "R": "FOREIGN KEY",
}

_LENGTH_TYPES = ("CHAR", "RAW")


@dataclass(frozen=True)
class ColumnInfo:
    column_name: str
    data_type: str
    data_length: Optional[int] = None
    data_precision: Optional[int] = None
    data_scale: Optional[int] = None
    nullable: bool = True
    default_value: Optional[str] = None
    comments: Optional[str] = None
    position: int = 0

    @property
    def formatted_type(self) -> str:
        """NUMBER(10,2), NUMBER(10), VARCHAR(255) or the bare type name."""
        if self.data_precision is not None and self.data_scale:
            return f"{self.data_type}({self.data_precision},{self.data_scale})"
        if self.data_precision is not None:
            return f"{self.data_type}({self.data_precision})"
        if self.data_length is not None and any(
            t in self.data_type.upper() for t in _LENGTH_TYPES
        ):
            return f"{self.data_type}({self.data_length})"
        return self.data_type


@dataclass(frozen=True)
class ConstraintInfo:
    constraint_name: str
    constraint_type: str
    columns: List[str] = field(default_factory=list)
    search_condition: Optional[str] = None

    @property
    def type_description(self) -> str:
        return CONSTRAINT_TYPES.get(self.constraint_type, self.constraint_type)


@dataclass(frozen=True)
class ForeignKeyInfo:
    constraint_name: str
    source_table: str
    source_columns: List[str] = field(default_factory=list)
    target_table: str = ""
    target_columns: List[str] = field(default_factory=list)
    delete_rule: Optional[str] = None


@dataclass(frozen=True)
class TableInfo:
    """A table summary, optionally enriched with columns and constraints."""

    owner: str
    table_name: str
    comments: Optional[str] = None
    num_rows: Optional[int] = None
    columns: List[ColumnInfo] = field(default_factory=list)
    constraints: List[ConstraintInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.owner}.{self.table_name}"

    def with_columns(self, columns: List[ColumnInfo]) -> "TableInfo":
        return replace(self, columns=list(columns))

    def with_constraints(self, constraints: List[ConstraintInfo]) -> "TableInfo":
        return replace(self, constraints=list(constraints))

    def with_foreign_keys(self, foreign_keys: List[ForeignKeyInfo]) -> "TableInfo":
        return replace(self, foreign_keys=list(foreign_keys))
