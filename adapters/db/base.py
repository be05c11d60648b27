from typing import Any, Dict, List, Optional, Protocol, Tuple

MetadataRow = Dict[str, Any]


class DBAdapter(Protocol):
    """Abstract database adapter for read-only queries and schema metadata."""

    name: str
    dialect: str

    def execute(
        self, sql: str, *, max_rows: int, timeout_seconds: float
    ) -> Tuple[List[Tuple[Any, ...]], List[str]]:
        """
        Execute a SELECT query and return (rows, columns).

        Must stop fetching after `max_rows` rows, cancel the statement after
        `timeout_seconds` (raising QueryTimeoutError) and release the
        connection on every exit path.
        """

    def server_version(self) -> str:
        """Dotted server version string, e.g. "16.2" or "3.45.1"."""

    def ping(self) -> None:
        """Cheap connectivity check. Raise on failure."""

    def fetch_tables(
        self, owner: Optional[str] = None, table: Optional[str] = None
    ) -> List[MetadataRow]:
        """Rows with keys: owner, table_name, comments, num_rows."""

    def fetch_columns(self, owner: str, table: str) -> List[MetadataRow]:
        """
        Rows with keys: column_name, data_type, data_length, data_precision,
        data_scale, nullable, default_value, comments, position.
        """

    def fetch_constraints(self, owner: str, table: str) -> List[MetadataRow]:
        """Rows with keys: constraint_name, constraint_type (P/U/C), columns, search_condition."""

    def fetch_foreign_keys(
        self, owner: Optional[str] = None, table: Optional[str] = None
    ) -> List[MetadataRow]:
        """
        Rows with keys: constraint_name, owner, table_name, source_columns,
        target_owner, target_table, target_columns, delete_rule.
        """
