import logging
from typing import Any, Dict, List, Optional, Tuple

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row

from adapters.db.base import DBAdapter, MetadataRow
from safequery.errors.exceptions import QueryTimeoutError

log = logging.getLogger(__name__)

# Schemas that belong to the server, not to the application.
SYSTEM_SCHEMAS = ["pg_catalog", "information_schema", "pg_toast"]

SELECT_CURSOR_NAME = "safequery_select"

_SCHEMA_FILTER = """
    n.nspname <> ALL(%(excluded)s)
    AND n.nspname NOT LIKE 'pg\\_temp\\_%%'
    AND n.nspname NOT LIKE 'pg\\_toast\\_temp\\_%%'
"""

_TABLES_SQL = (
    """
    SELECT n.nspname AS owner,
           c.relname AS table_name,
           obj_description(c.oid, 'pg_class') AS comments,
           CASE WHEN c.reltuples < 0 THEN NULL ELSE c.reltuples::bigint END AS num_rows
    FROM pg_catalog.pg_class c
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    WHERE c.relkind IN ('r', 'p')
      AND """
    + _SCHEMA_FILTER
    + """
      AND (%(owner)s::text IS NULL OR lower(n.nspname) = lower(%(owner)s::text))
      AND (%(table)s::text IS NULL OR lower(c.relname) = lower(%(table)s::text))
    ORDER BY n.nspname, c.relname
    """
)

_COLUMNS_SQL = """
    SELECT c.column_name,
           c.data_type,
           c.character_maximum_length AS data_length,
           CASE WHEN c.data_type IN ('numeric', 'decimal') THEN c.numeric_precision END AS data_precision,
           CASE WHEN c.data_type IN ('numeric', 'decimal') THEN c.numeric_scale END AS data_scale,
           c.is_nullable = 'YES' AS nullable,
           c.column_default AS default_value,
           col_description(
               (quote_ident(c.table_schema) || '.' || quote_ident(c.table_name))::regclass,
               c.ordinal_position
           ) AS comments,
           c.ordinal_position AS position
    FROM information_schema.columns c
    WHERE lower(c.table_schema) = lower(%(owner)s) AND lower(c.table_name) = lower(%(table)s)
    ORDER BY c.ordinal_position
"""

_CONSTRAINTS_SQL = """
    SELECT con.conname AS constraint_name,
           upper(con.contype::text) AS constraint_type,
           CASE WHEN con.contype = 'c' THEN pg_get_constraintdef(con.oid) END AS search_condition,
           ARRAY(
               SELECT a.attname
               FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
               JOIN pg_catalog.pg_attribute a
                 ON a.attrelid = con.conrelid AND a.attnum = k.attnum
               ORDER BY k.ord
           ) AS columns
    FROM pg_catalog.pg_constraint con
    JOIN pg_catalog.pg_class c ON c.oid = con.conrelid
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    WHERE lower(n.nspname) = lower(%(owner)s) AND lower(c.relname) = lower(%(table)s)
      AND con.contype IN ('p', 'u', 'c')
    ORDER BY upper(con.contype::text), con.conname
"""

_FOREIGN_KEYS_SQL = (
    """
    SELECT con.conname AS constraint_name,
           n.nspname AS owner,
           c.relname AS table_name,
           rn.nspname AS target_owner,
           rc.relname AS target_table,
           ARRAY(
               SELECT a.attname
               FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
               JOIN pg_catalog.pg_attribute a
                 ON a.attrelid = con.conrelid AND a.attnum = k.attnum
               ORDER BY k.ord
           ) AS source_columns,
           ARRAY(
               SELECT a.attname
               FROM unnest(con.confkey) WITH ORDINALITY AS k(attnum, ord)
               JOIN pg_catalog.pg_attribute a
                 ON a.attrelid = con.confrelid AND a.attnum = k.attnum
               ORDER BY k.ord
           ) AS target_columns,
           CASE con.confdeltype
               WHEN 'a' THEN 'NO ACTION'
               WHEN 'r' THEN 'RESTRICT'
               WHEN 'c' THEN 'CASCADE'
               WHEN 'n' THEN 'SET NULL'
               WHEN 'd' THEN 'SET DEFAULT'
           END AS delete_rule
    FROM pg_catalog.pg_constraint con
    JOIN pg_catalog.pg_class c ON c.oid = con.conrelid
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    JOIN pg_catalog.pg_class rc ON rc.oid = con.confrelid
    JOIN pg_catalog.pg_namespace rn ON rn.oid = rc.relnamespace
    WHERE con.contype = 'f'
      AND """
    + _SCHEMA_FILTER
    + """
      AND (%(owner)s::text IS NULL OR lower(n.nspname) = lower(%(owner)s::text))
      AND (%(table)s::text IS NULL OR lower(c.relname) = lower(%(table)s::text))
    ORDER BY n.nspname, c.relname, con.conname
    """
)


class PostgresAdapter(DBAdapter):
    name = "postgres"
    dialect = "postgres"

    def __init__(self, dsn: str, connect_timeout: int = 10):
        """
        DSN example:
        "dbname=demo user=postgres password=postgres host=localhost port=5432"
        """
        self.dsn = dsn
        self.connect_timeout = connect_timeout

    def _connect(self) -> psycopg.Connection:
        conn = psycopg.connect(self.dsn, connect_timeout=self.connect_timeout)
        # Must be set before the first statement opens a transaction.
        conn.read_only = True
        return conn

    def _fetch_metadata(self, sql: str, params: Dict[str, Any]) -> List[MetadataRow]:
        with self._connect() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(sql, params)
                return list(cur.fetchall() or [])

    def execute(
        self, sql: str, *, max_rows: int, timeout_seconds: float
    ) -> Tuple[List[Tuple[Any, ...]], List[str]]:
        """
        Execute a read-only SELECT query and return (rows, columns).

        Runs inside a READ ONLY transaction with a transaction-local
        statement_timeout, so the server cancels the statement itself.
        The query goes through a named (server-side) cursor: only the
        `max_rows` rows asked for cross the wire, whatever the query's own
        LIMIT says.
        """
        timeout_ms = max(int(timeout_seconds * 1000), 1)
        with self._connect() as conn:
            conn.execute(
                "SELECT set_config('statement_timeout', %s, true)",
                (str(timeout_ms),),
            )
            log.debug("Executing SQL: %s", sql.strip().replace("\n", " "))
            with conn.cursor(name=SELECT_CURSOR_NAME) as cur:
                try:
                    cur.execute(sql)
                    desc = cur.description or ()
                    cols: List[str] = [d.name for d in desc if d]
                    rows = cur.fetchmany(max_rows) if desc else []
                except pg_errors.QueryCanceled as exc:
                    raise QueryTimeoutError(timeout_seconds) from exc
            log.info("Query executed successfully. Returned %d rows.", len(rows))
            return list(rows), cols

    def server_version(self) -> str:
        with self._connect() as conn:
            row = conn.execute("SHOW server_version").fetchone()
            return str(row[0]) if row else ""

    def ping(self) -> None:
        with self._connect() as conn:
            conn.execute("SELECT 1")

    def fetch_tables(
        self, owner: Optional[str] = None, table: Optional[str] = None
    ) -> List[MetadataRow]:
        return self._fetch_metadata(
            _TABLES_SQL, {"excluded": SYSTEM_SCHEMAS, "owner": owner, "table": table}
        )

    def fetch_columns(self, owner: str, table: str) -> List[MetadataRow]:
        return self._fetch_metadata(_COLUMNS_SQL, {"owner": owner, "table": table})

    def fetch_constraints(self, owner: str, table: str) -> List[MetadataRow]:
        return self._fetch_metadata(_CONSTRAINTS_SQL, {"owner": owner, "table": table})

    def fetch_foreign_keys(
        self, owner: Optional[str] = None, table: Optional[str] = None
    ) -> List[MetadataRow]:
        return self._fetch_metadata(
            _FOREIGN_KEYS_SQL,
            {"excluded": SYSTEM_SCHEMAS, "owner": owner, "table": table},
        )
