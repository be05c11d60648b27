import re
import sqlite3
import logging
import time
from contextlib import closing
from typing import Any, Dict, List, Optional, Tuple
from adapters.db.base import DBAdapter, MetadataRow
from pathlib import Path

from safequery.errors.exceptions import QueryTimeoutError

log = logging.getLogger(__name__)

# SQLite has a single attached database by default; expose it as the owner.
DEFAULT_OWNER = "main"

# Progress handler granularity (SQLite VM instructions between deadline checks).
_PROGRESS_STEPS = 1000

# "VARCHAR(20)" -> ("VARCHAR", "20", None); "DECIMAL(10, 2)" -> ("DECIMAL", "10", "2")
_DECLARED_TYPE_RE = re.compile(r"^\s*([^(]*?)\s*(?:\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\))?\s*$")
_NUMERIC_TYPES = ("DECIMAL", "NUMERIC", "NUMBER")


def _split_declared_type(declared: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "data_type": (declared or "").upper(),
        "data_length": None,
        "data_precision": None,
        "data_scale": None,
    }
    m = _DECLARED_TYPE_RE.match(declared or "")
    if not m:
        return out
    base, first, second = m.group(1).upper(), m.group(2), m.group(3)
    out["data_type"] = base
    if first is None:
        return out
    if any(t in base for t in _NUMERIC_TYPES):
        out["data_precision"] = int(first)
        out["data_scale"] = int(second) if second is not None else None
    else:
        out["data_length"] = int(first)
    return out


class SQLiteAdapter(DBAdapter):
    name = "sqlite"
    dialect = "sqlite"

    def __init__(self, path: str):
        # resolve absolute path for safety
        self.path = Path(path).resolve()
        log.info("SQLiteAdapter initialized with DB path: %s", self.path)

    def _connect(self) -> sqlite3.Connection:
        if not self.path.exists():
            raise FileNotFoundError(f"SQLite DB does not exist: {self.path}")
        # use proper SQLite URI (not .as_uri())
        uri = f"file:{self.path}?mode=ro"
        conn = sqlite3.connect(uri, uri=True, timeout=3)
        conn.execute("PRAGMA query_only = ON;")
        return conn

    def execute(
        self, sql: str, *, max_rows: int, timeout_seconds: float
    ) -> Tuple[List[Tuple[Any, ...]], List[str]]:
        deadline = time.monotonic() + timeout_seconds

        def _past_deadline() -> int:
            # Non-zero aborts the running statement with "interrupted".
            return 1 if time.monotonic() > deadline else 0

        with closing(self._connect()) as conn:
            conn.set_progress_handler(_past_deadline, _PROGRESS_STEPS)
            log.debug("Executing SQL: %s", sql.strip().replace("\n", " "))
            try:
                cur = conn.execute(sql)
                cols = [desc[0] for desc in cur.description or ()]
                rows = cur.fetchmany(max_rows) if cols else []
            except sqlite3.OperationalError as exc:
                if "interrupted" in str(exc).lower():
                    raise QueryTimeoutError(timeout_seconds) from exc
                raise
            finally:
                conn.set_progress_handler(None, 0)
            log.info("Query executed successfully. Returned %d rows.", len(rows))
            return rows, cols

    def server_version(self) -> str:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT sqlite_version()").fetchone()
            return str(row[0]) if row else ""

    def ping(self) -> None:
        with closing(self._connect()) as conn:
            conn.execute("SELECT 1").fetchone()

    def _table_names(self, conn: sqlite3.Connection, table: Optional[str]) -> List[str]:
        sql = (
            "SELECT name FROM sqlite_master "
            "WHERE type='table' AND name NOT LIKE 'sqlite_%'"
        )
        params: Tuple[Any, ...] = ()
        if table is not None:
            sql += " AND name = ? COLLATE NOCASE"
            params = (table,)
        sql += " ORDER BY name;"
        return [r[0] for r in conn.execute(sql, params).fetchall() if r and r[0]]

    @staticmethod
    def _owner_matches(owner: Optional[str]) -> bool:
        return owner is None or owner.lower() == DEFAULT_OWNER

    def fetch_tables(
        self, owner: Optional[str] = None, table: Optional[str] = None
    ) -> List[MetadataRow]:
        if not self._owner_matches(owner):
            return []
        with closing(self._connect()) as conn:
            return [
                {
                    "owner": DEFAULT_OWNER,
                    "table_name": name,
                    "comments": None,
                    "num_rows": None,
                }
                for name in self._table_names(conn, table)
            ]

    def fetch_columns(self, owner: str, table: str) -> List[MetadataRow]:
        if not self._owner_matches(owner):
            return []
        with closing(self._connect()) as conn:
            cur = conn.execute(
                "SELECT cid, name, type, \"notnull\", dflt_value, pk "
                "FROM pragma_table_info(?) ORDER BY cid;",
                (table,),
            )
            rows: List[MetadataRow] = []
            for cid, name, declared, notnull, default, _pk in cur.fetchall():
                rows.append(
                    {
                        "column_name": name,
                        **_split_declared_type(declared),
                        "nullable": not bool(notnull),
                        "default_value": default,
                        "comments": None,
                        "position": int(cid) + 1,
                    }
                )
            return rows

    def fetch_constraints(self, owner: str, table: str) -> List[MetadataRow]:
        if not self._owner_matches(owner):
            return []
        out: List[MetadataRow] = []
        with closing(self._connect()) as conn:
            pk_cols = self._primary_key(conn, table)
            if pk_cols:
                out.append(
                    {
                        "constraint_name": f"pk_{table}",
                        "constraint_type": "P",
                        "columns": pk_cols,
                        "search_condition": None,
                    }
                )

            indexes = conn.execute(
                "SELECT name FROM pragma_index_list(?) "
                "WHERE \"unique\" = 1 AND origin = 'u' ORDER BY name;",
                (table,),
            ).fetchall()
            for (index_name,) in indexes:
                cols = [
                    r[0]
                    for r in conn.execute(
                        "SELECT name FROM pragma_index_info(?) ORDER BY seqno;",
                        (index_name,),
                    ).fetchall()
                ]
                out.append(
                    {
                        "constraint_name": index_name,
                        "constraint_type": "U",
                        "columns": cols,
                        "search_condition": None,
                    }
                )
        return out

    def _primary_key(self, conn: sqlite3.Connection, table: str) -> List[str]:
        return [
            r[0]
            for r in conn.execute(
                "SELECT name FROM pragma_table_info(?) WHERE pk > 0 ORDER BY pk;",
                (table,),
            ).fetchall()
        ]

    def fetch_foreign_keys(
        self, owner: Optional[str] = None, table: Optional[str] = None
    ) -> List[MetadataRow]:
        if not self._owner_matches(owner):
            return []
        out: List[MetadataRow] = []
        with closing(self._connect()) as conn:
            for name in self._table_names(conn, table):
                grouped: Dict[int, MetadataRow] = {}
                cur = conn.execute(
                    "SELECT id, seq, \"table\", \"from\", \"to\", on_delete "
                    "FROM pragma_foreign_key_list(?) ORDER BY id, seq;",
                    (name,),
                )
                for fk_id, _seq, target, src_col, dst_col, on_delete in cur.fetchall():
                    entry = grouped.setdefault(
                        fk_id,
                        {
                            "constraint_name": f"fk_{name}_{fk_id}",
                            "owner": DEFAULT_OWNER,
                            "table_name": name,
                            "source_columns": [],
                            "target_owner": DEFAULT_OWNER,
                            "target_table": target,
                            "target_columns": [],
                            "delete_rule": on_delete or "NO ACTION",
                        },
                    )
                    entry["source_columns"].append(src_col)
                    if dst_col is not None:
                        entry["target_columns"].append(dst_col)
                for entry in grouped.values():
                    # REFERENCES parent without a column list targets the parent's key.
                    if not entry["target_columns"]:
                        entry["target_columns"] = self._primary_key(
                            conn, entry["target_table"]
                        )
                    out.append(entry)
        return out
