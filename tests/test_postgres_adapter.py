from __future__ import annotations

from typing import Any, List, Optional

import pytest
from psycopg import errors as pg_errors

import adapters.db.postgres_adapter as pg
from adapters.db.postgres_adapter import PostgresAdapter
from safequery.errors.exceptions import QueryTimeoutError


class Column:
    def __init__(self, name: str):
        self.name = name


class FakeCursor:
    def __init__(self, conn: "FakeConn", name: Optional[str]):
        self.conn = conn
        self.name = name
        self.description = None
        self.fetched_with: Optional[int] = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.conn.statements.append(sql)
        if self.conn.exc is not None:
            raise self.conn.exc
        self.description = [Column(c) for c in self.conn.cols]

    def fetchmany(self, size: int):
        self.fetched_with = size
        return self.conn.rows[:size]


class FakeConn:
    """Stands in for a psycopg connection and records what the adapter does."""

    def __init__(self, rows=None, cols=None, exc: Optional[Exception] = None):
        self.rows = rows or []
        self.cols = cols or []
        self.exc = exc
        self.read_only = False
        self.statements: List[Any] = []
        self.settings: List[Any] = []
        self.cursors: List[FakeCursor] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        self.settings.append((sql, params))

    def cursor(self, name=None, **kw):
        cur = FakeCursor(self, name)
        self.cursors.append(cur)
        return cur


@pytest.fixture
def fake_conn(monkeypatch):
    conn = FakeConn(rows=[(i, f"item-{i}") for i in range(50)], cols=["id", "label"])
    monkeypatch.setattr(pg.psycopg, "connect", lambda *a, **kw: conn)
    return conn


def test_select_runs_through_named_cursor_capped_at_max_rows(fake_conn):
    rows, cols = PostgresAdapter("dbname=demo").execute(
        "SELECT id, label FROM items LIMIT 1000000", max_rows=5, timeout_seconds=2
    )

    assert cols == ["id", "label"]
    assert rows == [(i, f"item-{i}") for i in range(5)]

    [cur] = fake_conn.cursors
    assert cur.name == pg.SELECT_CURSOR_NAME
    assert cur.fetched_with == 5
    assert fake_conn.statements == ["SELECT id, label FROM items LIMIT 1000000"]


def test_timeout_is_set_for_the_transaction_on_a_read_only_connection(fake_conn):
    PostgresAdapter("dbname=demo").execute("SELECT 1", max_rows=1, timeout_seconds=1.5)

    assert fake_conn.read_only is True
    assert fake_conn.settings == [
        ("SELECT set_config('statement_timeout', %s, true)", ("1500",))
    ]


def test_query_canceled_becomes_timeout_error(monkeypatch):
    conn = FakeConn(exc=pg_errors.QueryCanceled("canceling statement due to statement timeout"))
    monkeypatch.setattr(pg.psycopg, "connect", lambda *a, **kw: conn)

    with pytest.raises(QueryTimeoutError) as ei:
        PostgresAdapter("dbname=demo").execute("SELECT pg_sleep(60)", max_rows=1, timeout_seconds=3)
    assert str(ei.value) == "Query timed out after 3 seconds"
