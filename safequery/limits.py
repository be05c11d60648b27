from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

RowLimitStyle = Literal["fetch_first", "limit"]

ROW_LIMIT_STYLES: tuple[str, ...] = ("fetch_first", "limit")

# Markers that mean the caller already bounded the result set.
_EXISTING_LIMIT_MARKERS = ("FETCH FIRST", "FETCH NEXT", "ROWNUM")
_TRAILING_LIMIT_RE = re.compile(r"\bLIMIT\s+\d+(\s+OFFSET\s+\d+)?\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class QueryLimits:
    """Execution bounds resolved once at startup and threaded into the executor."""

    max_rows: int = 1000
    timeout_seconds: int = 30
    row_limit_style: RowLimitStyle = "fetch_first"


def has_row_limit(query: str) -> bool:
    """
    True when the caller already bounded the result set.

    A trailing `LIMIT n [OFFSET m]` counts for either style: appending
    `FETCH FIRST` after it is rejected by Postgres, and the adapter's
    fetch cap still bounds what comes back.
    """
    upper = query.upper()
    if any(marker in upper for marker in _EXISTING_LIMIT_MARKERS):
        return True
    return bool(_TRAILING_LIMIT_RE.search(query.rstrip()))


def apply_row_limit(query: str, max_rows: int, style: RowLimitStyle = "fetch_first") -> str:
    """
    Append a row-limit clause unless the query already carries one.

    This is a textual append to the end of the statement, not a rewrite. A
    query whose tail would make the appended clause invalid fails at the
    database and comes back as an execution error.
    """
    if has_row_limit(query):
        return query
    if style == "limit":
        return f"{query} LIMIT {int(max_rows)}"
    return f"{query} FETCH FIRST {int(max_rows)} ROWS ONLY"
