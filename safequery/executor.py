from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from adapters.db.base import DBAdapter
from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from safequery.errors.codes import ErrorCode
from safequery.errors.exceptions import QueryTimeoutError
from safequery.limits import QueryLimits, apply_row_limit
from safequery.types import QueryResult, StageTrace
from safequery.validator import QueryValidator

log = logging.getLogger(__name__)


def materialize_rows(
    rows: Sequence[Sequence[Any]], columns: List[str]
) -> List[Dict[str, Any]]:
    """Turn driver tuples into dicts keyed by column, values untouched."""
    return [{col: row[i] for i, col in enumerate(columns)} for row in rows]


def _unique_columns(columns: List[str]) -> List[str]:
    """
    Keep driver column labels but make them unique.

    `SELECT a.id, b.id ...` yields two `id` labels; the second becomes `id_2`
    so every row dict still has one key per column.
    """
    seen: set[str] = set()
    out: List[str] = []
    for col in columns:
        candidate, n = col, 1
        while candidate in seen:
            n += 1
            candidate = f"{col}_{n}"
        seen.add(candidate)
        out.append(candidate)
    return out


class QueryExecutor:
    """
    Validate, bound and run one ad-hoc query.

    Never raises: validation rejections and execution failures both come back
    as a failed QueryResult. Holds no per-call state, so one instance can be
    shared across concurrent callers.
    """

    name = "executor"

    def __init__(
        self,
        db: DBAdapter,
        limits: QueryLimits,
        validator: Optional[QueryValidator] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.db = db
        self.limits = limits
        self.metrics = metrics or NoOpMetrics()
        self.validator = validator or QueryValidator(metrics=self.metrics)

    def effective_row_limit(self, requested_max_rows: Optional[int]) -> int:
        requested = (
            requested_max_rows if requested_max_rows is not None else self.limits.max_rows
        )
        return max(min(requested, self.limits.max_rows), 1)

    def _trace(self, t0: float, summary: str, **notes: Any) -> StageTrace:
        return StageTrace(
            stage=self.name,
            duration_ms=(time.perf_counter() - t0) * 1000,
            summary=summary,
            notes=notes or None,
        )

    def execute(
        self, query: Optional[str], requested_max_rows: Optional[int] = None
    ) -> QueryResult:
        t0 = time.perf_counter()
        effective = self.effective_row_limit(requested_max_rows)

        validation = self.validator.validate(query)
        if not validation.accepted:
            self.metrics.inc_query(status="rejected")
            return QueryResult.failure(
                validation.reason or "Query rejected",
                validation.error_code or ErrorCode.VALIDATION_NON_SELECT,
                trace=self._trace(t0, "rejected"),
            )

        limited = apply_row_limit(
            validation.normalized_query or "", effective, self.limits.row_limit_style
        )

        try:
            raw_rows, raw_cols = self.db.execute(
                limited, max_rows=effective, timeout_seconds=self.limits.timeout_seconds
            )
        except QueryTimeoutError as exc:
            self.metrics.inc_query(status="timeout")
            log.warning(
                "Query timed out",
                extra={"timeout_seconds": self.limits.timeout_seconds},
            )
            return QueryResult.failure(
                str(exc),
                ErrorCode.DB_TIMEOUT,
                executed_query=limited,
                trace=self._trace(t0, "timeout", error_type=type(exc).__name__),
            )
        except Exception as exc:
            self.metrics.inc_query(status="error")
            log.warning(
                "Query execution failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return QueryResult.failure(
                f"Query execution failed: {exc}",
                ErrorCode.DB_ERROR,
                executed_query=limited,
                trace=self._trace(t0, "error", error_type=type(exc).__name__),
            )
        finally:
            self.metrics.observe_stage_duration_ms(
                stage=self.name, dt_ms=(time.perf_counter() - t0) * 1000
            )

        columns = _unique_columns(list(raw_cols))
        rows = materialize_rows(raw_rows, columns)
        result = QueryResult.success(
            columns,
            rows,
            effective,
            executed_query=limited,
            trace=self._trace(t0, "ok", row_count=len(rows), col_count=len(columns)),
        )
        self.metrics.inc_query(status="ok")
        self.metrics.observe_rows_returned(rows=result.row_count, truncated=result.truncated)
        log.info(
            "Query returned %d row(s)%s in %.1f ms",
            result.row_count,
            " (truncated)" if result.truncated else "",
            result.trace.duration_ms if result.trace else 0.0,
        )
        return result

