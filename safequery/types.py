from dataclasses import dataclass, field
from typing import Any, Dict, Optional, List

from safequery.errors.codes import ErrorCode


# =====================
# Tracing / Observability
# =====================


@dataclass(frozen=True)
class StageTrace:
    stage: str
    duration_ms: float
    summary: str = ""
    notes: Optional[Dict[str, Any]] = None


# =====================
# Validation
# =====================


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of a single validate() call.

    Exactly one of `normalized_query` / `reason` is set, keyed by `accepted`.
    Use the `accept` / `reject` constructors instead of building it by hand.
    """

    accepted: bool
    normalized_query: Optional[str] = None
    reason: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def accept(cls, normalized_query: str) -> "ValidationOutcome":
        return cls(accepted=True, normalized_query=normalized_query)

    @classmethod
    def reject(cls, reason: str, error_code: ErrorCode) -> "ValidationOutcome":
        return cls(accepted=False, reason=reason, error_code=error_code)


# =====================
# Execution
# =====================


@dataclass(frozen=True)
class QueryResult:
    """
    Tabular outcome of one executor run.

    Every row is a dict whose keys are exactly `columns`, in the same order.
    `truncated` is True iff the number of returned rows equals
    `effective_row_limit`; a result of exactly N rows cannot be told apart
    from a result that was cut at N.
    """

    succeeded: bool
    columns: List[str] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    truncated: bool = False
    effective_row_limit: int = 0
    error_message: Optional[str] = None

    # === Contract-level semantics ===
    error_code: Optional[ErrorCode] = None

    # Debug / observability only
    executed_query: Optional[str] = None
    trace: Optional[StageTrace] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @classmethod
    def success(
        cls,
        columns: List[str],
        rows: List[Dict[str, Any]],
        effective_row_limit: int,
        *,
        executed_query: Optional[str] = None,
        trace: Optional[StageTrace] = None,
    ) -> "QueryResult":
        return cls(
            succeeded=True,
            columns=list(columns),
            rows=rows,
            truncated=len(rows) == effective_row_limit,
            effective_row_limit=effective_row_limit,
            executed_query=executed_query,
            trace=trace,
        )

    @classmethod
    def failure(
        cls,
        error_message: str,
        error_code: ErrorCode,
        *,
        executed_query: Optional[str] = None,
        trace: Optional[StageTrace] = None,
    ) -> "QueryResult":
        return cls(
            succeeded=False,
            error_message=error_message,
            error_code=error_code,
            executed_query=executed_query,
            trace=trace,
        )
