from __future__ import annotations

import logging
import re
import time
from typing import Optional, Pattern

from adapters.metrics.base import Metrics
from adapters.metrics.noop import NoOpMetrics
from safequery.errors.codes import ErrorCode
from safequery.types import ValidationOutcome

log = logging.getLogger(__name__)


# Statement-type tokens that imply mutation, DDL, transaction control or
# privilege changes. Order matters only for which keyword gets reported first.
FORBIDDEN_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "MERGE",
    "GRANT",
    "REVOKE",
    "EXECUTE",
    "EXEC",
    "CALL",
    "COMMIT",
    "ROLLBACK",
    "SAVEPOINT",
    "LOCK",
    "UNLOCK",
)

ALLOWED_STARTS = ("SELECT", "WITH")

_COMMENT_RE = re.compile(r"/\*.*?\*/|--[^\r\n]*", re.DOTALL)
_TRAILING_SEMICOLON_RE = re.compile(r";\s*$")
_ALLOWED_START_RE = re.compile(
    r"^(?:" + "|".join(ALLOWED_STARTS) + r")[\s(]", re.IGNORECASE
)
_FORBIDDEN_RES: tuple[tuple[str, Pattern[str]], ...] = tuple(
    (kw, re.compile(rf"\b{kw}\b")) for kw in FORBIDDEN_KEYWORDS
)


def remove_comments(query: str) -> str:
    """Replace block and line comments with a single space each."""
    return _COMMENT_RE.sub(" ", query)


def count_statements(body: str) -> int:
    """Count non-blank `;`-separated segments."""
    return sum(1 for part in body.split(";") if part.strip())


class QueryValidator:
    """
    Lexical gate for ad-hoc read-only SQL.

    Accepts a single SELECT/WITH statement and rejects anything that mentions
    a forbidden keyword as a standalone word. String literals are scanned too:
    `WHERE action = 'DELETE'` is rejected. This is a denylist plus an
    allow-prefix, not a parser; false positives are the price of never
    letting a mutating statement through.
    """

    name = "validator"

    def __init__(self, metrics: Optional[Metrics] = None) -> None:
        self.metrics = metrics or NoOpMetrics()

    def validate(self, raw: Optional[str]) -> ValidationOutcome:
        t0 = time.perf_counter()
        outcome = self._validate(raw)
        self.metrics.inc_validation(
            accepted=outcome.accepted,
            reason=outcome.error_code.value if outcome.error_code else "ok",
        )
        self.metrics.observe_stage_duration_ms(
            stage=self.name, dt_ms=(time.perf_counter() - t0) * 1000
        )
        if not outcome.accepted:
            log.info(
                "Query rejected by validator",
                extra={"reason": outcome.reason, "error_code": outcome.error_code},
            )
        return outcome

    def _validate(self, raw: Optional[str]) -> ValidationOutcome:
        # 1) nil / blank
        if raw is None or not raw.strip():
            return ValidationOutcome.reject(
                "Query cannot be empty", ErrorCode.VALIDATION_EMPTY
            )

        # 2) comments
        cleaned = remove_comments(raw).strip()
        if not cleaned:
            return ValidationOutcome.reject(
                "Query cannot be empty after removing comments",
                ErrorCode.VALIDATION_EMPTY,
            )

        # 3) single statement
        if count_statements(cleaned) > 1:
            return ValidationOutcome.reject(
                "Multiple statements are not allowed",
                ErrorCode.VALIDATION_MULTI_STATEMENT,
            )

        # 4) one trailing semicolon
        cleaned = _TRAILING_SEMICOLON_RE.sub("", cleaned, count=1).strip()

        # 5) read-only prefix
        if not _ALLOWED_START_RE.match(cleaned):
            return ValidationOutcome.reject(
                "Query must start with SELECT or WITH",
                ErrorCode.VALIDATION_NON_SELECT,
            )

        # 6) forbidden keywords, literals included
        upper = cleaned.upper()
        for keyword, rx in _FORBIDDEN_RES:
            if rx.search(upper):
                return ValidationOutcome.reject(
                    f"Forbidden keyword detected: {keyword}",
                    ErrorCode.VALIDATION_FORBIDDEN_KEYWORD,
                )

        return ValidationOutcome.accept(cleaned)
