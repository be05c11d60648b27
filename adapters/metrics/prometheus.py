from __future__ import annotations

from prometheus_client import Counter, Histogram
from safequery.prom import REGISTRY

from adapters.metrics.base import Metrics, QueryStatus

# -----------------------------------------------------------------------------
# Stage-level metrics
# -----------------------------------------------------------------------------
stage_duration_ms = Histogram(
    "stage_duration_ms",
    "Duration (ms) of each query stage",
    ["stage"],  # validator | executor
    buckets=(1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000, 10000, 30000, 60000),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Validator metrics
# -----------------------------------------------------------------------------
validation_checks_total = Counter(
    "validation_checks_total",
    "Total queries checked by the validator",
    ["accepted"],  # "true" | "false"
    registry=REGISTRY,
)

validation_rejections_total = Counter(
    "validation_rejections_total",
    "Count of rejected queries by reason code",
    ["reason"],
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Executor metrics
# -----------------------------------------------------------------------------
query_runs_total = Counter(
    "query_runs_total",
    "Total number of executor runs",
    ["status"],  # ok | rejected | timeout | error
    registry=REGISTRY,
)

query_rows_returned = Histogram(
    "query_rows_returned",
    "Rows materialized per successful query",
    ["truncated"],
    buckets=(0, 1, 10, 50, 100, 250, 500, 1000),
    registry=REGISTRY,
)

# -----------------------------------------------------------------------------
# Schema metadata cache
# -----------------------------------------------------------------------------
cache_events_total = Counter(
    "cache_events_total",
    "Schema metadata cache hit/miss events",
    ["hit"],  # "true" | "false"
    registry=REGISTRY,
)


class PrometheusMetrics(Metrics):
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None:
        stage_duration_ms.labels(stage=stage).observe(float(dt_ms))

    def inc_validation(self, *, accepted: bool, reason: str) -> None:
        validation_checks_total.labels(accepted=("true" if accepted else "false")).inc()
        if not accepted:
            validation_rejections_total.labels(reason=str(reason)).inc()

    def inc_query(self, *, status: QueryStatus) -> None:
        query_runs_total.labels(status=status).inc()

    def observe_rows_returned(self, *, rows: int, truncated: bool) -> None:
        query_rows_returned.labels(truncated=("true" if truncated else "false")).observe(
            rows
        )


# -----------------------------------------------------------------------------
# Label priming to keep /metrics stable
# -----------------------------------------------------------------------------
for accepted in ("true", "false"):
    validation_checks_total.labels(accepted=accepted).inc(0)

for reason in (
    "VALIDATION_EMPTY",
    "VALIDATION_MULTI_STATEMENT",
    "VALIDATION_NON_SELECT",
    "VALIDATION_FORBIDDEN_KEYWORD",
):
    validation_rejections_total.labels(reason=reason).inc(0)

for status in ("ok", "rejected", "timeout", "error"):
    query_runs_total.labels(status=status).inc(0)

for hit in ("true", "false"):
    cache_events_total.labels(hit=hit).inc(0)
