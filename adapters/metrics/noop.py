from __future__ import annotations

from adapters.metrics.base import Metrics, QueryStatus


class NoOpMetrics(Metrics):
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None:
        return

    def inc_validation(self, *, accepted: bool, reason: str) -> None:
        return

    def inc_query(self, *, status: QueryStatus) -> None:
        return

    def observe_rows_returned(self, *, rows: int, truncated: bool) -> None:
        return
