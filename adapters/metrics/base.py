from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

QueryStatus = Literal["ok", "rejected", "timeout", "error"]


class Metrics(ABC):
    @abstractmethod
    def observe_stage_duration_ms(self, *, stage: str, dt_ms: float) -> None: ...

    @abstractmethod
    def inc_validation(self, *, accepted: bool, reason: str) -> None: ...

    @abstractmethod
    def inc_query(self, *, status: QueryStatus) -> None: ...

    @abstractmethod
    def observe_rows_returned(self, *, rows: int, truncated: bool) -> None: ...
