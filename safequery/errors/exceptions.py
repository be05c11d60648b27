from __future__ import annotations


class QueryTimeoutError(Exception):
    """Raised by DB adapters when a statement is cancelled at the timeout boundary."""

    def __init__(self, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Query timed out after {timeout_seconds:g} seconds")
