from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Optional, Tuple

from adapters.metrics.prometheus import cache_events_total


class SchemaCache:
    """
    Tiny in-memory TTL cache for schema metadata.

    Stores rendered metadata keyed by operation and table name. Query results
    are never cached here. When full, the oldest entry is evicted first.
    """

    def __init__(self, ttl: float = 43200.0, max_entries: int = 50) -> None:
        self.ttl = ttl
        self.max_entries = max(int(max_entries), 1)
        self._store: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self._lock = threading.Lock()

    def _gc(self, now: float) -> None:
        """Remove expired entries based on the configured TTL."""
        expired_keys = [
            key for key, (ts, _) in self._store.items() if now - ts > self.ttl
        ]
        for key in expired_keys:
            del self._store[key]

    def get(self, key: str) -> Optional[Any]:
        """
        Return cached payload if present and not expired, otherwise None.
        Also updates Prometheus counters for hits/misses.
        """
        now = time.time()
        with self._lock:
            self._gc(now)
            entry = self._store.get(key)

        if entry is None:
            cache_events_total.labels(hit="false").inc()
            return None

        cache_events_total.labels(hit="true").inc()
        return entry[1]

    def set(self, key: str, payload: Any) -> None:
        """Store payload under the given key with current timestamp."""
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = (time.time(), payload)
            while len(self._store) > self.max_entries:
                self._store.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
