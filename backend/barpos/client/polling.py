# Overview: Fixed-interval query refetching with invalidation after mutations.

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

from .api import ApiError

logger = logging.getLogger(__name__)

# Seconds between refetches per query key
DEFAULT_INTERVALS = {
    "orders": 5,
    "tables": 5,
    "credit_clients": 10,
    "products": 30,
    "session_stats": 30,
}


@dataclass
class Query:
    key: str
    fetch: Callable[[], Any]
    interval: float
    data: Any = None
    error: Optional[ApiError] = None
    fetched_at: Optional[float] = None
    stale: bool = True

    def due(self, now: float) -> bool:
        return self.stale or self.fetched_at is None or now - self.fetched_at >= self.interval


@dataclass
class QueryPoller:
    """
    Holds the screen's queries and refetches them on a fixed schedule.

    Callers drive it with tick(); nothing runs in the background. A query
    that fails keeps its last good data and records the error.
    """
    clock: Callable[[], float] = time.monotonic
    queries: Dict[str, Query] = field(default_factory=dict)

    def register(self, key: str, fetch: Callable[[], Any], interval: Optional[float] = None) -> Query:
        if interval is None:
            interval = DEFAULT_INTERVALS.get(key)
        if interval is None:
            raise ValueError(f"No refetch interval for query '{key}'")
        query = Query(key=key, fetch=fetch, interval=interval)
        self.queries[key] = query
        return query

    def unregister_all(self) -> None:
        self.queries.clear()

    def data(self, key: str) -> Any:
        query = self.queries.get(key)
        return query.data if query else None

    def invalidate(self, *keys: str) -> None:
        """Mark queries stale so the next tick refetches them. No keys = all."""
        targets: Iterable[str] = keys or list(self.queries)
        for key in targets:
            if key in self.queries:
                self.queries[key].stale = True

    def refetch(self, key: str, now: Optional[float] = None) -> Any:
        query = self.queries[key]
        now = self.clock() if now is None else now
        try:
            query.data = query.fetch()
            query.error = None
        except ApiError as e:
            logger.warning("Query %s failed: %s", key, e)
            query.error = e
        query.fetched_at = now
        query.stale = False
        return query.data

    def tick(self, now: Optional[float] = None) -> list[str]:
        """Refetch every due query. Returns the keys that were fetched."""
        now = self.clock() if now is None else now
        fetched = []
        for key, query in list(self.queries.items()):
            if query.due(now):
                self.refetch(key, now)
                fetched.append(key)
        return fetched
