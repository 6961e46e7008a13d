"""Keyed read cache with TTL, owned by the application instance."""
import threading
from collections import defaultdict
from typing import Any, Callable, Hashable

from cachetools import TTLCache
from fastapi import Request


class ReadCache:
    """Thread-safe wrapper over ``TTLCache`` with prefix invalidation.

    Keys are tuples whose first element names the query, e.g.
    ``("team-progress", team_id)``. Each name carries a generation that
    ``invalidate`` bumps; a value computed across an invalidation is
    returned to its caller but not stored.
    """

    def __init__(self, maxsize: int = 1024, ttl: float = 60):
        self._cache = TTLCache(maxsize=maxsize, ttl=ttl)
        self._generations = defaultdict(int)
        self._lock = threading.Lock()

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        name = key[0]
        with self._lock:
            if key in self._cache:
                return self._cache[key]
            generation = self._generations[name]
        value = compute()
        with self._lock:
            if self._generations[name] == generation:
                self._cache[key] = value
        return value

    def invalidate(self, name: str) -> None:
        """Drop every entry whose key starts with ``name``."""
        with self._lock:
            self._generations[name] += 1
            for key in [k for k in self._cache if k[0] == name]:
                self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._cache


def get_cache(request: Request) -> ReadCache:
    return request.app.state.cache
