"""In-memory cache provider using cachetools.TLRUCache.

Holds values by reference in the current process: ``get`` hands back the
very object that was stored.  Suitable for single-process deployments and
tests; multi-worker deployments should use :class:`RedisCacheProvider`.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from typing import Any, NamedTuple

import structlog
from cachetools import TLRUCache

from doccache.interfaces.cache_provider import IPrefixScanCacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: int | None


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    if entry.ttl is None:
        return math.inf
    return now + entry.ttl


class MemoryCacheProvider(IPrefixScanCacheProvider):
    """In-memory cache with per-entry TTLs backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries before the least-recently-used entry
        is evicted.
    timer:
        Monotonic clock used to evaluate expiry.  Injectable for tests.
    """

    holds_references = True

    def __init__(
        self,
        max_size: int = 1000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=max_size, ttu=_time_to_use, timer=timer
        )

    def get_provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """Retrieve the cached value for *key*, or ``None`` if missing/expired."""
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds when given."""
        self._cache[key] = _Entry(value, ttl)
        logger.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> None:
        """Remove *key* from the cache (no-op if absent)."""
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
        return key in self._cache

    # ------------------------------------------------------------------
    # IPrefixScanCacheProvider implementation
    # ------------------------------------------------------------------

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every live key that starts with *prefix*."""
        self._cache.expire()
        doomed = [key for key in self._cache.keys() if key.startswith(prefix)]
        for key in doomed:
            self._cache.pop(key, None)
        logger.debug("cache_delete_prefix", prefix=prefix, count=len(doomed))
        return len(doomed)

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)
