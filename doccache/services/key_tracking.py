"""Bookkeeping that lets a whole collection's cache entries be flushed.

Most cache backends cannot enumerate keys by prefix cheaply, so the default
:class:`KeyIndexTracker` records every TTL-bearing key of a collection in a
sidecar record stored in the cache itself, under a reserved key.  A flush then
costs one delete per key of *this* collection rather than a walk over the
whole keyspace.

The list is updated with a plain read-modify-write.  Two concurrent writers
can each read the same list and the later write wins, dropping the other's
key from the index.  That only means a later flush misses the key; its own
TTL still expires it, so stale data is never served because of the race.

Backends that support prefix deletes can use :class:`PrefixScanTracker`
instead, which keeps no index at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from doccache.interfaces.cache_provider import ICacheProvider, IPrefixScanCacheProvider
from doccache.utils.logging import get_logger
from doccache.utils.serialization import codec_for


class CollectionKeyTracker(ABC):
    """Tracks which cache keys belong to one collection."""

    @abstractmethod
    async def register(self, key: str, ttl: int) -> None:
        """Record that *key* was written with *ttl*."""

    @abstractmethod
    async def forget(self, key: str) -> None:
        """Stop tracking *key* after it was deleted individually."""

    @abstractmethod
    async def flush(self) -> int:
        """Delete every tracked key; return how many were removed."""


class KeyIndexTracker(CollectionKeyTracker):
    """Keeps the collection's keys in a record stored under *index_key*.

    The record is ``{"keys": [...], "ttl": <longest ttl registered>}``.
    Every registration rewrites it with that longest TTL, so the index
    always outlives each entry it lists.

    Parameters
    ----------
    cache:
        The cache that holds both the entries and the index.
    index_key:
        Reserved key the index record is stored under.
    """

    def __init__(self, cache: ICacheProvider, index_key: str) -> None:
        self._cache = cache
        self._index_key = index_key
        self._codec = codec_for(cache.holds_references)
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def index_key(self) -> str:
        return self._index_key

    async def _read(self) -> tuple[list[str], int | None]:
        raw = await self._cache.get(self._index_key)
        if raw is None:
            return [], None
        record = self._codec.decode(raw)
        return list(record["keys"]), record.get("ttl")

    async def _write(self, keys: list[str], ttl: int | None) -> None:
        record = {"keys": keys, "ttl": ttl}
        await self._cache.set(self._index_key, self._codec.encode(record), ttl=ttl)

    async def keys(self) -> list[str]:
        """Return the tracked keys; an absent index reads as empty."""
        keys, _ = await self._read()
        return keys

    async def longest_ttl(self) -> int | None:
        _, ttl = await self._read()
        return ttl

    async def register(self, key: str, ttl: int) -> None:
        keys, longest = await self._read()
        if key not in keys:
            keys.append(key)
        # Re-registering an existing key still refreshes the index expiry.
        await self._write(keys, max(ttl, longest or 0))
        self._logger.debug("key_index_registered", key=key, count=len(keys))

    async def forget(self, key: str) -> None:
        keys, longest = await self._read()
        if key not in keys:
            return
        remaining = [k for k in keys if k != key]
        await self._write(remaining, longest)
        self._logger.debug("key_index_removed", key=key, count=len(remaining))

    async def flush(self) -> int:
        keys, _ = await self._read()
        for key in keys:
            await self._cache.delete(key)
        await self._write([], None)
        return len(keys)


class PrefixScanTracker(CollectionKeyTracker):
    """Flushes by deleting every key under the collection prefix."""

    def __init__(self, cache: IPrefixScanCacheProvider, prefix: str) -> None:
        self._cache = cache
        self._prefix = prefix

    async def register(self, key: str, ttl: int) -> None:
        return None

    async def forget(self, key: str) -> None:
        return None

    async def flush(self) -> int:
        return await self._cache.delete_prefix(self._prefix)
