"""Redis cache provider using ``redis.asyncio``.

Redis only stores strings, so this provider declares
``holds_references = False`` and the caching methods serialize documents
before they reach :meth:`set`.  Collection flushes can bypass the key index
entirely with :meth:`delete_prefix`, which walks the keyspace with
``SCAN`` instead of the blocking ``KEYS`` command.

Connection and timeout failures are wrapped in :class:`CacheProviderError`
so callers can treat every backend failure the same way.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from doccache.interfaces.cache_provider import IPrefixScanCacheProvider
from doccache.utils.errors import CacheProviderError
from doccache.utils.logging import get_logger

_DELETE_CHUNK = 500


class RedisCacheProvider(IPrefixScanCacheProvider):
    """Cache provider backed by a Redis server.

    Parameters
    ----------
    redis_url:
        Connection URL, e.g. ``redis://localhost:6379/0``.  Ignored when
        *client* is given.
    client:
        A pre-built ``redis.asyncio.Redis`` client.  Lets applications share
        one connection pool (and lets tests inject a fake).
    scan_count:
        ``COUNT`` hint passed to ``SCAN`` during prefix deletes.
    """

    holds_references = False

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        client: redis.Redis | None = None,
        scan_count: int = 500,
    ) -> None:
        self._redis_url = redis_url
        self._scan_count = scan_count
        self._logger = get_logger(__name__)
        self._client = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )

    def get_provider_name(self) -> str:
        return "redis"

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()
        self._logger.info("redis_cache_closed", redis_url=self._redis_url)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        try:
            value = await self._client.get(key)
        except RedisError as exc:
            raise CacheProviderError(f"GET {key} failed: {exc}", provider_name="redis") from exc
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if not isinstance(value, str):
            raise TypeError(f"RedisCacheProvider only stores strings, got {type(value).__name__}")
        try:
            await self._client.set(key, value, ex=ttl)
        except RedisError as exc:
            raise CacheProviderError(f"SET {key} failed: {exc}", provider_name="redis") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as exc:
            raise CacheProviderError(f"DEL {key} failed: {exc}", provider_name="redis") from exc

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except RedisError as exc:
            raise CacheProviderError(f"EXISTS {key} failed: {exc}", provider_name="redis") from exc

    # ------------------------------------------------------------------
    # IPrefixScanCacheProvider implementation
    # ------------------------------------------------------------------

    async def delete_prefix(self, prefix: str) -> int:
        """SCAN for ``<prefix>*`` and delete matches in chunks."""
        pattern = _escape_glob(prefix) + "*"
        removed = 0
        batch: list[str] = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=self._scan_count):
                batch.append(key)
                if len(batch) >= _DELETE_CHUNK:
                    removed += await self._client.delete(*batch)
                    batch.clear()
            if batch:
                removed += await self._client.delete(*batch)
        except RedisError as exc:
            raise CacheProviderError(
                f"prefix delete for {prefix!r} failed: {exc}", provider_name="redis"
            ) from exc
        self._logger.info("redis_prefix_deleted", prefix=prefix, count=removed)
        return removed

    async def health_check(self) -> bool:
        """Return ``True`` when the server answers ``PING``."""
        try:
            await self._client.ping()
            return True
        except RedisError:
            return False


def _escape_glob(text: str) -> str:
    """Escape characters Redis' MATCH treats as glob syntax."""
    return "".join("\\" + ch if ch in "*?[]\\" else ch for ch in text)
