"""Read-through / write-through caching methods for one collection.

# --- HOW A LOOKUP FLOWS -------------------------------------------------
#
#   load_one_by_id(id, ttl=60)
#     1. derive key          db:mongo:<collection>:<normalized id>
#     2. cache.get(key)      hit  -> return the cached value as-is
#     3. id_loader.load(id)  miss -> coalesced with every other id
#                            requested in this tick, one find_by_ids
#     4. ttl is a positive int?  cache.set(key, doc, ttl) and
#                            register the key for collection flushes
#
#   load_many_by_query(query, ttl) follows the same path with the query
#   loader, which ORs every predicate of the tick into one find.
#
# The cache is advisory.  A failed read is treated as a miss and a failed
# write is logged and skipped; only backing-store failures reach callers.
# -------------------------------------------------------------------------
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from doccache.factories import build_document_store
from doccache.interfaces.cache_provider import IPrefixScanCacheProvider
from doccache.loaders.id_loader import build_id_loader
from doccache.loaders.query_loader import build_query_loader
from doccache.models.options import CacheEvent, CachingOptions, FlushStrategy, is_valid_ttl
from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.services.key_tracking import (
    CollectionKeyTracker,
    KeyIndexTracker,
    PrefixScanTracker,
)
from doccache.utils.errors import ConfigurationError
from doccache.utils.keys import CacheKeyBuilder
from doccache.utils.logging import get_logger
from doccache.utils.serialization import codec_for


class CachingMethods:
    """Cached lookups and invalidation for a single collection.

    Build instances with :func:`create_caching_methods` or from a
    :class:`CachingOptions` directly.  All dependencies come in through the
    options; this class never creates its own store or cache.
    """

    def __init__(self, options: CachingOptions) -> None:
        self._options = options
        self._store = options.store
        self._cache = options.cache
        self._keys = CacheKeyBuilder(
            options.store.name,
            store_kind=options.store_kind,
            backing_name=options.backing_name,
        )
        self._codec = codec_for(options.cache.holds_references)
        self._id_loader = build_id_loader(options.store, max_batch_size=options.max_batch_size)
        self._query_loader = build_query_loader(options.store, max_batch_size=options.max_batch_size)
        self._tracker = self._build_tracker(options)
        self._logger: structlog.BoundLogger = get_logger(__name__).bind(
            collection=options.store.name
        )

    def _build_tracker(self, options: CachingOptions) -> CollectionKeyTracker | None:
        if not options.allow_flushing_collection_cache:
            return None
        if options.flush_strategy is FlushStrategy.PREFIX_SCAN:
            if not isinstance(options.cache, IPrefixScanCacheProvider):
                raise ConfigurationError(
                    "prefix_scan flushing needs a cache provider that supports prefix deletes",
                    provider_name=options.cache.get_provider_name(),
                )
            return PrefixScanTracker(options.cache, self._keys.prefix)
        return KeyIndexTracker(options.cache, self._keys.all_keys_key)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def keys(self) -> CacheKeyBuilder:
        return self._keys

    @property
    def options(self) -> CachingOptions:
        return self._options

    @property
    def collection_name(self) -> str:
        return self._keys.collection_name

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def load_one_by_id(self, entity_id: Any, ttl: int | None = None) -> dict[str, Any] | None:
        """Return the document for *entity_id*, or ``None`` if it does not exist."""
        key = self._keys.key_for_id(entity_id)
        cached = await self._read(key)
        if cached is not None:
            return cached

        document = await self._id_loader.load(entity_id)
        if document is not None:
            await self._write(key, document, ttl)
        return document

    async def load_many_by_ids(
        self, ids: list[Any], ttl: int | None = None
    ) -> list[dict[str, Any] | None]:
        """Return one document (or ``None``) per id, in the order given.

        Each id takes its own cache path; the misses still share one store
        call because they reach the id loader in the same tick.
        """
        return list(await asyncio.gather(*(self.load_one_by_id(i, ttl=ttl) for i in ids)))

    async def load_many_by_query(
        self, query: dict[str, Any], ttl: int | None = None
    ) -> list[dict[str, Any]]:
        """Return every document matching *query*."""
        key = self._keys.key_for_query(query)
        cached = await self._read(key)
        if cached is not None:
            return cached

        documents = await self._query_loader.load(query)
        await self._write(key, documents, ttl)
        return documents

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def delete_from_cache_by_id(self, id_or_query: Any) -> None:
        """Drop the cached entry for an id or a query predicate.

        The loader's pending entry is cleared too, so the next lookup goes
        back to the store instead of joining a stale in-flight result.
        """
        key = self._keys.key_for_id_or_query(id_or_query)
        await self._cache.delete(key)
        if isinstance(id_or_query, dict):
            self._query_loader.clear(id_or_query)
        else:
            self._id_loader.clear(id_or_query)
        if self._tracker is not None:
            await self._tracker.forget(key)
        self._emit(CacheEvent.INVALIDATED, key)

    async def flush_collection_cache(self) -> bool | None:
        """Delete every cached entry of this collection.

        Returns ``None`` without touching the cache unless flushing was
        enabled at setup.
        """
        if self._tracker is None:
            return None
        removed = await self._tracker.flush()
        self._id_loader.clear_all()
        self._query_loader.clear_all()
        self._emit(CacheEvent.FLUSH_EXECUTED, self._keys.prefix)
        self._logger.info("collection_flushed", removed=removed)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _read(self, key: str) -> Any | None:
        try:
            raw = await self._cache.get(key)
            value = None if raw is None else self._codec.decode(raw)
        except Exception as exc:
            self._logger.warning("cache_read_failed", key=key, error=str(exc))
            self._emit(CacheEvent.CACHE_ERROR, key)
            return None

        if value is None:
            self._debug("cache_miss", key)
            self._emit(CacheEvent.MISS, key)
        else:
            self._debug("cache_hit", key)
            self._emit(CacheEvent.HIT, key)
        return value

    async def _write(self, key: str, value: Any, ttl: Any) -> None:
        if not is_valid_ttl(ttl):
            return
        try:
            await self._cache.set(key, self._codec.encode(value), ttl=ttl)
            if self._tracker is not None:
                await self._tracker.register(key, ttl)
        except Exception as exc:
            self._logger.warning("cache_write_failed", key=key, ttl=ttl, error=str(exc))
            self._emit(CacheEvent.CACHE_ERROR, key)
            return
        self._debug("cache_key_registered", key, ttl=ttl)
        self._emit(CacheEvent.KEY_REGISTERED, key)

    def _debug(self, event: str, key: str, **extra: Any) -> None:
        if self._options.debug:
            self._logger.info(event, key=key, **extra)

    def _emit(self, event: CacheEvent, key: str) -> None:
        callback = self._options.on_event
        if callback is None:
            return
        try:
            callback(event, key)
        except Exception as exc:
            self._logger.warning("event_callback_failed", hook=event.value, error=str(exc))


def create_caching_methods(
    store: Any,
    cache: Any = None,
    allow_flushing_collection_cache: bool = False,
    flush_strategy: FlushStrategy = FlushStrategy.KEY_INDEX,
    debug: bool = False,
    **extra: Any,
) -> CachingMethods:
    """Convenience builder mirroring the keyword options of the data source.

    *store* may be an ``IDocumentStore`` or a raw collection handle (wrapped
    in a ``CollectionDocumentStore``).  *cache* defaults to a fresh
    ``MemoryCacheProvider``.
    """
    options = CachingOptions(
        store=build_document_store(store),
        cache=cache if cache is not None else MemoryCacheProvider(),
        allow_flushing_collection_cache=allow_flushing_collection_cache,
        flush_strategy=flush_strategy,
        debug=debug,
        **extra,
    )
    return CachingMethods(options)
