"""Data-source lifecycle host that wires caching onto collections.

A :class:`DocumentDataSource` is constructed with a mapping of collection
names to store handles.  Calling :meth:`initialize` once per source builds
one :class:`CachingMethods` per collection and attaches its public methods
onto the collection handle, so resolvers can write
``users.load_one_by_id(user_id, ttl=60)`` directly::

    source = DocumentDataSource({"users": db.users})
    source.initialize(cache=RedisCacheProvider(url), debug=True)
    user = await source["users"].load_one_by_id(user_id, ttl=60)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from doccache.config.settings import Settings
from doccache.factories import build_cache_provider, build_document_store
from doccache.interfaces.cache_provider import ICacheProvider
from doccache.interfaces.document_store import IDocumentStore
from doccache.models.options import CachingOptions, EventCallback, FlushStrategy
from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.services.caching_methods import CachingMethods
from doccache.utils.errors import ConfigurationError
from doccache.utils.logging import configure_from_settings, get_logger

ATTACHED_METHODS = (
    "load_one_by_id",
    "load_many_by_ids",
    "load_many_by_query",
    "delete_from_cache_by_id",
    "flush_collection_cache",
)


class DocumentDataSource:
    """Holds the caching methods for a group of collections.

    Parameters
    ----------
    collections:
        Mapping of collection name to a driver collection, a mapped model
        class, or a ready-made ``IDocumentStore``.
    mapped:
        Treat raw handles as object-mapped models instead of driver
        collections.
    """

    def __init__(self, collections: Mapping[str, Any], mapped: bool = False) -> None:
        if not isinstance(collections, Mapping) or not collections:
            raise ConfigurationError(
                "DocumentDataSource must be given a mapping with at least one collection"
            )
        self._collections = dict(collections)
        self._mapped = mapped
        self._methods: dict[str, CachingMethods] = {}
        self.context: Any = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def collections(self) -> dict[str, Any]:
        return dict(self._collections)

    @property
    def methods(self) -> dict[str, CachingMethods]:
        return dict(self._methods)

    @property
    def initialized(self) -> bool:
        return bool(self._methods)

    def __getitem__(self, name: str) -> CachingMethods:
        try:
            return self._methods[name]
        except KeyError:
            raise KeyError(f"no initialized collection named {name!r}") from None

    def initialize(
        self,
        cache: ICacheProvider | None = None,
        allow_flushing_collection_cache: bool | None = None,
        debug: bool | None = None,
        flush_strategy: FlushStrategy | None = None,
        settings: Settings | None = None,
        context: Any = None,
        on_event: EventCallback | None = None,
    ) -> None:
        """Build and attach caching methods for every collection.

        Keyword arguments override *settings*; with neither, flushing and
        debug are off and an in-memory cache is used.  All collections of
        one source share the same cache provider.  Passing *settings* also
        reconfigures logging from its ``log_level`` and ``app_env``.
        """
        if self._methods:
            raise ConfigurationError("DocumentDataSource.initialize must be called only once")

        self.context = context
        if settings is not None:
            configure_from_settings(settings)
        if cache is None:
            cache = build_cache_provider(settings) if settings else MemoryCacheProvider()

        shared = {
            "cache": cache,
            "allow_flushing_collection_cache": _pick(
                allow_flushing_collection_cache, settings, "allow_flushing_collection_cache", False
            ),
            "debug": _pick(debug, settings, "debug", False),
            "flush_strategy": _pick(flush_strategy, settings, "flush_strategy", FlushStrategy.KEY_INDEX),
            "on_event": on_event,
        }
        if settings is not None:
            shared["store_kind"] = settings.store_kind
            shared["backing_name"] = settings.backing_name

        for name, handle in self._collections.items():
            store = self._store_for(name, handle)
            methods = CachingMethods(CachingOptions(store=store, **shared))
            self._methods[name] = methods
            self._attach(name, handle, methods)

        self._logger.info(
            "datasource_initialized",
            collections=list(self._methods),
            cache=cache.get_provider_name(),
            flushing=shared["allow_flushing_collection_cache"],
        )

    def _store_for(self, name: str, handle: Any) -> IDocumentStore:
        if isinstance(handle, IDocumentStore):
            return handle
        if self._mapped:
            return build_document_store(handle, mapped=True)
        own_name = getattr(handle, "name", None)
        return build_document_store(handle, name=own_name if isinstance(own_name, str) else name)

    def _attach(self, name: str, handle: Any, methods: CachingMethods) -> None:
        try:
            for attr in ATTACHED_METHODS:
                setattr(handle, attr, getattr(methods, attr))
        except (AttributeError, TypeError) as exc:
            # Some handles (slotted or frozen objects) refuse new attributes;
            # the methods remain reachable through source[name].
            self._logger.warning("methods_not_attached", collection=name, error=str(exc))


def _pick(explicit: Any, settings: Settings | None, field: str, default: Any) -> Any:
    if explicit is not None:
        return explicit
    if settings is not None:
        return getattr(settings, field)
    return default
