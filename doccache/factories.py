"""Factories that turn settings and raw handles into provider instances.

Backends are selected here, once, from explicit configuration; nothing
downstream inspects an injected object to guess what kind it is.
"""

from __future__ import annotations

from typing import Any

import structlog

from doccache.config.settings import Settings
from doccache.interfaces.cache_provider import ICacheProvider
from doccache.interfaces.document_store import IDocumentStore
from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.providers.cache.redis_cache import RedisCacheProvider
from doccache.providers.store.collection_store import CollectionDocumentStore
from doccache.providers.store.model_store import ModelDocumentStore
from doccache.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


def build_cache_provider(app_settings: Settings) -> ICacheProvider:
    """Return the cache provider named by ``app_settings.cache_backend``."""
    backend = app_settings.cache_backend.lower()
    if backend == "memory":
        logger.info("cache_provider_selected", backend=backend, max_size=app_settings.cache_max_size)
        return MemoryCacheProvider(max_size=app_settings.cache_max_size)
    if backend == "redis":
        logger.info("cache_provider_selected", backend=backend)
        return RedisCacheProvider(redis_url=app_settings.redis_url)
    raise ConfigurationError(f"Unknown cache backend {app_settings.cache_backend!r}")


def build_document_store(
    handle: Any,
    mapped: bool = False,
    name: str | None = None,
    id_field: str = "_id",
) -> IDocumentStore:
    """Wrap *handle* in the store adapter for its flavor.

    ``mapped=True`` selects the object-mapper adapter; otherwise the handle
    is treated as a driver collection.  Ready-made ``IDocumentStore``
    instances pass through unchanged.
    """
    if isinstance(handle, IDocumentStore):
        return handle
    if handle is None:
        raise ConfigurationError("A collection handle is required")
    if mapped:
        return ModelDocumentStore(handle, name=name, id_field=id_field)
    return CollectionDocumentStore(handle, name=name, id_field=id_field)
