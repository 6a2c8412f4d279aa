"""doccache -- request-coalescing, TTL-aware caching for document stores."""

from doccache.datasource import DocumentDataSource
from doccache.models.options import CacheEvent, CachingOptions, FlushStrategy
from doccache.providers.cache import MemoryCacheProvider, RedisCacheProvider
from doccache.providers.store import CollectionDocumentStore, ModelDocumentStore
from doccache.services.caching_methods import CachingMethods, create_caching_methods

__version__ = "0.1.0"

__all__ = [
    "CacheEvent",
    "CachingMethods",
    "CachingOptions",
    "CollectionDocumentStore",
    "DocumentDataSource",
    "FlushStrategy",
    "MemoryCacheProvider",
    "ModelDocumentStore",
    "RedisCacheProvider",
    "create_caching_methods",
]
