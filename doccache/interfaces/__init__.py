"""Public interface definitions for the pluggable backends.

The caching methods never talk to Redis, an in-memory dict, a MongoDB
driver, or an object mapper directly.  Every backend is accessed through
the abstract base classes defined here, and concrete adapters from
``doccache.providers`` are injected at setup time.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations
    ---------------------------------------------------------------------
    ICacheProvider             ->  MemoryCacheProvider, RedisCacheProvider
    IPrefixScanCacheProvider   ->  MemoryCacheProvider, RedisCacheProvider
    IDocumentStore             ->  CollectionDocumentStore,
                                   ModelDocumentStore
"""

from doccache.interfaces.cache_provider import ICacheProvider, IPrefixScanCacheProvider
from doccache.interfaces.document_store import IDocumentStore

__all__ = [
    "ICacheProvider",
    "IDocumentStore",
    "IPrefixScanCacheProvider",
]
