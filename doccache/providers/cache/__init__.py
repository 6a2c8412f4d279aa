"""Cache providers.

MemoryCacheProvider keeps values by reference in process memory and is the
default.  RedisCacheProvider holds serialized strings in a shared Redis
server for multi-worker deployments.  Both support prefix deletes, so
either can back a collection flush without a key index.
"""

from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.providers.cache.redis_cache import RedisCacheProvider

__all__ = ["MemoryCacheProvider", "RedisCacheProvider"]
