"""Configuration models shared by the caching services."""

from doccache.models.options import (
    CacheEvent,
    CachingOptions,
    EventCallback,
    FlushStrategy,
    is_valid_ttl,
)

__all__ = [
    "CacheEvent",
    "CachingOptions",
    "EventCallback",
    "FlushStrategy",
    "is_valid_ttl",
]
