"""Caching services: read-through lookups, invalidation and key tracking."""

from doccache.services.caching_methods import CachingMethods, create_caching_methods
from doccache.services.key_tracking import (
    CollectionKeyTracker,
    KeyIndexTracker,
    PrefixScanTracker,
)

__all__ = [
    "CachingMethods",
    "CollectionKeyTracker",
    "KeyIndexTracker",
    "PrefixScanTracker",
    "create_caching_methods",
]
