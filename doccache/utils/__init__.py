"""Utility modules for doccache.

- **errors** -- exception hierarchy rooted at DocCacheError.
- **keys** -- id normalization, canonical query serialization and cache-key
  derivation.
- **matching** -- in-process evaluation of Mongo-style predicates, used to
  split a batched ``$or`` result back into per-query results.
- **serialization** -- JSON codec for string-only cache stores.
- **logging** -- structlog setup with console/JSON renderers.
"""

from doccache.utils.errors import (
    BatchLoadError,
    CacheProviderError,
    ConfigurationError,
    DocCacheError,
    DocumentStoreError,
    QueryMatchError,
)
from doccache.utils.keys import CacheKeyBuilder, canonical_query, key_for_id, key_for_query, normalize_id
from doccache.utils.matching import compile_query, matches

__all__ = [
    "BatchLoadError",
    "CacheKeyBuilder",
    "CacheProviderError",
    "ConfigurationError",
    "DocCacheError",
    "DocumentStoreError",
    "QueryMatchError",
    "canonical_query",
    "compile_query",
    "key_for_id",
    "key_for_query",
    "matches",
    "normalize_id",
]
