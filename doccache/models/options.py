"""Setup-time options for the caching methods.

Defines the enums that name the flush strategies and observability events,
and the pydantic model that validates everything a collection is set up
with.  Options are frozen: a collection's caching behaviour is decided once
and never changes while it serves lookups.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from doccache.interfaces.cache_provider import ICacheProvider
from doccache.interfaces.document_store import IDocumentStore
from doccache.utils.keys import DEFAULT_BACKING_NAME, DEFAULT_STORE_KIND


class FlushStrategy(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """How a collection flush finds the keys it must delete."""

    KEY_INDEX = "key_index"      # sidecar list of keys stored in the cache itself
    PREFIX_SCAN = "prefix_scan"  # cache enumerates keys by collection prefix


class CacheEvent(str, Enum):  # noqa: UP042
    """Hook points reported to an ``on_event`` callback."""

    HIT = "cache_hit"
    MISS = "cache_miss"
    KEY_REGISTERED = "cache_key_registered"
    INVALIDATED = "cache_invalidated"
    FLUSH_EXECUTED = "collection_flushed"
    CACHE_ERROR = "cache_error"


EventCallback = Callable[[CacheEvent, str], Any]


class CachingOptions(BaseModel):
    """Everything needed to set up caching for one collection."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    store: IDocumentStore
    cache: ICacheProvider
    allow_flushing_collection_cache: bool = False
    flush_strategy: FlushStrategy = FlushStrategy.KEY_INDEX
    debug: bool = False
    store_kind: str = DEFAULT_STORE_KIND
    backing_name: str = DEFAULT_BACKING_NAME
    max_batch_size: int | None = Field(default=None, ge=1)
    on_event: EventCallback | None = None

    @field_validator("store_kind", "backing_name")
    @classmethod
    def _no_separator(cls, value: str) -> str:
        if not value or ":" in value:
            raise ValueError("key segments must be non-empty and must not contain ':'")
        return value


def is_valid_ttl(ttl: Any) -> bool:
    """Only a positive ``int`` (not ``bool``) asks for a result to be cached."""
    return isinstance(ttl, int) and not isinstance(ttl, bool) and ttl > 0
