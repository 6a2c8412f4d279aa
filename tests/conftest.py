"""Shared pytest fixtures for the doccache test suite."""

from __future__ import annotations

from typing import Any

import pytest

from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.services.caching_methods import CachingMethods, create_caching_methods
from tests.fakes import NOW, ONE_WEEK_AGO, FakeCollection


@pytest.fixture
def docs() -> dict[str, dict[str, Any]]:
    return {
        "id1": {"_id": "id1", "createdAt": NOW},
        "id2": {"_id": "id2", "createdAt": ONE_WEEK_AGO},
        "id3": {"_id": "id3", "createdAt": ONE_WEEK_AGO},
    }


@pytest.fixture
def collection(docs: dict[str, dict[str, Any]]) -> FakeCollection:
    return FakeCollection(docs)


@pytest.fixture
def cache() -> MemoryCacheProvider:
    return MemoryCacheProvider()


@pytest.fixture
def api(collection: FakeCollection, cache: MemoryCacheProvider) -> CachingMethods:
    return create_caching_methods(collection, cache=cache, allow_flushing_collection_cache=True)


@pytest.fixture
def old_query() -> dict[str, Any]:
    return {"createdAt": {"$lte": ONE_WEEK_AGO}}
