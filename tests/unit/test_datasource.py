"""Unit tests for DocumentDataSource initialization and method attachment."""

from __future__ import annotations

from typing import Any

import pytest

from doccache.config.settings import Settings
from doccache.datasource import ATTACHED_METHODS, DocumentDataSource
from doccache.models.options import CacheEvent, FlushStrategy
from doccache.providers.cache.memory_cache import MemoryCacheProvider
from doccache.providers.store.collection_store import CollectionDocumentStore
from doccache.services.caching_methods import CachingMethods
from doccache.utils.errors import ConfigurationError
from tests.fakes import FakeCollection, FakeCursor, cache_key


class SlottedCollection:
    """A handle that refuses new attributes."""

    __slots__ = ("name", "_docs")

    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self.name = "slotted"
        self._docs = docs

    def find(self, filter_: dict[str, Any]) -> FakeCursor:
        return FakeCursor(self._docs)


@pytest.fixture()
def users() -> FakeCollection:
    return FakeCollection({"u1": {"_id": "u1", "name": "Carl"}}, name="users")


@pytest.fixture()
def posts() -> FakeCollection:
    return FakeCollection({"p1": {"_id": "p1", "author": "u1"}}, name="posts")


class TestConstruction:
    def test_empty_mapping_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            DocumentDataSource({})

    def test_non_mapping_is_rejected(self, users: FakeCollection) -> None:
        with pytest.raises(ConfigurationError):
            DocumentDataSource([users])  # type: ignore[arg-type]

    def test_not_initialized_until_initialize(self, users: FakeCollection) -> None:
        source = DocumentDataSource({"users": users})
        assert source.initialized is False
        assert source.collections == {"users": users}
        with pytest.raises(KeyError):
            source["users"]


class TestInitialize:
    def test_attaches_methods_to_each_handle(
        self, users: FakeCollection, posts: FakeCollection
    ) -> None:
        source = DocumentDataSource({"users": users, "posts": posts})
        source.initialize()

        assert source.initialized is True
        assert set(source.methods) == {"users", "posts"}
        for attr in ATTACHED_METHODS:
            assert callable(getattr(users, attr))
            assert callable(getattr(posts, attr))
        assert isinstance(source["users"], CachingMethods)
        assert source["posts"].collection_name == "posts"

    @pytest.mark.asyncio
    async def test_attached_methods_are_cached(self, users: FakeCollection) -> None:
        source = DocumentDataSource({"users": users})
        cache = MemoryCacheProvider()
        source.initialize(cache=cache)

        doc = await users.load_one_by_id("u1", ttl=60)  # type: ignore[attr-defined]
        assert doc == {"_id": "u1", "name": "Carl"}
        assert await cache.get(cache_key("u1", "users")) is doc

    def test_second_initialize_is_rejected(self, users: FakeCollection) -> None:
        source = DocumentDataSource({"users": users})
        source.initialize()
        with pytest.raises(ConfigurationError):
            source.initialize()

    def test_collections_share_one_cache(
        self, users: FakeCollection, posts: FakeCollection
    ) -> None:
        cache = MemoryCacheProvider()
        source = DocumentDataSource({"users": users, "posts": posts})
        source.initialize(cache=cache)
        assert source["users"].options.cache is cache
        assert source["posts"].options.cache is cache

    def test_defaults_without_settings(self, users: FakeCollection) -> None:
        source = DocumentDataSource({"users": users})
        source.initialize()
        options = source["users"].options
        assert isinstance(options.cache, MemoryCacheProvider)
        assert options.allow_flushing_collection_cache is False
        assert options.debug is False
        assert options.flush_strategy is FlushStrategy.KEY_INDEX

    def test_settings_supply_defaults(self, users: FakeCollection) -> None:
        settings = Settings(
            _env_file=None,
            allow_flushing_collection_cache=True,
            flush_strategy=FlushStrategy.PREFIX_SCAN,
            store_kind="cache",
            backing_name="docdb",
        )
        source = DocumentDataSource({"users": users})
        source.initialize(settings=settings)
        methods = source["users"]
        assert methods.options.allow_flushing_collection_cache is True
        assert methods.options.flush_strategy is FlushStrategy.PREFIX_SCAN
        assert methods.keys.key_for_id("u1") == "cache:docdb:users:u1"

    def test_explicit_arguments_beat_settings(self, users: FakeCollection) -> None:
        settings = Settings(_env_file=None, allow_flushing_collection_cache=True, debug=True)
        source = DocumentDataSource({"users": users})
        source.initialize(settings=settings, allow_flushing_collection_cache=False, debug=False)
        assert source["users"].options.allow_flushing_collection_cache is False
        assert source["users"].options.debug is False

    def test_context_and_events_are_kept(self, users: FakeCollection) -> None:
        seen: list[tuple[CacheEvent, str]] = []
        source = DocumentDataSource({"users": users})
        source.initialize(context={"request_id": "r1"}, on_event=lambda e, k: seen.append((e, k)))
        assert source.context == {"request_id": "r1"}
        assert source["users"].options.on_event is not None

    def test_ready_made_stores_pass_through(self, users: FakeCollection) -> None:
        store = CollectionDocumentStore(users, name="people")
        source = DocumentDataSource({"users": store})
        source.initialize()
        assert source["users"].collection_name == "people"

    def test_handle_without_name_uses_mapping_key(self) -> None:
        class Bare:
            def find(self, filter_: dict[str, Any]) -> FakeCursor:
                return FakeCursor([])

        source = DocumentDataSource({"widgets": Bare()})
        source.initialize()
        assert source["widgets"].collection_name == "widgets"

    @pytest.mark.asyncio
    async def test_unattachable_handle_still_works(self) -> None:
        handle = SlottedCollection([{"_id": "s1"}])
        source = DocumentDataSource({"slotted": handle})
        source.initialize()
        assert not hasattr(handle, "load_one_by_id")
        assert await source["slotted"].load_one_by_id("s1") == {"_id": "s1"}
