"""Unit tests for the collection and model document-store adapters."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel, Field

from doccache.providers.store.collection_store import CollectionDocumentStore, drain_cursor
from doccache.providers.store.model_store import ModelDocumentStore, to_lean
from doccache.utils.errors import DocumentStoreError
from tests.fakes import FakeCollection, FakeCursor


class Artist(BaseModel):
    id: str = Field(alias="_id")
    name: str
    genres: list[str] = []


class ArtistModel:
    """Beanie-style mapped class: ``find`` returns a query with ``to_list``."""

    class Settings:
        name = "artists"

    records: list[Artist] = []
    calls: list[dict[str, Any]] = []

    @classmethod
    def find(cls, filter_: dict[str, Any]) -> FakeCursor:
        cls.calls.append(filter_)
        return FakeCursor(cls.records)  # type: ignore[arg-type]


class SyncCursor:
    def __init__(self, records: list[dict[str, Any]]) -> None:
        self._records = records

    def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        return list(self._records)


class AsyncIterCursor:
    def __init__(self, records: list[dict[str, Any]]) -> None:
        self._records = records

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for record in self._records:
            yield record


# ======================================================================
# drain_cursor
# ======================================================================


class TestDrainCursor:
    @pytest.mark.asyncio
    async def test_async_to_list(self) -> None:
        assert await drain_cursor(FakeCursor([{"a": 1}])) == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_sync_to_list(self) -> None:
        assert await drain_cursor(SyncCursor([{"a": 1}])) == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_async_iteration(self) -> None:
        assert await drain_cursor(AsyncIterCursor([{"a": 1}, {"a": 2}])) == [{"a": 1}, {"a": 2}]

    @pytest.mark.asyncio
    async def test_plain_iterable(self) -> None:
        assert await drain_cursor(iter([{"a": 1}])) == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_awaitable_cursor(self) -> None:
        async def pending() -> list[dict[str, Any]]:
            return [{"a": 1}]

        assert await drain_cursor(pending()) == [{"a": 1}]


# ======================================================================
# CollectionDocumentStore
# ======================================================================


class TestCollectionDocumentStore:
    @pytest.fixture()
    def collection(self) -> FakeCollection:
        return FakeCollection(
            {"a": {"_id": "a", "k": 1}, "b": {"_id": "b", "k": 2}}, name="things"
        )

    def test_name_from_handle(self, collection: FakeCollection) -> None:
        store = CollectionDocumentStore(collection)
        assert store.name == "things"
        assert store.id_field == "_id"
        assert store.collection is collection

    def test_name_override_and_fallback(self, collection: FakeCollection) -> None:
        assert CollectionDocumentStore(collection, name="other").name == "other"
        assert CollectionDocumentStore(object()).name == "test"

    @pytest.mark.asyncio
    async def test_find_by_ids_issues_in_filter(self, collection: FakeCollection) -> None:
        store = CollectionDocumentStore(collection)
        docs = await store.find_by_ids(["a", "b", "zz"])
        assert {doc["_id"] for doc in docs} == {"a", "b"}
        assert collection.find_calls == [{"_id": {"$in": ["a", "b", "zz"]}}]

    @pytest.mark.asyncio
    async def test_find_by_queries_issues_or_filter(self, collection: FakeCollection) -> None:
        store = CollectionDocumentStore(collection)
        docs = await store.find_by_queries([{"k": 2}])
        assert docs == [{"_id": "b", "k": 2}]
        assert collection.find_calls == [{"$or": [{"k": 2}]}]

    @pytest.mark.asyncio
    async def test_custom_id_field(self) -> None:
        handle = MagicMock()
        handle.name = "codes"
        handle.find.return_value = SyncCursor([])
        store = CollectionDocumentStore(handle, id_field="code")
        await store.find_by_ids(["x"])
        handle.find.assert_called_once_with({"code": {"$in": ["x"]}})

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self, collection: FakeCollection) -> None:
        collection.error = RuntimeError("connection reset")
        store = CollectionDocumentStore(collection)
        with pytest.raises(DocumentStoreError) as exc_info:
            await store.find_by_ids(["a"])
        assert "connection reset" in str(exc_info.value)
        assert exc_info.value.provider_name == "things"


# ======================================================================
# ModelDocumentStore
# ======================================================================


class TestModelDocumentStore:
    @pytest.fixture(autouse=True)
    def _reset_model(self) -> None:
        ArtistModel.records = [
            Artist(_id="a1", name="Carl Cox", genres=["techno"]),
            Artist(_id="a2", name="Jeff Mills"),
        ]
        ArtistModel.calls = []

    def test_name_from_settings(self) -> None:
        store = ModelDocumentStore(ArtistModel)
        assert store.name == "artists"
        assert store.model is ArtistModel

    def test_name_falls_back_to_class_name(self) -> None:
        assert ModelDocumentStore(Artist).name == "Artist"

    def test_to_lean(self) -> None:
        lean = to_lean(Artist(_id="a1", name="Carl Cox"))
        assert lean == {"_id": "a1", "name": "Carl Cox", "genres": []}
        assert to_lean({"_id": "x"}) == {"_id": "x"}

    @pytest.mark.asyncio
    async def test_returns_lean_dicts(self) -> None:
        store = ModelDocumentStore(ArtistModel)
        docs = await store.find_by_ids(["a1", "a2"])
        assert all(type(doc) is dict for doc in docs)
        assert docs[0] == {"_id": "a1", "name": "Carl Cox", "genres": ["techno"]}
        assert ArtistModel.calls == [{"_id": {"$in": ["a1", "a2"]}}]

    @pytest.mark.asyncio
    async def test_find_by_queries(self) -> None:
        store = ModelDocumentStore(ArtistModel)
        await store.find_by_queries([{"name": "Carl Cox"}, {"genres": "techno"}])
        assert ArtistModel.calls == [{"$or": [{"name": "Carl Cox"}, {"genres": "techno"}]}]

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self) -> None:
        model = MagicMock()
        model.Settings.name = "broken"
        model.find.side_effect = RuntimeError("boom")
        store = ModelDocumentStore(model)
        with pytest.raises(DocumentStoreError):
            await store.find_by_queries([{}])
