"""Document store adapter for driver-level collection handles.

Wraps a Motor ``AsyncIOMotorCollection``, a PyMongo ``Collection`` or
anything else exposing ``find(filter)`` that returns a cursor of plain
dict records.  The cursor may offer an async or sync ``to_list``, async
iteration, or plain iteration; all four are drained the same way.
"""

from __future__ import annotations

import inspect
from typing import Any

import structlog

from doccache.interfaces.document_store import IDocumentStore
from doccache.utils.errors import DocumentStoreError
from doccache.utils.logging import get_logger


async def drain_cursor(cursor: Any) -> list[Any]:
    """Collect every record from a sync or async cursor into a list."""
    if inspect.isawaitable(cursor):
        cursor = await cursor
    if hasattr(cursor, "to_list"):
        records = cursor.to_list(None)
        if inspect.isawaitable(records):
            records = await records
        return list(records)
    if hasattr(cursor, "__aiter__"):
        return [record async for record in cursor]
    return list(cursor)


def _collection_name(collection: Any) -> str:
    for attr in ("name", "collection_name"):
        value = getattr(collection, attr, None)
        if isinstance(value, str) and value:
            return value
    return "test"


class CollectionDocumentStore(IDocumentStore):
    """Fetches plain records from a driver collection.

    Parameters
    ----------
    collection:
        The collection handle.
    name:
        Overrides the name read from ``collection.name``.
    id_field:
        Document field holding the identifier.
    """

    def __init__(self, collection: Any, name: str | None = None, id_field: str = "_id") -> None:
        self._collection = collection
        self._name = name or _collection_name(collection)
        self._id_field = id_field
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def name(self) -> str:
        return self._name

    @property
    def id_field(self) -> str:
        return self._id_field

    @property
    def collection(self) -> Any:
        return self._collection

    async def find_by_ids(self, ids: list[Any]) -> list[dict[str, Any]]:
        return await self._find({self._id_field: {"$in": list(ids)}})

    async def find_by_queries(self, queries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self._find({"$or": list(queries)})

    async def _find(self, filter_: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            return await drain_cursor(self._collection.find(filter_))
        except Exception as exc:
            self._logger.error("collection_find_failed", collection=self._name, error=str(exc))
            raise DocumentStoreError(
                message=f"find on '{self._name}' failed: {exc}",
                provider_name=self._name,
            ) from exc
