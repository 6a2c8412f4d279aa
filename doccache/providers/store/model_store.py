"""Document store adapter for object-mapped models.

Wraps an ODM document class (Beanie-style: ``Model.find(filter)`` returns a
query whose ``to_list()`` yields pydantic model instances).  Results are
flattened to lean dicts with ``model_dump(by_alias=True)`` so that the
``_id`` alias survives and downstream code never sees mapped objects.
"""

from __future__ import annotations

from typing import Any

import structlog
from pydantic import BaseModel

from doccache.interfaces.document_store import IDocumentStore
from doccache.providers.store.collection_store import drain_cursor
from doccache.utils.errors import DocumentStoreError
from doccache.utils.logging import get_logger


def to_lean(record: Any) -> dict[str, Any]:
    """Flatten a mapped record into a plain dict."""
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True)
    return dict(record)


def _model_name(model: Any) -> str:
    settings = getattr(model, "Settings", None)
    name = getattr(settings, "name", None)
    if isinstance(name, str) and name:
        return name
    return getattr(model, "__name__", "test")


class ModelDocumentStore(IDocumentStore):
    """Fetches lean records through an object mapper.

    Parameters
    ----------
    model:
        The mapped document class.
    name:
        Overrides the collection name read from ``model.Settings.name``
        (falling back to the class name).
    id_field:
        Aliased field holding the identifier in the dumped dicts.
    """

    def __init__(self, model: Any, name: str | None = None, id_field: str = "_id") -> None:
        self._model = model
        self._name = name or _model_name(model)
        self._id_field = id_field
        self._logger: structlog.BoundLogger = get_logger(__name__)

    @property
    def name(self) -> str:
        return self._name

    @property
    def id_field(self) -> str:
        return self._id_field

    @property
    def model(self) -> Any:
        return self._model

    async def find_by_ids(self, ids: list[Any]) -> list[dict[str, Any]]:
        return await self._find({self._id_field: {"$in": list(ids)}})

    async def find_by_queries(self, queries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self._find({"$or": list(queries)})

    async def _find(self, filter_: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            records = await drain_cursor(self._model.find(filter_))
        except Exception as exc:
            self._logger.error("model_find_failed", model=self._name, error=str(exc))
            raise DocumentStoreError(
                message=f"find on model '{self._name}' failed: {exc}",
                provider_name=self._name,
            ) from exc
        return [to_lean(record) for record in records]
