"""Batch loader that resolves documents by id."""

from __future__ import annotations

from typing import Any

from doccache.interfaces.document_store import IDocumentStore
from doccache.loaders.batch_loader import BatchLoader
from doccache.utils.keys import normalize_id


def remap_documents(
    documents: list[dict[str, Any]],
    ids: list[Any],
    id_field: str = "_id",
) -> list[dict[str, Any] | None]:
    """Line *documents* up with *ids*; ids without a document map to ``None``."""
    by_id = {normalize_id(doc.get(id_field)): doc for doc in documents}
    return [by_id.get(normalize_id(entity_id)) for entity_id in ids]


def build_id_loader(
    store: IDocumentStore,
    cache: bool = False,
    max_batch_size: int | None = None,
) -> BatchLoader[Any, dict[str, Any] | None]:
    """Return a loader issuing one ``find_by_ids`` per tick for *store*.

    An object-id and its hex string share one loader entry, but the store is
    asked for every raw form requested during the tick: a store that matches
    ids by type would otherwise miss whichever form arrived second.
    """

    async def load_documents(forms: list[list[Any]]) -> list[dict[str, Any] | None]:
        documents = await store.find_by_ids([raw for group in forms for raw in group])
        return remap_documents(documents, [group[0] for group in forms], store.id_field)

    return BatchLoader(
        load_documents,
        key_fn=normalize_id,
        cache=cache,
        max_batch_size=max_batch_size,
        collect_variants=True,
        name=f"{store.name}.by_id",
    )
