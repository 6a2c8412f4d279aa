"""Batch loader that resolves documents by query predicate.

All predicates requested in one tick are sent to the store as a single
``$or``.  The union that comes back is then re-partitioned: every predicate
is evaluated against every document in the union, in the union's order,
so each caller receives exactly the documents its own predicate selects.
Documents matched by several predicates appear in each of their results.
"""

from __future__ import annotations

from typing import Any

from doccache.interfaces.document_store import IDocumentStore
from doccache.loaders.batch_loader import BatchLoader
from doccache.utils.errors import QueryMatchError
from doccache.utils.keys import canonical_query
from doccache.utils.matching import compile_query


def partition_documents(
    documents: list[dict[str, Any]],
    queries: list[dict[str, Any]],
) -> list[list[dict[str, Any]] | QueryMatchError]:
    """Split the union *documents* into one result list per query.

    A query the matcher cannot evaluate gets its :class:`QueryMatchError`
    in place of a result, leaving the rest of the batch intact.
    """
    partitions: list[list[dict[str, Any]] | QueryMatchError] = []
    for query in queries:
        predicate = compile_query(query)
        try:
            partitions.append([doc for doc in documents if predicate(doc)])
        except QueryMatchError as exc:
            partitions.append(exc)
    return partitions


def build_query_loader(
    store: IDocumentStore,
    cache: bool = False,
    max_batch_size: int | None = None,
) -> BatchLoader[dict[str, Any], list[dict[str, Any]]]:
    """Return a loader issuing one ``find_by_queries`` per tick for *store*."""

    async def load_partitions(queries: list[dict[str, Any]]) -> list[Any]:
        documents = await store.find_by_queries(queries)
        return partition_documents(documents, queries)

    return BatchLoader(
        load_partitions,
        key_fn=canonical_query,
        cache=cache,
        max_batch_size=max_batch_size,
        name=f"{store.name}.by_query",
    )
