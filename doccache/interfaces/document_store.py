"""Abstract base class for backing document stores.

The batching loaders only ever need two fetches from the store: every
document whose id is in a set, and every document matching any of a set of
predicates.  Concrete adapters hide whether the collection is accessed
through a driver that returns plain records or through an object mapper
whose results must be flattened into lean dicts first.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IDocumentStore(ABC):
    """Contract for fetching documents from a single collection."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Collection (or mapped model) name used to derive cache keys."""

    @property
    def id_field(self) -> str:
        """Field holding each document's identifier."""
        return "_id"

    @abstractmethod
    async def find_by_ids(self, ids: list[Any]) -> list[dict[str, Any]]:
        """Fetch documents whose id is in *ids*.

        The result may be in any order and may omit ids that have no
        matching document.
        """

    @abstractmethod
    async def find_by_queries(self, queries: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Fetch the union of documents matching any predicate in *queries*.

        Each document appears at most once, in the store's natural order.
        """
