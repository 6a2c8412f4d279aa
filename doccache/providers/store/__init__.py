"""Backing document store adapters.

CollectionDocumentStore wraps a driver collection that already yields plain
records; ModelDocumentStore wraps an object mapper and returns lean dicts.
The flavor is chosen once, when the adapter is built.
"""

from doccache.providers.store.collection_store import CollectionDocumentStore
from doccache.providers.store.model_store import ModelDocumentStore

__all__ = ["CollectionDocumentStore", "ModelDocumentStore"]
