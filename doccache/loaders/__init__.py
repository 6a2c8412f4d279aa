"""Request-coalescing loaders for by-id and by-query lookups."""

from doccache.loaders.batch_loader import BatchLoader
from doccache.loaders.id_loader import build_id_loader, remap_documents
from doccache.loaders.query_loader import build_query_loader, partition_documents

__all__ = [
    "BatchLoader",
    "build_id_loader",
    "build_query_loader",
    "partition_documents",
    "remap_documents",
]
