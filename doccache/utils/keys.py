"""Cache-key derivation for documents and query predicates.

Keys have the shape ``<store-kind>:<backing-name>:<collection>:<suffix>``,
e.g. ``db:mongo:users:5f1d7f3e9b1e8a3c2d4e6f70`` for an id lookup or
``db:mongo:users:{"age":{"$gte":21}}`` for a query lookup.

Derivation is a pure function of (collection name, id-or-predicate).  Ids
are normalized first so that a binary object-id and its hex string map to
the same key, and predicates are serialized with sorted keys so that two
structurally equal dicts always produce the same suffix regardless of the
order their fields were inserted in.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any

_OBJECT_ID_LENGTH = 12

DEFAULT_STORE_KIND = "db"
DEFAULT_BACKING_NAME = "mongo"

# Reserved suffix under which the per-collection key index is stored.
ALL_KEYS_SUFFIX = "__all_keys__"


def normalize_id(value: Any) -> str:
    """Return the canonical string form of an entity identifier.

    Binary ids (``bytes`` or anything exposing a 12-byte ``.binary``
    attribute, such as ``bson.ObjectId``) become lower-case hex.  All other
    values use ``str()``, so ``"42"`` and ``42`` share a key.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    binary = getattr(value, "binary", None)
    if isinstance(binary, bytes) and len(binary) == _OBJECT_ID_LENGTH:
        return binary.hex()
    return str(value)


def _canonical_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return normalize_id(value)


def canonical_query(predicate: dict[str, Any]) -> str:
    """Serialize *predicate* deterministically (sorted keys, compact form)."""
    return json.dumps(
        predicate,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_canonical_default,
    )


class CacheKeyBuilder:
    """Derives every cache key that belongs to one collection.

    Parameters
    ----------
    collection_name:
        Collection (or mapped model) name used as the third key segment.
    store_kind:
        First key segment; identifies the kind of backing store.
    backing_name:
        Second key segment; identifies the backing technology.
    """

    def __init__(
        self,
        collection_name: str,
        store_kind: str = DEFAULT_STORE_KIND,
        backing_name: str = DEFAULT_BACKING_NAME,
    ) -> None:
        self._collection_name = collection_name
        self._prefix = f"{store_kind}:{backing_name}:{collection_name}:"

    @property
    def collection_name(self) -> str:
        return self._collection_name

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def all_keys_key(self) -> str:
        return self._prefix + ALL_KEYS_SUFFIX

    def key_for_id(self, entity_id: Any) -> str:
        return self._prefix + normalize_id(entity_id)

    def key_for_query(self, predicate: dict[str, Any]) -> str:
        return self._prefix + canonical_query(predicate)

    def key_for_id_or_query(self, value: Any) -> str:
        """Dict values are treated as query predicates, anything else as an id."""
        if isinstance(value, dict):
            return self.key_for_query(value)
        return self.key_for_id(value)


def key_for_id(collection_name: str, entity_id: Any) -> str:
    """Key for *entity_id* in *collection_name* using the default prefix."""
    return CacheKeyBuilder(collection_name).key_for_id(entity_id)


def key_for_query(collection_name: str, predicate: dict[str, Any]) -> str:
    """Key for *predicate* in *collection_name* using the default prefix."""
    return CacheKeyBuilder(collection_name).key_for_query(predicate)
