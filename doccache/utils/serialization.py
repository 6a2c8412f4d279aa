"""JSON codec for cache stores that only hold strings.

Documents fetched from a Mongo-style store routinely carry datetimes,
object-ids and raw bytes, none of which plain JSON can represent.  Values
are encoded using tagged objects in the style of MongoDB extended JSON:

    datetime  -> {"$date": "2024-01-01T00:00:00+00:00"}
    date      -> {"$day": "2024-01-01"}
    bytes     -> {"$binary": "<hex>"}
    ObjectId  -> {"$oid": "<24 hex chars>"}

On the way back ``$date``/``$day``/``$binary`` are restored to their Python
types.  ``$oid`` is restored as its hex string, which :func:`normalize_id`
treats as the same identifier as the original object-id.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from doccache.utils.keys import normalize_id


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return {"$date": value.isoformat()}
    if isinstance(value, date):
        return {"$day": value.isoformat()}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"$binary": bytes(value).hex()}
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if hasattr(value, "binary"):
        return {"$oid": normalize_id(value)}
    raise TypeError(f"Object of type {type(value).__name__} is not cacheable")


def _decode(obj: dict[str, Any]) -> Any:
    if len(obj) != 1:
        return obj
    ((tag, payload),) = obj.items()
    if tag == "$date":
        return datetime.fromisoformat(payload)
    if tag == "$day":
        return date.fromisoformat(payload)
    if tag == "$binary":
        return bytes.fromhex(payload)
    if tag == "$oid":
        return payload
    return obj


def dumps(value: Any) -> str:
    """Serialize a document (or list of documents) for a string-only store."""
    return json.dumps(value, default=_encode, separators=(",", ":"))


def loads(payload: str | bytes) -> Any:
    """Inverse of :func:`dumps`."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    return json.loads(payload, object_hook=_decode)


class ValueCodec:
    """Pass-through codec for stores that hold values by reference."""

    def encode(self, value: Any) -> Any:
        return value

    def decode(self, value: Any) -> Any:
        return value


class JsonValueCodec(ValueCodec):
    """Codec for stores that only hold strings."""

    def encode(self, value: Any) -> str:
        return dumps(value)

    def decode(self, value: Any) -> Any:
        return loads(value)


def codec_for(holds_references: bool) -> ValueCodec:
    """Pick the codec matching a cache provider's declared capability."""
    return ValueCodec() if holds_references else JsonValueCodec()
