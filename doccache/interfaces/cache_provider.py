"""Abstract base classes for cache store providers.

Defines the key-value contract the caching methods read through and write
through.  Implementations may hold Python objects in process memory or talk
to a network store such as Redis; the adapter pattern lets the backend be
swapped without touching the caching logic.

Two capabilities are declared explicitly rather than inferred from the
shape of an injected object:

* ``holds_references`` -- ``True`` when the store keeps values by reference
  (arbitrary Python objects allowed, ``get`` returns the same object that
  was stored).  ``False`` means the store only holds strings and callers
  must serialize before ``set`` and deserialize after ``get``.
* :class:`IPrefixScanCacheProvider` -- stores that can enumerate and delete
  keys by prefix, enabling collection flushes without a key index.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar


class ICacheProvider(ABC):
    """Contract for the key-value store behind the caching methods.

    Every operation is a coroutine so network stores never block the loop.
    """

    holds_references: ClassVar[bool] = True

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier used in logs and error messages."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the live value under *key*, or ``None`` when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            Full cache key, collection prefix included.
        value:
            A document, a list of documents, or a key index.  Must be a
            ``str`` when ``holds_references`` is ``False``.
        ttl:
            Seconds until expiry.  ``None`` keeps the entry until it is
            deleted or evicted for space.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Drop *key*; deleting a missing key is not an error."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` while *key* holds a live value."""


class IPrefixScanCacheProvider(ICacheProvider):
    """A cache store that can delete every key sharing a prefix."""

    @abstractmethod
    async def delete_prefix(self, prefix: str) -> int:
        """Delete all keys starting with *prefix* and return how many went."""
