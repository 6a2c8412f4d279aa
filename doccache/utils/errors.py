"""Custom exception hierarchy for doccache.

All library exceptions inherit from :class:`DocCacheError`, which carries
an optional ``provider_name`` so error handlers can identify which backend
(e.g. "redis", "memory", a collection name) caused the failure.

    DocCacheError  (base -- catch-all for any doccache error)
    +-- CacheProviderError   (cache store unreachable / failed)
    +-- DocumentStoreError   (backing store fetch failed)
    +-- BatchLoadError       (batch function broke its contract)
    +-- QueryMatchError      (predicate uses an unsupported operator)
    +-- ConfigurationError   (invalid setup options)

Cache-layer errors are recovered locally by the caching methods (they
degrade to a miss); store-layer errors propagate to every caller that was
coalesced into the failing batch.
"""


class DocCacheError(Exception):
    """Base exception for all doccache errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[redis] Connection refused``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Backend errors
# ---------------------------------------------------------------------------

class CacheProviderError(DocCacheError):
    """Raised when a cache store operation fails (timeout, connection loss)."""

    def __init__(
        self,
        message: str = "Cache store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentStoreError(DocCacheError):
    """Raised when the backing document store cannot serve a fetch."""

    def __init__(
        self,
        message: str = "Document store fetch failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Loader / query errors
# ---------------------------------------------------------------------------

class BatchLoadError(DocCacheError):
    """Raised when a batch function returns a result of the wrong shape.

    Every request coalesced into the offending batch receives this error.
    """

    def __init__(
        self,
        message: str = "Batch function returned an invalid result",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class QueryMatchError(DocCacheError):
    """Raised when a query predicate cannot be evaluated in-process."""

    def __init__(
        self,
        message: str = "Unsupported query predicate",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class ConfigurationError(DocCacheError):
    """Raised when setup options are invalid or inconsistent."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
