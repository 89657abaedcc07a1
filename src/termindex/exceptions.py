"""Custom exception hierarchy for termindex.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations

from typing import Optional


class TermIndexError(Exception):
    """Base class for all termindex exceptions."""


class ConfigError(TermIndexError):
    """Raised when configuration loading or validation fails."""


class ParsingError(TermIndexError):
    """Raised when page content fails to parse."""


class StorageError(TermIndexError):
    """Raised when the storage layer encounters an error."""


class StoreUnavailable(StorageError):
    """Raised when the key-value store cannot be reached or rejects a transaction.

    A transaction that fails this way has not been applied.
    """


class TermNotFound(StorageError, LookupError):
    """Raised when a count is requested for a (url, term) pair that is not stored.

    ``term`` is None when the whole record for ``url`` is missing.
    """

    def __init__(self, url: str, term: Optional[str] = None) -> None:
        self.url = url
        self.term = term
        if term is None:
            msg = f"URL is not indexed: {url!r}"
        else:
            msg = f"Term {term!r} not found for URL {url!r}"
        super().__init__(msg)


class MalformedRecord(StorageError):
    """Raised when a stored count is not a decimal non-negative integer.

    Also raised with ``field=None`` when an index key holds a value of the
    wrong Redis type; ``raw`` is then the type found.
    """

    def __init__(self, key: str, field: Optional[str], raw: object) -> None:
        self.key = key
        self.field = field
        self.raw = raw
        if field is None:
            msg = f"Key {key!r} holds a value of unexpected type {raw!r}"
        else:
            msg = f"Malformed count at {key!r}[{field!r}]: {raw!r}"
        super().__init__(msg)
