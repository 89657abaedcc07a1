"""Abstract key-value store interface used by the index.

Defines the minimal surface the index needs from its backend (sets, hashes,
prefix enumeration, atomic write batches), enabling alternative backends and
test doubles via a common contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Dict, Optional, Set, Type


class Transaction(ABC):
    """A batch of queued writes applied together by :meth:`execute`.

    Either every queued operation is applied or none is. Used as a context
    manager, the batch executes when the block exits cleanly and is discarded
    when it raises.
    """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Queue deletion of ``key``."""

    @abstractmethod
    def set_add(self, key: str, member: str) -> None:
        """Queue adding ``member`` to the set at ``key``."""

    @abstractmethod
    def hash_set(self, key: str, field: str, value: str) -> None:
        """Queue setting ``field`` of the hash at ``key``."""

    @abstractmethod
    def execute(self) -> None:
        """Commit the queued operations.

        Implementations raise `termindex.exceptions.StoreUnavailable` when the
        batch cannot be committed and `termindex.exceptions.MalformedRecord`
        when a written key holds a value of the wrong type. In both cases no
        queued operation is applied.
        """
        raise NotImplementedError

    @abstractmethod
    def discard(self) -> None:
        """Drop the queued operations without sending them."""

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if exc_type is None:
            self.execute()
        else:
            self.discard()


class KeyValueStore(ABC):
    """Abstract interface for the store backing the index."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if ``key`` holds a value."""

    @abstractmethod
    def set_add(self, key: str, member: str) -> None:
        """Add ``member`` to the set at ``key``."""

    @abstractmethod
    def set_members(self, key: str) -> Set[str]:
        """Return the members of the set at ``key`` (empty if missing)."""

    @abstractmethod
    def hash_get(self, key: str, field: str) -> Optional[str]:
        """Return one hash field, or None when the key or field is missing."""

    @abstractmethod
    def hash_get_all(self, key: str) -> Dict[str, str]:
        """Return the whole hash at ``key`` (empty if missing)."""

    @abstractmethod
    def keys_matching(self, prefix: str) -> Set[str]:
        """Return every key starting with ``prefix``; ``""`` matches all keys."""

    @abstractmethod
    def transaction(self) -> Transaction:
        """Start a new write batch."""
        raise NotImplementedError
