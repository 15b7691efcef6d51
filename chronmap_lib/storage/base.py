"""Storage capability interface definitions.

Defines the two abstract capabilities a `ChronStore` is composed around:
a fast `VolatileStore` holding the live entries and a slower
`DurableStore` holding the last committed snapshot. Implementations are
free to choose their own layout; the store only relies on the methods
below.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Tuple


class VolatileStore(ABC):
    """Abstract in-memory key-value capability.

    Implementations must be safe for concurrent access without external
    locking; the owning store never serializes reads and writes.
    """

    @abstractmethod
    def get(self, key: Any) -> Optional[Any]:
        """Return the value for `key` or None when absent."""

    @abstractmethod
    def put(self, key: Any, value: Any) -> Optional[Any]:
        """Upsert `value` under `key` and return the previous value or None."""

    @abstractmethod
    def remove(self, key: Any) -> Optional[Any]:
        """Delete `key` and return the removed value or None if absent."""

    @abstractmethod
    def contains(self, key: Any) -> bool:
        """Return True if `key` is present."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all entries."""

    @abstractmethod
    def size(self) -> int:
        """Return the number of entries."""

    @abstractmethod
    def items(self) -> Iterable[Tuple[Any, Any]]:
        """Return the current `(key, value)` pairs.

        The returned iterable must stay valid while other threads keep
        writing (e.g. a copied list).
        """

    @abstractmethod
    def close(self) -> None:
        """Release the capability. Further use is undefined."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once `close()` has been called."""


class DurableStore(ABC):
    """Abstract persistent key-value capability with commit semantics.

    `clear` and `put` only become visible to a later open after `commit`.
    A crash between a `clear` and the following `commit` must leave the
    previously committed content intact.
    """

    @abstractmethod
    def put(self, key: Any, value: Any) -> None:
        """Upsert `value` under `key` in the pending transaction."""

    @abstractmethod
    def clear(self) -> None:
        """Remove all entries in the pending transaction."""

    @abstractmethod
    def items(self) -> Iterable[Tuple[Any, Any]]:
        """Iterate the `(key, value)` pairs currently visible."""

    @abstractmethod
    def size(self) -> int:
        """Return the number of entries currently visible."""

    @abstractmethod
    def commit(self) -> None:
        """Make pending changes durable atomically."""

    @abstractmethod
    def close(self) -> None:
        """Release the capability (pending, uncommitted changes are dropped)."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once `close()` has been called."""
