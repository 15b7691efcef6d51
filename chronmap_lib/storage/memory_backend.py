"""Memory-backed storage capabilities.

`MemoryVolatileStore` is the default live store of a `ChronStore`: a plain
dict guarded by an RLock. `MemoryDurableStore` keeps a committed and a
pending copy in memory and is used for ephemeral stores and tests.
"""
from threading import RLock
from typing import Dict, Any, Optional, Iterable, List, Tuple
import logging

from .base import VolatileStore, DurableStore

logger = logging.getLogger(__name__)

DEFAULT_ENTRIES = 10_000
DEFAULT_AVERAGE_KEY_SIZE = 20
DEFAULT_AVERAGE_VALUE_SIZE = 100


class MemoryVolatileStore(VolatileStore):
    """Thread-safe in-memory store.

    The capacity hints are advisory: the store never refuses writes, it
    only logs a warning the first time the expected entry count is
    exceeded.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        entries: int = DEFAULT_ENTRIES,
        average_key_size: int = DEFAULT_AVERAGE_KEY_SIZE,
        average_value_size: int = DEFAULT_AVERAGE_VALUE_SIZE,
    ) -> None:
        self._lock = RLock()
        self._store: Dict[Any, Any] = {}
        self._closed = False
        self._warned_capacity = False
        self.name = name
        self.entries = entries
        self.average_key_size = average_key_size
        self.average_value_size = average_value_size

    def get(self, key: Any) -> Optional[Any]:
        with self._lock:
            return self._store.get(key)

    def put(self, key: Any, value: Any) -> Optional[Any]:
        with self._lock:
            previous = self._store.get(key)
            self._store[key] = value
            if not self._warned_capacity and len(self._store) > self.entries:
                self._warned_capacity = True
                logger.warning(
                    "Volatile store %r exceeded its expected entry count (%d)",
                    self.name, self.entries,
                )
            return previous

    def remove(self, key: Any) -> Optional[Any]:
        with self._lock:
            return self._store.pop(key, None)

    def contains(self, key: Any) -> bool:
        with self._lock:
            return key in self._store

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def items(self) -> List[Tuple[Any, Any]]:
        with self._lock:
            return list(self._store.items())

    def close(self) -> None:
        with self._lock:
            self._store.clear()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class MemoryDurableStore(DurableStore):
    """In-memory durable capability with commit semantics.

    Writes go to a pending copy; `commit` swaps it in. `commit_count`
    counts commits, which makes flush activity observable in tests.
    """

    def __init__(self, initial: Optional[Dict[Any, Any]] = None) -> None:
        self._lock = RLock()
        self._committed: Dict[Any, Any] = dict(initial or {})
        self._pending: Dict[Any, Any] = dict(self._committed)
        self._closed = False
        self.commit_count = 0

    def put(self, key: Any, value: Any) -> None:
        with self._lock:
            self._pending[key] = value

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()

    def items(self) -> List[Tuple[Any, Any]]:
        with self._lock:
            return list(self._pending.items())

    def size(self) -> int:
        with self._lock:
            return len(self._pending)

    def commit(self) -> None:
        with self._lock:
            self._committed = dict(self._pending)
            self.commit_count += 1

    def committed(self) -> Dict[Any, Any]:
        """Return a copy of the last committed content."""
        with self._lock:
            return dict(self._committed)

    def close(self) -> None:
        with self._lock:
            # uncommitted changes are dropped, as with a real transaction
            self._pending = dict(self._committed)
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
