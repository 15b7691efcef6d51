"""ChronStore: a volatile key-value store with debounced durable snapshots.

Reads and writes go straight to the volatile store. Every mutation marks
the store dirty; a background scheduler checks the flag once per snapshot
interval and copies the volatile content into the durable store when it
is set. `close()` stops the scheduler, writes a final snapshot if needed
and releases both capabilities.

Use `StoreBuilder` to create instances.
"""
from __future__ import annotations
import logging
from threading import Lock
from typing import Any, Optional, TYPE_CHECKING

from chronmap_lib.errors import ConfigurationError, StoreClosedError, TypeMismatchError
from chronmap_lib.keys.extractor import KeyExtractor
from chronmap_lib.snapshot.dirty import DirtyTracker
from chronmap_lib.snapshot.engine import SnapshotEngine
from chronmap_lib.snapshot.scheduler import SnapshotScheduler, DEFAULT_STOP_GRACE_SECONDS
from chronmap_lib.storage.base import DurableStore, VolatileStore

if TYPE_CHECKING:
    from chronmap_lib.registry.registry import InstanceRegistry

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_INTERVAL_SECONDS = 30


class ChronStore:
    def __init__(
        self,
        volatile: VolatileStore,
        durable: DurableStore,
        *,
        name: Optional[str] = None,
        snapshot_interval_seconds: float = DEFAULT_SNAPSHOT_INTERVAL_SECONDS,
        default_key_extractor: Optional[KeyExtractor] = None,
        key_type: Optional[type] = None,
        value_type: Optional[type] = None,
        registry: Optional["InstanceRegistry"] = None,
        stop_grace_seconds: float = DEFAULT_STOP_GRACE_SECONDS,
    ) -> None:
        if snapshot_interval_seconds <= 0:
            raise ConfigurationError("Snapshot interval must be greater than 0")
        self._name = name
        self._volatile = volatile
        self._snapshot_interval_seconds = snapshot_interval_seconds
        self._default_key_extractor = default_key_extractor
        self._key_type = key_type
        self._value_type = value_type
        self._registry = registry
        self._stop_grace_seconds = stop_grace_seconds
        self._closed = False
        self._close_lock = Lock()

        self._tracker = DirtyTracker()
        self._engine = SnapshotEngine(volatile, durable, self._tracker, name)
        try:
            self._engine.load()
        except Exception:
            self._engine.close()
            raise

        self._scheduler = SnapshotScheduler(self._engine.run_scheduled, snapshot_interval_seconds, name)
        self._scheduler.start()
        logger.info(
            "ChronStore %r initialised with a snapshot interval of %s seconds",
            name, snapshot_interval_seconds,
        )

    # -- checks -------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"Store {self._name!r} is closed")

    def _check_key(self, key: Any) -> None:
        if self._key_type is not None and not isinstance(key, self._key_type):
            raise TypeMismatchError(
                f"Store {self._name!r} expects keys of type {self._key_type.__name__}, "
                f"got {type(key).__name__}"
            )

    def _check_value(self, value: Any) -> None:
        if self._value_type is not None and not isinstance(value, self._value_type):
            raise TypeMismatchError(
                f"Store {self._name!r} expects values of type {self._value_type.__name__}, "
                f"got {type(value).__name__}"
            )

    def _extract(self, source: Any, extractor: Optional[KeyExtractor]) -> Any:
        extractor = extractor or self._default_key_extractor
        if extractor is None:
            raise ConfigurationError(
                f"Store {self._name!r} has no default key extractor; pass one explicitly"
            )
        return extractor.extract_key(source)

    # -- map operations -----------------------------------------------------

    def put(self, key: Any, value: Any) -> Optional[Any]:
        """Store `value` under `key` and return the previous value or None."""
        self._ensure_open()
        self._check_key(key)
        self._check_value(value)
        previous = self._volatile.put(key, value)
        self._tracker.mark_dirty()
        return previous

    def get(self, key: Any) -> Optional[Any]:
        self._ensure_open()
        self._check_key(key)
        return self._volatile.get(key)

    def remove(self, key: Any) -> Optional[Any]:
        """Remove `key` and return the removed value or None if it was absent."""
        self._ensure_open()
        self._check_key(key)
        # a key may hold None, so presence decides whether anything changed
        present = self._volatile.contains(key)
        previous = self._volatile.remove(key)
        if present or previous is not None:
            self._tracker.mark_dirty()
        return previous

    def contains_key(self, key: Any) -> bool:
        self._ensure_open()
        self._check_key(key)
        return self._volatile.contains(key)

    def clear(self) -> None:
        self._ensure_open()
        self._volatile.clear()
        self._tracker.mark_dirty()

    def size(self) -> int:
        self._ensure_open()
        return self._volatile.size()

    def is_empty(self) -> bool:
        return self.size() == 0

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: Any) -> bool:
        return self.contains_key(key)

    # -- composite key operations -------------------------------------------

    def put_extracted(self, source: Any, value: Any, extractor: Optional[KeyExtractor] = None) -> Optional[Any]:
        """Put `value` under the key extracted from `source`.

        Uses the store's default extractor when `extractor` is omitted.
        """
        return self.put(self._extract(source, extractor), value)

    def get_extracted(self, source: Any, extractor: Optional[KeyExtractor] = None) -> Optional[Any]:
        return self.get(self._extract(source, extractor))

    def remove_extracted(self, source: Any, extractor: Optional[KeyExtractor] = None) -> Optional[Any]:
        return self.remove(self._extract(source, extractor))

    def contains_key_extracted(self, source: Any, extractor: Optional[KeyExtractor] = None) -> bool:
        return self.contains_key(self._extract(source, extractor))

    def put_row(self, row: Any, extractor: Optional[KeyExtractor] = None) -> Optional[Any]:
        """Store `row` itself under the key extracted from it."""
        return self.put(self._extract(row, extractor), row)

    # -- snapshot and lifecycle ---------------------------------------------

    def snapshot(self) -> None:
        """Write a snapshot now. Raises `SnapshotIOError` on failure."""
        self._ensure_open()
        self._engine.snapshot()

    def close(self) -> None:
        """Stop the scheduler, write a final snapshot if dirty and release resources.

        Calling `close()` again is a no-op.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        logger.info("Closing ChronStore %r...", self._name)
        self._scheduler.stop(self._stop_grace_seconds)
        try:
            self._engine.close()
        finally:
            if self._registry is not None and self._name is not None:
                self._registry.unregister(self._name, self)
        logger.info("ChronStore %r closed", self._name)

    def __enter__(self) -> "ChronStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- introspection ------------------------------------------------------

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def volatile_store(self) -> VolatileStore:
        return self._volatile

    @property
    def snapshot_interval_seconds(self) -> float:
        return self._snapshot_interval_seconds

    @property
    def default_key_extractor(self) -> Optional[KeyExtractor]:
        return self._default_key_extractor

    @property
    def key_type(self) -> Optional[type]:
        return self._key_type

    @property
    def value_type(self) -> Optional[type]:
        return self._value_type

    @property
    def is_dirty(self) -> bool:
        return self._tracker.is_dirty

    @property
    def loaded_count(self) -> int:
        return self._engine.loaded_count

    @property
    def flush_count(self) -> int:
        return self._engine.flush_count

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"ChronStore(name={self._name!r}, {state})"
