"""Snapshot engine: copies the volatile store into the durable store.

The engine owns both capabilities for the lifetime of a store and moves
through the states::

    LOADING -> READY <-> SNAPSHOTTING -> CLOSED

A flush is a full replace: clear the durable map, copy every volatile
entry, commit. Flushes are serialized by a lock that is never taken by
plain reads and writes.
"""
from __future__ import annotations
import enum
import logging
from threading import Lock
from typing import Optional

from chronmap_lib.errors import SnapshotIOError, StoreClosedError
from chronmap_lib.storage.base import DurableStore, VolatileStore
from .dirty import DirtyTracker

logger = logging.getLogger(__name__)


class EngineState(enum.Enum):
    LOADING = "loading"
    READY = "ready"
    SNAPSHOTTING = "snapshotting"
    CLOSED = "closed"


class SnapshotEngine:
    def __init__(
        self,
        volatile: VolatileStore,
        durable: DurableStore,
        tracker: Optional[DirtyTracker] = None,
        name: Optional[str] = None,
    ) -> None:
        self.volatile = volatile
        self.durable = durable
        self.tracker = tracker or DirtyTracker()
        self.name = name
        self.state = EngineState.LOADING
        self.loaded_count = 0
        self.flush_count = 0
        self._flush_lock = Lock()

    def load(self) -> int:
        """Copy every durable entry into the volatile store.

        Returns the number of entries loaded.
        """
        count = 0
        try:
            for key, value in self.durable.items():
                self.volatile.put(key, value)
                count += 1
        except Exception as e:
            raise SnapshotIOError(f"Failed to load snapshot for {self.name!r}: {e}") from e
        self.loaded_count = count
        self.state = EngineState.READY
        logger.info("Loaded %d entries from snapshot for %r", count, self.name)
        return count

    def _flush_locked(self) -> None:
        if self.state is EngineState.CLOSED:
            raise StoreClosedError(f"Store {self.name!r} is closed")
        logger.debug("Writing snapshot for %r...", self.name)
        self.state = EngineState.SNAPSHOTTING
        try:
            self.durable.clear()
            count = 0
            for key, value in self.volatile.items():
                self.durable.put(key, value)
                count += 1
            self.durable.commit()
        except Exception as e:
            raise SnapshotIOError(f"Failed to write snapshot for {self.name!r}: {e}") from e
        finally:
            self.state = EngineState.READY
        self.flush_count += 1
        logger.info("Snapshot for %r written with %d entries", self.name, count)

    def flush(self) -> None:
        """Run one flush. Raises `SnapshotIOError` on failure."""
        with self._flush_lock:
            self._flush_locked()

    def run_scheduled(self) -> bool:
        """Flush if the store is dirty. Called by the scheduler.

        Errors are logged and swallowed. The dirty flag stays cleared, so a
        failed flush is only retried once another mutation arrives.
        Returns True if a flush completed.
        """
        if not self.tracker.test_and_clear():
            return False
        try:
            self.flush()
        except StoreClosedError:
            logger.debug("Skipping scheduled snapshot for closed store %r", self.name)
            return False
        except SnapshotIOError:
            logger.exception("Scheduled snapshot for %r failed", self.name)
            return False
        return True

    def snapshot(self) -> None:
        """Flush now, regardless of the dirty flag.

        On failure the flag is set again and the error propagates.
        """
        with self._flush_lock:
            self.tracker.test_and_clear()
            try:
                self._flush_locked()
            except SnapshotIOError:
                self.tracker.mark_dirty()
                raise

    def close(self) -> None:
        """Final flush if dirty, then release both capabilities.

        Waits for an in-flight flush. The capabilities are released even if
        the final flush fails; the error is re-raised afterwards.
        """
        with self._flush_lock:
            if self.state is EngineState.CLOSED:
                return
            try:
                if self.tracker.test_and_clear():
                    self._flush_locked()
            finally:
                self.state = EngineState.CLOSED
                try:
                    self.durable.close()
                finally:
                    self.volatile.close()
