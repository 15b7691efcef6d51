"""Registry of live named stores.

An `InstanceRegistry` is created once by the application's composition root
and passed to every builder or factory that should share stores by name.
It keeps two maps: name -> live store, and name -> construction gate. The
gate serializes construction-or-lookup for one name so that concurrent
callers end up with the same instance and only one of them loads the
snapshot. Gates are reference counted and dropped once nobody waits on
them and the name has no live store.

The registry does not know the key/value types of its stores. Callers must
use one key/value type per name for the lifetime of the process; a store
built with declared types raises `TypeMismatchError` when used with other
types.
"""
from __future__ import annotations
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, TYPE_CHECKING

from chronmap_lib.errors import StoreClosedError
from chronmap_lib.util import is_blank

if TYPE_CHECKING:
    from chronmap_lib.store.store import ChronStore

logger = logging.getLogger(__name__)


@dataclass
class _Gate:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class InstanceRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._instances: Dict[str, "ChronStore"] = {}
        self._gates: Dict[str, _Gate] = {}

    # -- gates --------------------------------------------------------------

    def _acquire_gate(self, name: str) -> _Gate:
        with self._lock:
            gate = self._gates.get(name)
            if gate is None:
                gate = self._gates[name] = _Gate()
            gate.holders += 1
        gate.lock.acquire()
        return gate

    def _release_gate(self, name: str, gate: _Gate) -> None:
        gate.lock.release()
        with self._lock:
            gate.holders -= 1
            if gate.holders == 0 and name not in self._instances and self._gates.get(name) is gate:
                del self._gates[name]

    # -- construction -------------------------------------------------------

    def get_or_create(self, name: Optional[str], factory: Callable[[], "ChronStore"]) -> "ChronStore":
        """Return the live store registered under `name` or build one with `factory`.

        Blank or missing names never touch the registry: `factory()` is
        called and its result returned unregistered.
        """
        if is_blank(name):
            return factory()
        gate = self._acquire_gate(name)
        try:
            existing = self._instances.get(name)
            if existing is not None and not existing.closed:
                logger.info("Returning existing store instance %r", name)
                return existing
            if existing is not None:
                # still finishing close(); its unregister will not touch the replacement
                logger.info("Store instance %r is closing, replacing it", name)
            logger.info("Creating new store instance %r", name)
            store = factory()
            with self._lock:
                self._instances[name] = store
            return store
        finally:
            self._release_gate(name, gate)

    def unregister(self, name: Optional[str], store: "ChronStore") -> bool:
        """Forget `store` if it is the one registered under `name`."""
        if is_blank(name):
            return False
        with self._lock:
            if self._instances.get(name) is not store:
                return False
            del self._instances[name]
            gate = self._gates.get(name)
            if gate is not None and gate.holders == 0:
                del self._gates[name]
        logger.debug("Unregistered store instance %r", name)
        return True

    # -- lookups ------------------------------------------------------------

    def get(self, name: str) -> Optional["ChronStore"]:
        with self._lock:
            return self._instances.get(name)

    def names(self) -> Set[str]:
        with self._lock:
            return set(self._instances)

    def exists(self, name: str) -> bool:
        if name is None:
            raise ValueError("name cannot be None")
        with self._lock:
            return name in self._instances

    def _stores(self) -> List["ChronStore"]:
        with self._lock:
            return list(self._instances.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._instances

    # -- bulk operations ----------------------------------------------------

    def snapshot_all(self) -> int:
        """Snapshot every registered store; returns how many succeeded."""
        logger.info("Writing snapshots for all registered stores")
        count = 0
        for store in self._stores():
            try:
                store.snapshot()
                count += 1
            except Exception:
                logger.exception("Snapshot of store %r failed", store.name)
        logger.info("Snapshots written for %d stores", count)
        return count

    def close_all(self) -> int:
        """Close every registered store; returns how many were closed."""
        logger.info("Closing all registered stores")
        count = 0
        for store in self._stores():
            name = store.name
            try:
                store.close()
                logger.info("Store %r closed", name)
                count += 1
            except Exception:
                logger.exception("Closing store %r failed", name)
        logger.info("%d stores closed", count)
        return count

    def clear(self) -> None:
        """Close all stores and drop every entry and gate."""
        self.close_all()
        with self._lock:
            self._instances.clear()
            self._gates = {n: g for n, g in self._gates.items() if g.holders > 0}

    @staticmethod
    def _size(store: "ChronStore") -> int:
        try:
            return store.size()
        except StoreClosedError:
            return 0

    def total_entry_count(self) -> int:
        return sum(self._size(store) for store in self._stores())

    def statistics(self) -> str:
        """Human readable summary of the registered stores."""
        stores = sorted(self._stores(), key=lambda s: s.name)
        lines = [
            "=== ChronMap statistics ===",
            f"Instances: {len(stores)}",
            f"Total entries: {self.total_entry_count()}",
            "",
            "Details:",
        ]
        for store in stores:
            lines.append(f"  - {store.name}: {self._size(store)} entries")
        return "\n".join(lines) + "\n"
