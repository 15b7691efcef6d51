import time
from typing import Any, Callable

from chronmap_lib.storage.memory_backend import MemoryDurableStore, MemoryVolatileStore
from chronmap_lib.store.builder import StoreBuilder


def wait_for(predicate: Callable[[], Any], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll `predicate` until it is truthy or `timeout` seconds pass."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return bool(predicate())


class FailingDurableStore(MemoryDurableStore):
    """Durable store whose commit fails while `fail` is True."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = True
        self.failures = 0

    def commit(self) -> None:
        if self.fail:
            self.failures += 1
            raise OSError("disk full")
        super().commit()


def memory_builder(durable=None, interval: float = 30) -> StoreBuilder:
    """Builder wired to in-memory capabilities."""
    return (
        StoreBuilder()
        .volatile_store(MemoryVolatileStore())
        .durable_store(durable if durable is not None else MemoryDurableStore())
        .snapshot_interval_seconds(interval)
    )
