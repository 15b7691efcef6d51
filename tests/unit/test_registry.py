import threading

import pytest

from chronmap_lib.errors import StoreClosedError
from chronmap_lib.storage.memory_backend import MemoryDurableStore, MemoryVolatileStore
from chronmap_lib.store import StoreBuilder
from tests.helpers import FailingDurableStore, memory_builder


class CountingDurableStore(MemoryDurableStore):
    """Durable store that counts how often its content is read."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.reads = 0
        self._reads_lock = threading.Lock()

    def items(self):
        with self._reads_lock:
            self.reads += 1
        return super().items()


class BlockingDurableStore(MemoryDurableStore):
    """Durable store whose commit waits until `release` is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.committing = threading.Event()
        self.release = threading.Event()

    def commit(self):
        self.committing.set()
        self.release.wait(5)
        super().commit()


def named(name, registry, durable=None):
    return memory_builder(durable).name(name).registry(registry)


def test_same_name_returns_same_instance(registry):
    a = named("shared", registry).build()
    b = named("shared", registry).build()
    assert a is b
    assert registry.exists("shared")
    assert registry.get("shared") is a


def test_distinct_names_are_distinct_instances(registry):
    a = named("one", registry).build()
    b = named("two", registry).build()
    assert a is not b
    assert registry.names() == {"one", "two"}
    assert len(registry) == 2


@pytest.mark.parametrize("name", [None, "", "   "])
def test_blank_names_are_never_shared(registry, name):
    a = named(name, registry).build()
    b = named(name, registry).build()
    try:
        assert a is not b
        assert len(registry) == 0
    finally:
        a.close()
        b.close()


def test_concurrent_builders_share_one_instance_and_one_load(registry):
    durable = CountingDurableStore({"k": "v"})
    threads_count = 16
    barrier = threading.Barrier(threads_count)
    results = []
    results_lock = threading.Lock()

    def worker():
        barrier.wait()
        store = (StoreBuilder()
                 .name("concurrent")
                 .registry(registry)
                 .volatile_store(MemoryVolatileStore())
                 .durable_store(durable)
                 .build())
        with results_lock:
            results.append(store)

    threads = [threading.Thread(target=worker) for _ in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert len(results) == threads_count
    assert all(r is results[0] for r in results)
    assert durable.reads == 1
    assert results[0].get("k") == "v"


def test_close_unregisters_and_next_build_is_fresh(registry):
    first = named("cycle", registry).build()
    first.put("k", "v")
    first.close()
    assert not registry.exists("cycle")
    assert "cycle" not in registry._gates

    second = named("cycle", registry).build()
    assert second is not first
    assert not second.closed


def test_build_during_close_returns_live_replacement(registry):
    durable = BlockingDurableStore()
    closing = named("slow", registry, durable).build()
    closing.put("k", "v")

    closer = threading.Thread(target=closing.close)
    closer.start()
    try:
        assert durable.committing.wait(5)
        assert closing.closed

        replacement = named("slow", registry).build()
        assert replacement is not closing
        assert not replacement.closed
        replacement.put("other", "value")
    finally:
        durable.release.set()
        closer.join(timeout=5)

    assert registry.get("slow") is replacement
    assert durable.committed() == {"k": "v"}


def test_unregister_ignores_other_instance(registry):
    first = named("x", registry).build()
    other = memory_builder().build()
    try:
        assert registry.unregister("x", other) is False
        assert registry.get("x") is first
    finally:
        other.close()


def test_failed_factory_leaves_no_entry(registry):
    def boom():
        raise RuntimeError("cannot build")

    with pytest.raises(RuntimeError):
        registry.get_or_create("broken", boom)
    assert not registry.exists("broken")
    assert registry._gates == {}


def test_exists_rejects_none(registry):
    with pytest.raises(ValueError):
        registry.exists(None)


def test_snapshot_all_counts_successes_and_contains_failures(registry):
    good = named("good", registry).build()
    bad_durable = FailingDurableStore()
    bad = named("bad", registry, bad_durable).build()
    good.put("k", 1)
    bad.put("k", 1)

    assert registry.snapshot_all() == 1
    assert good.flush_count == 1
    assert bad_durable.failures == 1
    bad_durable.fail = False


def test_close_all_closes_and_unregisters(registry):
    a = named("a", registry).build()
    b = named("b", registry).build()
    a.put("k", "v")
    assert registry.close_all() == 2
    assert a.closed and b.closed
    assert len(registry) == 0
    with pytest.raises(StoreClosedError):
        a.get("k")


def test_clear_closes_everything(registry):
    a = named("a", registry).build()
    registry.clear()
    assert a.closed
    assert registry.names() == set()


def test_total_entry_count_and_statistics(registry):
    users = named("users", registry).build()
    orders = named("orders", registry).build()
    for i in range(3):
        users.put(f"u{i}", i)
    orders.put("o1", 1)

    assert registry.total_entry_count() == 4
    text = registry.statistics()
    assert text.startswith("=== ChronMap statistics ===\n")
    assert "Instances: 2\n" in text
    assert "Total entries: 4\n" in text
    assert "  - orders: 1 entries\n" in text
    assert "  - users: 3 entries\n" in text
    assert text.index("orders") < text.index("users")


def test_statistics_of_empty_registry(registry):
    text = registry.statistics()
    assert "Instances: 0" in text
    assert "Total entries: 0" in text
