import pytest

from chronmap_lib.errors import SnapshotIOError, StoreClosedError
from chronmap_lib.snapshot import DirtyTracker, EngineState, SnapshotEngine
from chronmap_lib.storage.memory_backend import MemoryDurableStore, MemoryVolatileStore
from tests.helpers import FailingDurableStore


def make_engine(durable=None):
    volatile = MemoryVolatileStore()
    durable = durable if durable is not None else MemoryDurableStore()
    return SnapshotEngine(volatile, durable, DirtyTracker(), name="engine-test")


def test_load_copies_durable_into_volatile_and_counts():
    engine = make_engine(MemoryDurableStore({"a": 1, "b": 2}))
    assert engine.state is EngineState.LOADING
    assert engine.load() == 2
    assert engine.loaded_count == 2
    assert engine.state is EngineState.READY
    assert engine.volatile.get("a") == 1
    assert engine.volatile.size() == 2


def test_flush_replaces_durable_content_and_commits():
    durable = MemoryDurableStore({"stale": 0})
    engine = make_engine(durable)
    engine.load()
    engine.volatile.remove("stale")
    engine.volatile.put("k", "v")
    engine.flush()
    assert durable.committed() == {"k": "v"}
    assert durable.commit_count == 1
    assert engine.flush_count == 1


def test_run_scheduled_only_flushes_when_dirty():
    durable = MemoryDurableStore()
    engine = make_engine(durable)
    engine.load()
    assert engine.run_scheduled() is False
    assert durable.commit_count == 0
    engine.volatile.put("k", 1)
    engine.tracker.mark_dirty()
    assert engine.run_scheduled() is True
    assert engine.tracker.is_dirty is False
    assert durable.commit_count == 1


def test_run_scheduled_swallows_failure_and_leaves_flag_cleared(caplog):
    durable = FailingDurableStore()
    engine = make_engine(durable)
    engine.load()
    engine.volatile.put("k", 1)
    engine.tracker.mark_dirty()
    assert engine.run_scheduled() is False
    assert engine.tracker.is_dirty is False
    assert engine.state is EngineState.READY
    assert "Scheduled snapshot" in caplog.text


def test_manual_snapshot_propagates_failure_and_marks_dirty_again():
    durable = FailingDurableStore()
    engine = make_engine(durable)
    engine.load()
    with pytest.raises(SnapshotIOError):
        engine.snapshot()
    assert engine.tracker.is_dirty is True
    durable.fail = False
    engine.snapshot()
    assert engine.tracker.is_dirty is False


def test_write_during_flush_keeps_store_dirty():
    durable = MemoryDurableStore()
    engine = make_engine(durable)
    engine.load()
    engine.volatile.put("a", 1)
    engine.tracker.mark_dirty()

    original_commit = durable.commit

    def commit_with_concurrent_write():
        # a caller writes while the flush is copying
        engine.volatile.put("b", 2)
        engine.tracker.mark_dirty()
        original_commit()

    durable.commit = commit_with_concurrent_write
    assert engine.run_scheduled() is True
    assert engine.tracker.is_dirty is True
    durable.commit = original_commit
    assert engine.run_scheduled() is True
    assert durable.committed() == {"a": 1, "b": 2}


def test_close_flushes_when_dirty_and_releases_capabilities():
    durable = MemoryDurableStore()
    engine = make_engine(durable)
    engine.load()
    engine.volatile.put("k", "v")
    engine.tracker.mark_dirty()
    engine.close()
    assert durable.committed() == {"k": "v"}
    assert durable.closed and engine.volatile.closed
    assert engine.state is EngineState.CLOSED


def test_close_without_changes_does_not_flush():
    durable = MemoryDurableStore({"k": "v"})
    engine = make_engine(durable)
    engine.load()
    engine.close()
    assert durable.commit_count == 0
    engine.close()  # second close is a no-op


def test_close_releases_capabilities_even_if_final_flush_fails():
    durable = FailingDurableStore()
    engine = make_engine(durable)
    engine.load()
    engine.tracker.mark_dirty()
    with pytest.raises(SnapshotIOError):
        engine.close()
    assert durable.closed and engine.volatile.closed


def test_flush_after_close_is_rejected():
    engine = make_engine()
    engine.load()
    engine.close()
    with pytest.raises(StoreClosedError):
        engine.flush()
    engine.tracker.mark_dirty()
    assert engine.run_scheduled() is False
