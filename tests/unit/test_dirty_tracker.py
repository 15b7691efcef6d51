import threading

from chronmap_lib.snapshot import DirtyTracker


def test_initially_clean():
    t = DirtyTracker()
    assert t.is_dirty is False
    assert t.test_and_clear() is False


def test_test_and_clear_returns_previous_value_and_resets():
    t = DirtyTracker()
    t.mark_dirty()
    t.mark_dirty()
    assert t.is_dirty is True
    assert t.test_and_clear() is True
    assert t.test_and_clear() is False


def test_concurrent_marks_are_consumed_once():
    t = DirtyTracker()
    threads = [threading.Thread(target=t.mark_dirty) for _ in range(20)]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    results = [t.test_and_clear() for _ in range(3)]
    assert results == [True, False, False]
