from threading import Lock


class DirtyTracker:
    """Flag recording that the volatile store changed since the last flush.

    `mark_dirty` is called by every mutating store operation;
    `test_and_clear` is called by the flush paths before they read the
    volatile store, so a write landing during a flush sets the flag again
    and forces another cycle.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._dirty = False

    def mark_dirty(self) -> None:
        with self._lock:
            self._dirty = True

    def test_and_clear(self) -> bool:
        """Reset the flag and return its previous value."""
        with self._lock:
            was_dirty = self._dirty
            self._dirty = False
            return was_dirty

    @property
    def is_dirty(self) -> bool:
        return self._dirty
