"""Fixed-delay background scheduler driving debounced snapshots."""
from __future__ import annotations
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_STOP_GRACE_SECONDS = 10.0


class SnapshotScheduler:
    """Runs `task` every `interval` seconds on a daemon thread.

    The first run happens one full interval after `start`. The delay is
    measured from the end of the previous run, so a slow task pushes the
    next one back and runs never overlap. Exceptions escaping `task` are
    logged and do not stop the loop.
    """

    def __init__(self, task: Callable[[], object], interval: float, name: Optional[str] = None) -> None:
        if interval <= 0:
            raise ValueError("interval must be greater than 0")
        self._task = task
        self.interval = interval
        self.name = name
        self.fire_count = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("scheduler already started")
        self._thread = threading.Thread(
            target=self._loop,
            name=f"chronmap-snapshot-{self.name or 'unnamed'}",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Snapshot scheduler for %r started (interval %ss)", self.name, self.interval)

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            if self._stop_event.is_set():
                break
            self.fire_count += 1
            try:
                self._task()
            except Exception:
                logger.exception("Snapshot scheduler task for %r failed", self.name)

    def stop(self, grace_seconds: float = DEFAULT_STOP_GRACE_SECONDS) -> bool:
        """Cancel the scheduler and wait up to `grace_seconds` for a running task.

        Returns True if the thread finished within the grace period. If it
        did not, the daemon thread is abandoned; it cannot start another run
        because the stop flag is already set.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(grace_seconds)
        if thread.is_alive():
            logger.warning(
                "Snapshot scheduler for %r did not stop within %ss; abandoning it",
                self.name, grace_seconds,
            )
            return False
        logger.debug("Snapshot scheduler for %r stopped", self.name)
        return True
