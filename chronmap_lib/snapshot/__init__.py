"""Dirty tracking, snapshot engine and scheduler."""
from .dirty import DirtyTracker
from .engine import SnapshotEngine, EngineState
from .scheduler import SnapshotScheduler

__all__ = ["DirtyTracker", "SnapshotEngine", "EngineState", "SnapshotScheduler"]
