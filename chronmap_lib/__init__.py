"""ChronMap: a volatile key-value store with debounced durable snapshots."""
from .errors import (
    ChronMapError,
    ConfigurationError,
    ExtractionError,
    SnapshotIOError,
    StoreClosedError,
    TypeMismatchError,
)
from .keys import KeyExtractor
from .registry import InstanceRegistry
from .store import ChronStore, StoreBuilder

__all__ = [
    "ChronMapError",
    "ConfigurationError",
    "ExtractionError",
    "SnapshotIOError",
    "StoreClosedError",
    "TypeMismatchError",
    "KeyExtractor",
    "InstanceRegistry",
    "ChronStore",
    "StoreBuilder",
]
