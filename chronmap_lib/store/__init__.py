"""Store facade and builder."""
from .store import ChronStore, DEFAULT_SNAPSHOT_INTERVAL_SECONDS
from .builder import StoreBuilder

__all__ = ["ChronStore", "StoreBuilder", "DEFAULT_SNAPSHOT_INTERVAL_SECONDS"]
