"""Fluent builder for `ChronStore` instances.

Example::

    registry = InstanceRegistry()
    store = (StoreBuilder()
             .name("sessions")
             .registry(registry)
             .types(str, dict)
             .key_serializer(StringSerializer())
             .value_serializer(PickleSerializer())
             .build())

When a non-blank name and a registry are given, `build()` returns the live
store already registered under that name if there is one; the rest of the
builder's configuration is then ignored.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from chronmap_lib.errors import ConfigurationError
from chronmap_lib.keys.extractor import KeyExtractor
from chronmap_lib.registry.registry import InstanceRegistry
from chronmap_lib.storage.base import DurableStore, VolatileStore
from chronmap_lib.storage.file_backend import FileDurableStore, DEFAULT_MAP_NAME
from chronmap_lib.storage.interfaces import DurableStoreProtocol, VolatileStoreProtocol
from chronmap_lib.storage.memory_backend import (
    MemoryVolatileStore,
    DEFAULT_ENTRIES,
    DEFAULT_AVERAGE_KEY_SIZE,
    DEFAULT_AVERAGE_VALUE_SIZE,
)
from chronmap_lib.storage.serializer import Serializer
from chronmap_lib.util import is_blank, snapshot_file_name
from .store import ChronStore, DEFAULT_SNAPSHOT_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


def _positive(value, what: str):
    if isinstance(value, bool) or value <= 0:
        raise ConfigurationError(f"{what} must be greater than 0")
    return value


class StoreBuilder:
    def __init__(self) -> None:
        self._name: Optional[str] = None
        self._registry: Optional[InstanceRegistry] = None
        self._volatile: Optional[VolatileStore] = None
        self._durable: Optional[DurableStore] = None
        self._key_type: Optional[type] = None
        self._value_type: Optional[type] = None
        self._entries = DEFAULT_ENTRIES
        self._average_key_size = DEFAULT_AVERAGE_KEY_SIZE
        self._average_value_size = DEFAULT_AVERAGE_VALUE_SIZE
        self._location: Optional[Path] = None
        self._data_dir = Path(".")
        self._map_name = DEFAULT_MAP_NAME
        self._interval: float = DEFAULT_SNAPSHOT_INTERVAL_SECONDS
        self._key_serializer: Optional[Serializer] = None
        self._value_serializer: Optional[Serializer] = None
        self._default_key_extractor: Optional[KeyExtractor] = None

    def name(self, name: Optional[str]) -> "StoreBuilder":
        """Logical name; with a registry it makes the store a per-name singleton."""
        self._name = name
        return self

    def registry(self, registry: InstanceRegistry) -> "StoreBuilder":
        self._registry = registry
        return self

    def volatile_store(self, store: VolatileStore) -> "StoreBuilder":
        if not isinstance(store, VolatileStoreProtocol):
            raise ConfigurationError(f"{type(store).__name__} does not implement the volatile store operations")
        self._volatile = store
        return self

    def durable_store(self, store: DurableStore) -> "StoreBuilder":
        """Use an already opened durable store instead of a file location."""
        if not isinstance(store, DurableStoreProtocol):
            raise ConfigurationError(f"{type(store).__name__} does not implement the durable store operations")
        self._durable = store
        return self

    def types(self, key_type: type, value_type: type) -> "StoreBuilder":
        self._key_type = key_type
        self._value_type = value_type
        return self

    def entries(self, entries: int) -> "StoreBuilder":
        self._entries = _positive(entries, "Expected entries")
        return self

    def average_key_size(self, size: int) -> "StoreBuilder":
        self._average_key_size = _positive(size, "Average key size")
        return self

    def average_value_size(self, size: int) -> "StoreBuilder":
        self._average_value_size = _positive(size, "Average value size")
        return self

    def durable_location(self, path: Union[str, Path]) -> "StoreBuilder":
        self._location = Path(path)
        return self

    def data_dir(self, path: Union[str, Path]) -> "StoreBuilder":
        """Directory for snapshot files derived from the store name."""
        self._data_dir = Path(path)
        return self

    def map_name(self, map_name: str) -> "StoreBuilder":
        if is_blank(map_name):
            raise ConfigurationError("Map name cannot be blank")
        self._map_name = map_name
        return self

    def snapshot_interval_seconds(self, seconds: float) -> "StoreBuilder":
        self._interval = _positive(seconds, "Snapshot interval")
        return self

    def key_serializer(self, serializer: Serializer) -> "StoreBuilder":
        self._key_serializer = serializer
        return self

    def value_serializer(self, serializer: Serializer) -> "StoreBuilder":
        self._value_serializer = serializer
        return self

    def default_key_extractor(self, extractor: KeyExtractor) -> "StoreBuilder":
        self._default_key_extractor = extractor
        return self

    # ---------------------------------------------------------------------

    def _resolve_location(self) -> Path:
        if self._location is not None:
            return self._location
        return self._data_dir / snapshot_file_name(self._name)

    def _validate(self) -> None:
        if self._volatile is None and (self._key_type is None or self._value_type is None):
            raise ConfigurationError("Either a volatile store or the key/value types must be set")
        if self._durable is None:
            if self._location is None and is_blank(self._name):
                raise ConfigurationError("Either a durable location or a name must be set")
            if self._key_serializer is None:
                raise ConfigurationError("Key serializer must be set")
            if self._value_serializer is None:
                raise ConfigurationError("Value serializer must be set")

    def _create(self, registry: Optional[InstanceRegistry] = None) -> ChronStore:
        volatile = self._volatile
        if volatile is None:
            volatile = MemoryVolatileStore(
                name=self._name,
                entries=self._entries,
                average_key_size=self._average_key_size,
                average_value_size=self._average_value_size,
            )
        durable = self._durable
        if durable is None:
            location = self._resolve_location()
            try:
                durable = FileDurableStore.open_or_create(
                    location, self._map_name, self._key_serializer, self._value_serializer
                )
            except Exception:
                if self._volatile is None:
                    volatile.close()
                raise
        return ChronStore(
            volatile,
            durable,
            name=self._name,
            snapshot_interval_seconds=self._interval,
            default_key_extractor=self._default_key_extractor,
            key_type=self._key_type,
            value_type=self._value_type,
            registry=registry,
        )

    def build(self) -> ChronStore:
        """Create the store, or return the live one registered under the name."""
        self._validate()
        if is_blank(self._name):
            return self._create()
        if self._registry is None:
            logger.debug("Store %r built without a registry; no singleton behaviour", self._name)
            return self._create()
        registry = self._registry
        return registry.get_or_create(self._name, lambda: self._create(registry))
