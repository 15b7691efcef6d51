"""Convenience factories for common store setups.

Every named factory takes the `InstanceRegistry` explicitly, so calling one
twice with the same name returns the same live store.
"""
from __future__ import annotations
import atexit
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Union

from chronmap_lib.errors import ConfigurationError
from chronmap_lib.storage.serializer import Serializer, StringSerializer
from chronmap_lib.store.builder import StoreBuilder
from chronmap_lib.store.store import ChronStore
from chronmap_lib.util import is_blank
from .registry import InstanceRegistry

logger = logging.getLogger(__name__)

SIMPLE_ENTRIES = 10_000
SIMPLE_AVERAGE_KEY_SIZE = 20
SIMPLE_AVERAGE_VALUE_SIZE = 100
LARGE_SNAPSHOT_INTERVAL_SECONDS = 60
FAST_SNAPSHOT_INTERVAL_SECONDS = 5


def _require_name(name: str) -> None:
    if is_blank(name):
        raise ConfigurationError("Name cannot be None or blank")


def _require_types_and_serializers(key_type, value_type, key_serializer, value_serializer) -> None:
    if key_type is None or value_type is None:
        raise ConfigurationError("Key and value types cannot be None")
    if key_serializer is None or value_serializer is None:
        raise ConfigurationError("Key and value serializers cannot be None")


def _named_builder(
    name: str,
    registry: InstanceRegistry,
    key_type: type,
    value_type: type,
    key_serializer: Serializer,
    value_serializer: Serializer,
    data_dir: Union[str, Path],
) -> StoreBuilder:
    return (
        StoreBuilder()
        .name(name)
        .registry(registry)
        .data_dir(data_dir)
        .types(key_type, value_type)
        .key_serializer(key_serializer)
        .value_serializer(value_serializer)
    )


def create_simple_string_db(name: str, registry: InstanceRegistry, data_dir: Union[str, Path] = ".") -> ChronStore:
    """str -> str store with default capacity hints and a 30 s interval."""
    _require_name(name)
    logger.info("Creating simple string store %r", name)
    return _named_builder(name, registry, str, str, StringSerializer(), StringSerializer(), data_dir).build()


def create_simple_db(
    name: str,
    registry: InstanceRegistry,
    key_type: type,
    value_type: type,
    key_serializer: Serializer,
    value_serializer: Serializer,
    data_dir: Union[str, Path] = ".",
) -> ChronStore:
    _require_name(name)
    _require_types_and_serializers(key_type, value_type, key_serializer, value_serializer)
    logger.info("Creating typed store %r (%s -> %s)", name, key_type.__name__, value_type.__name__)
    return _named_builder(name, registry, key_type, value_type, key_serializer, value_serializer, data_dir).build()


def create_large_db(
    name: str,
    registry: InstanceRegistry,
    key_type: type,
    value_type: type,
    key_serializer: Serializer,
    value_serializer: Serializer,
    expected_entries: int,
    average_key_size: int,
    average_value_size: int,
    data_dir: Union[str, Path] = ".",
) -> ChronStore:
    """Store sized for many entries, snapshotted every 60 s."""
    _require_name(name)
    _require_types_and_serializers(key_type, value_type, key_serializer, value_serializer)
    if expected_entries <= 0:
        raise ConfigurationError("Expected entries must be greater than 0")
    if average_key_size <= 0 or average_value_size <= 0:
        raise ConfigurationError("Average sizes must be greater than 0")
    logger.info("Creating large store %r with %d expected entries", name, expected_entries)
    return (
        _named_builder(name, registry, key_type, value_type, key_serializer, value_serializer, data_dir)
        .entries(expected_entries)
        .average_key_size(average_key_size)
        .average_value_size(average_value_size)
        .snapshot_interval_seconds(LARGE_SNAPSHOT_INTERVAL_SECONDS)
        .build()
    )


def create_fast_snapshot_db(
    name: str,
    registry: InstanceRegistry,
    key_type: type,
    value_type: type,
    key_serializer: Serializer,
    value_serializer: Serializer,
    data_dir: Union[str, Path] = ".",
) -> ChronStore:
    """Store snapshotted every 5 s, for data where the loss window matters."""
    _require_name(name)
    _require_types_and_serializers(key_type, value_type, key_serializer, value_serializer)
    logger.info("Creating fast snapshot store %r (%ds interval)", name, FAST_SNAPSHOT_INTERVAL_SECONDS)
    return (
        _named_builder(name, registry, key_type, value_type, key_serializer, value_serializer, data_dir)
        .snapshot_interval_seconds(FAST_SNAPSHOT_INTERVAL_SECONDS)
        .build()
    )


def _remove_quietly(path: Path) -> None:
    for p in (path, path.with_suffix(path.suffix + ".tmp")):
        try:
            os.remove(p)
        except FileNotFoundError:
            pass


def create_temporary_db(
    key_type: type,
    value_type: type,
    key_serializer: Serializer,
    value_serializer: Serializer,
) -> ChronStore:
    """Unnamed store backed by a unique file in the system temp directory.

    The file is removed when the interpreter exits.
    """
    _require_types_and_serializers(key_type, value_type, key_serializer, value_serializer)
    path = Path(tempfile.gettempdir()) / f"chronmap-{uuid.uuid4().hex}.db"
    atexit.register(_remove_quietly, path)
    logger.info("Creating temporary store in %s", path)
    return (
        StoreBuilder()
        .types(key_type, value_type)
        .durable_location(path)
        .key_serializer(key_serializer)
        .value_serializer(value_serializer)
        .build()
    )
