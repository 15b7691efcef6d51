"""YAML configuration for stores created at application start.

Example ``data/config/chronmap.yml``::

    log_level: INFO
    data_dir: data
    stores:
      - name: sessions
        key_type: str
        value_type: any
        value_serializer: pickle
        snapshot_interval_seconds: 10
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from chronmap_lib.errors import ConfigurationError
from chronmap_lib.registry.registry import InstanceRegistry
from chronmap_lib.storage.file_backend import DEFAULT_MAP_NAME
from chronmap_lib.storage.serializer import create_serializer
from chronmap_lib.store.builder import StoreBuilder
from chronmap_lib.store.store import DEFAULT_SNAPSHOT_INTERVAL_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path('data/config/chronmap.yml')

TYPE_NAMES: Dict[str, type] = {
    'str': str,
    'int': int,
    'float': float,
    'bytes': bytes,
    'any': object,
}


class StoreConfig(BaseModel):
    name: str
    key_type: str = 'str'
    value_type: str = 'any'
    key_serializer: str = 'string'
    value_serializer: str = 'pickle'
    serializer_options: Dict[str, Any] = Field(default_factory=dict)
    map_name: str = DEFAULT_MAP_NAME
    snapshot_interval_seconds: float = Field(DEFAULT_SNAPSHOT_INTERVAL_SECONDS, gt=0)
    durable_location: Optional[str] = None
    entries: Optional[int] = Field(None, gt=0)
    average_key_size: Optional[int] = Field(None, gt=0)
    average_value_size: Optional[int] = Field(None, gt=0)

    def _type(self, type_name: str) -> type:
        try:
            return TYPE_NAMES[type_name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown type {type_name!r} for store {self.name!r}; expected one of {sorted(TYPE_NAMES)}"
            ) from None

    def to_builder(self, registry: Optional[InstanceRegistry], data_dir: Union[str, Path] = '.') -> StoreBuilder:
        """Return a builder configured from this entry."""
        builder = (
            StoreBuilder()
            .name(self.name)
            .data_dir(data_dir)
            .types(self._type(self.key_type), self._type(self.value_type))
            .key_serializer(create_serializer(self.key_serializer))
            .value_serializer(create_serializer(self.value_serializer, **self.serializer_options))
            .map_name(self.map_name)
            .snapshot_interval_seconds(self.snapshot_interval_seconds)
        )
        if registry is not None:
            builder.registry(registry)
        if self.durable_location:
            builder.durable_location(self.durable_location)
        if self.entries is not None:
            builder.entries(self.entries)
        if self.average_key_size is not None:
            builder.average_key_size(self.average_key_size)
        if self.average_value_size is not None:
            builder.average_value_size(self.average_value_size)
        return builder


class ChronMapConfig(BaseModel):
    log_level: Optional[str] = None
    data_dir: str = 'data'
    stores: List[StoreConfig] = Field(default_factory=list)


def parse_config(raw: Optional[Dict[str, Any]]) -> ChronMapConfig:
    try:
        return ChronMapConfig(**(raw or {}))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid chronmap configuration: {e}") from e


def load_config(path: Optional[Path] = None) -> ChronMapConfig:
    """Load the YAML config at `path`; a missing file yields the defaults."""
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        logger.debug('No config file at %s, using defaults', cfg_path)
        return ChronMapConfig()
    with cfg_path.open('r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {cfg_path}: {e}") from e
    if raw is not None and not isinstance(raw, dict):
        raise ConfigurationError(f"{cfg_path} must contain a mapping")
    return parse_config(raw)
