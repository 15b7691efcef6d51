"""File-backed durable store.

One snapshot file holds any number of named maps. The whole file is
loaded on open, changes are staged in memory and `commit` rewrites the
file atomically by writing a temporary file, fsyncing it and renaming it
over the previous one. A crash before the rename leaves the last
committed snapshot untouched.

Keys and values are encoded with the configured serializers; the file
container itself is a pickled dict::

    {"version": 1, "maps": {<map_name>: {<key bytes>: <value bytes>}}}

The file is owned by a single store. Two stores sharing a file (even with
different map names) overwrite each other's commits.
"""
from __future__ import annotations
import logging
import os
import pickle
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterator, Tuple

from .base import DurableStore
from .serializer import Serializer

logger = logging.getLogger(__name__)

FILE_VERSION = 1
DEFAULT_MAP_NAME = "chronmap"


class FileDurableStore(DurableStore):
    def __init__(
        self,
        path: str | Path,
        map_name: str,
        key_serializer: Serializer,
        value_serializer: Serializer,
    ) -> None:
        self.path = Path(path)
        self.map_name = map_name
        self.key_serializer = key_serializer
        self.value_serializer = value_serializer
        self._lock = RLock()
        self._closed = False
        self._maps: Dict[str, Dict[bytes, bytes]] = {}
        self._pending: Dict[bytes, bytes] = {}

    @classmethod
    def open_or_create(
        cls,
        path: str | Path,
        map_name: str = DEFAULT_MAP_NAME,
        key_serializer: Serializer | None = None,
        value_serializer: Serializer | None = None,
    ) -> "FileDurableStore":
        """Open the snapshot file at `path`, creating it when missing."""
        if key_serializer is None or value_serializer is None:
            raise ValueError("FileDurableStore requires a key and a value serializer")
        store = cls(path, map_name, key_serializer, value_serializer)
        store._open()
        return store

    def _open(self) -> None:
        if not self.path.parent.exists():
            os.makedirs(self.path.parent, exist_ok=True)
        if self.path.exists():
            with open(self.path, "rb") as f:
                data = pickle.load(f)
            if not isinstance(data, dict) or data.get("version") != FILE_VERSION:
                raise ValueError(f"{self.path} is not a snapshot file")
            self._maps = data.get("maps", {})
            logger.debug("Opened snapshot file %s (%d maps)", self.path, len(self._maps))
        else:
            self._maps = {}
        self._pending = dict(self._maps.get(self.map_name, {}))
        if not self.path.exists():
            self.commit()
            logger.info("Created snapshot file %s", self.path)

    def _write(self) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "wb") as f:
            pickle.dump({"version": FILE_VERSION, "maps": self._maps}, f, protocol=pickle.HIGHEST_PROTOCOL)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(self.path)

    def put(self, key: Any, value: Any) -> None:
        kb = self.key_serializer.dump(key)
        vb = self.value_serializer.dump(value)
        with self._lock:
            self._pending[kb] = vb

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()

    def items(self) -> Iterator[Tuple[Any, Any]]:
        with self._lock:
            raw = list(self._pending.items())
        for kb, vb in raw:
            yield self.key_serializer.load(kb), self.value_serializer.load(vb)

    def size(self) -> int:
        with self._lock:
            return len(self._pending)

    def commit(self) -> None:
        with self._lock:
            self._maps[self.map_name] = dict(self._pending)
            self._write()

    def close(self) -> None:
        with self._lock:
            self._pending = dict(self._maps.get(self.map_name, {}))
            self._closed = True
        logger.debug("Closed snapshot file %s", self.path)

    @property
    def closed(self) -> bool:
        return self._closed
