"""Storage capabilities used by chronmap_lib stores."""

from .base import VolatileStore, DurableStore
from .memory_backend import MemoryVolatileStore, MemoryDurableStore
from .file_backend import FileDurableStore
from .serializer import create_serializer

__all__ = [
    "VolatileStore",
    "DurableStore",
    "MemoryVolatileStore",
    "MemoryDurableStore",
    "FileDurableStore",
    "create_serializer",
]
