"""Named store registry and convenience factories.

`chronmap_lib.registry.helpers` holds the factory functions; import it
directly (it depends on the store builder).
"""
from .registry import InstanceRegistry

__all__ = ["InstanceRegistry"]
