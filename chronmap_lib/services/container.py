from typing import Any, Callable, Dict

from chronmap_lib.registry.registry import InstanceRegistry

REGISTRY_KEY = "store_registry"


class ServiceContainer:
    """Composition root for the application's long-lived services.

    Services are registered by key, either as ready instances or as
    factories evaluated once on first `get`. The store registry lives here
    under `REGISTRY_KEY` so request handlers and shutdown hooks reach the
    same instance without a module-level global.
    """

    def __init__(self) -> None:
        self._singletons: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}

    def register_singleton(self, key: str, instance: Any) -> None:
        self._singletons[key] = instance

    def register_factory(self, key: str, factory: Callable[[], Any]) -> None:
        self._factories[key] = factory

    def has(self, key: str) -> bool:
        return key in self._singletons or key in self._factories

    def get(self, key: str) -> Any:
        if key in self._singletons:
            return self._singletons[key]
        if key in self._factories:
            inst = self._factories.pop(key)()
            self._singletons[key] = inst
            return inst
        raise KeyError(f"No service registered for key '{key}'")

    def registry(self) -> InstanceRegistry:
        """Return the store registry, creating an empty one on first use."""
        if not self.has(REGISTRY_KEY):
            self.register_singleton(REGISTRY_KEY, InstanceRegistry())
        return self.get(REGISTRY_KEY)
