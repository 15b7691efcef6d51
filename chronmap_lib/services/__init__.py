"""Services package: DI container and request-time resolution."""
from .container import ServiceContainer, REGISTRY_KEY

__all__ = ["ServiceContainer", "REGISTRY_KEY"]
