from typing import Protocol, Any, Iterable, Optional, Tuple, runtime_checkable


@runtime_checkable
class VolatileStoreProtocol(Protocol):
    """Volatile capability protocol mirroring `chronmap_lib.storage.base.VolatileStore`.

    Lets callers hand in duck-typed stores that do not subclass the
    abstract base. Semantics follow the docstrings on the base class.
    """

    def get(self, key: Any) -> Optional[Any]: ...

    def put(self, key: Any, value: Any) -> Optional[Any]: ...

    def remove(self, key: Any) -> Optional[Any]: ...

    def contains(self, key: Any) -> bool: ...

    def clear(self) -> None: ...

    def size(self) -> int: ...

    def items(self) -> Iterable[Tuple[Any, Any]]: ...

    def close(self) -> None: ...


@runtime_checkable
class DurableStoreProtocol(Protocol):
    """Durable capability protocol mirroring `chronmap_lib.storage.base.DurableStore`."""

    def put(self, key: Any, value: Any) -> None: ...

    def clear(self) -> None: ...

    def items(self) -> Iterable[Tuple[Any, Any]]: ...

    def size(self) -> int: ...

    def commit(self) -> None: ...

    def close(self) -> None: ...
