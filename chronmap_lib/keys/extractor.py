"""Key extraction from structured sources.

A `KeyExtractor` turns a source object into a store key. The array and row
variants build composite keys by joining the stringified components with a
NUL character. A single component yields the bare string, so a
one-element composite key is the same key as the plain string.

Extractors run once per ingested record, so the one-component case takes
a fast path and nothing is allocated beyond the joined string.
"""
from __future__ import annotations
from collections.abc import Mapping
from typing import Any, Callable, Sequence

from chronmap_lib.errors import ConfigurationError, ExtractionError

SEPARATOR = "\0"


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _join(getter: Callable[[Any], Any], selectors: Sequence[Any]) -> str:
    if len(selectors) == 1:
        return _text(getter(selectors[0]))
    return SEPARATOR.join([_text(getter(s)) for s in selectors])


class KeyExtractor:
    """Callable wrapper around an extraction function.

    Use the factory methods rather than the constructor.
    """

    __slots__ = ("_fn", "description")

    def __init__(self, fn: Callable[[Any], Any], description: str = "custom") -> None:
        self._fn = fn
        self.description = description

    def extract_key(self, source: Any) -> Any:
        return self._fn(source)

    __call__ = extract_key

    def __repr__(self) -> str:
        return f"KeyExtractor({self.description})"

    @staticmethod
    def identity() -> "KeyExtractor":
        """Return the source unchanged (str, datetime, UUID, ... keys)."""
        return KeyExtractor(lambda source: source, "identity")

    @staticmethod
    def from_array() -> "KeyExtractor":
        """NUL-join the elements of a non-empty list or tuple."""

        def extract(source: Any) -> str:
            if source is None:
                raise ExtractionError("Key source cannot be None")
            if not isinstance(source, (list, tuple)):
                raise ExtractionError(f"Expected list or tuple but got {type(source).__name__}")
            if not source:
                raise ExtractionError("Key array cannot be empty")
            if len(source) == 1:
                return _text(source[0])
            return SEPARATOR.join([_text(v) for v in source])

        return KeyExtractor(extract, "array")

    @staticmethod
    def from_row_by_index(*positions: int) -> "KeyExtractor":
        """Read 1-based column positions from a positional row.

        Accepts tuples, lists and `sqlite3.Row` objects, i.e. what DB-API
        cursors return.
        """
        if not positions:
            raise ConfigurationError("At least one column position must be provided")
        for pos in positions:
            if isinstance(pos, bool) or not isinstance(pos, int) or pos < 1:
                raise ConfigurationError(f"Column positions must be integers >= 1, got {pos!r}")
        indices = tuple(p - 1 for p in positions)

        def extract(source: Any) -> str:
            if source is None or isinstance(source, (str, bytes, Mapping)) or not hasattr(source, "__getitem__"):
                raise ExtractionError(f"Expected a positional row but got {type(source).__name__}")
            try:
                return _join(source.__getitem__, indices)
            except Exception as e:
                raise ExtractionError(f"Failed to extract key from row: {e}") from e

        return KeyExtractor(extract, f"row positions {list(positions)}")

    @staticmethod
    def from_row_by_name(*names: str) -> "KeyExtractor":
        """Read named columns from a mapping-like row (dict, `sqlite3.Row`, ...)."""
        if not names:
            raise ConfigurationError("At least one column name must be provided")
        for name in names:
            if name is None or not isinstance(name, str) or not name.strip():
                raise ConfigurationError("Column names cannot be None or blank")

        def extract(source: Any) -> str:
            if not (isinstance(source, Mapping) or hasattr(source, "keys")) or not hasattr(source, "__getitem__"):
                raise ExtractionError(f"Expected a named row but got {type(source).__name__}")
            try:
                return _join(source.__getitem__, names)
            except Exception as e:
                raise ExtractionError(f"Failed to extract key from row: {e}") from e

        return KeyExtractor(extract, f"row names {list(names)}")
