"""Exception types raised by chronmap_lib.

Configuration and extraction errors always reach the immediate caller.
Snapshot errors are contained on the scheduled flush path and propagated
everywhere else (manual snapshot, close, load).
"""


class ChronMapError(Exception):
    """Base class for all chronmap_lib errors."""


class ConfigurationError(ChronMapError, ValueError):
    """A builder, extractor or config file setting is missing or invalid."""


class ExtractionError(ChronMapError, ValueError):
    """A key could not be extracted from the given source."""


class SnapshotIOError(ChronMapError):
    """Reading, clearing, copying or committing the durable store failed."""


class TypeMismatchError(ChronMapError, TypeError):
    """An operation used a key or value of a type the store was not built for."""


class StoreClosedError(ChronMapError):
    """An operation was attempted on a store that has been closed."""
