"""Adapter-specific exceptions.

Adapters wrap engine client errors in these types with ``raise ... from``, so
the original engine exception stays reachable through ``__cause__``.
"""


class AdapterError(Exception):
    """Base exception for adapter errors."""


class ConnectionError(AdapterError):
    """Raised when the adapter cannot connect to the search backend."""


class QueryError(AdapterError):
    """Raised when a search query fails."""


class IndexWriteError(AdapterError):
    """Raised when a document cannot be stored in or removed from the index."""
