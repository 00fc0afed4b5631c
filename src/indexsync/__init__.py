"""indexsync — Product records mirrored into a full-text search index."""

__version__ = "0.1.0"
