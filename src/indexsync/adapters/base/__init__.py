"""Base adapter interface — Abstract classes for search index connectors."""

from indexsync.adapters.base.adapter import AdapterHealth, IndexAdapter, RawResults
from indexsync.adapters.base.conversions import DocumentConverter
from indexsync.adapters.base.registry import AdapterRegistry

__all__ = ["AdapterHealth", "AdapterRegistry", "DocumentConverter", "IndexAdapter", "RawResults"]
