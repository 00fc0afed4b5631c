"""Record store — the authoritative source of truth for products."""

from indexsync.store.base import RecordStore
from indexsync.store.memory import InMemoryRecordStore

__all__ = ["InMemoryRecordStore", "RecordStore"]
