"""Index synchronization — ordered, retried mirroring of record mutations."""

from indexsync.sync.dispatcher import DispatcherStats, KeyedDispatcher

__all__ = ["DispatcherStats", "KeyedDispatcher"]
