"""Event Store backends."""

from ghostwatch.store.memory import MemoryEventStore
from ghostwatch.store.protocol import DEFAULT_VIEW_LIMIT, EventStore, LatestView, PersistenceError
from ghostwatch.store.sqlite import SqliteEventStore

__all__ = [
    "DEFAULT_VIEW_LIMIT",
    "EventStore",
    "LatestView",
    "MemoryEventStore",
    "PersistenceError",
    "SqliteEventStore",
]
