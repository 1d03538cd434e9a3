"""Persistenz: EventStore-Schnittstelle und Sync-Treiber."""

from sync.store import (
    BatchResult,
    EventStore,
    EventUpdate,
    InMemoryEventStore,
    StoredEvent,
    StoreResult,
)
from sync.driver import ScheduleSyncDriver, SyncReport

__all__ = [
    "BatchResult",
    "EventStore",
    "EventUpdate",
    "InMemoryEventStore",
    "StoredEvent",
    "StoreResult",
    "ScheduleSyncDriver",
    "SyncReport",
]
