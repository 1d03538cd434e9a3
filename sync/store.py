"""Schnittstelle zum externen Terminspeicher.

Die Engine selbst macht kein I/O. Der Sync-Treiber ruft einen EventStore
auf; InMemoryEventStore dient für Tests und die CLI-Demo.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel

from engine.reorganization import DatabaseUpdate
from models.queued_lesson import PlannedEvent

logger = logging.getLogger(__name__)


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class StoreResult(BaseModel):
    success: bool
    error: Optional[str] = None
    event_id: Optional[str] = None   # nur bei create_event


class BatchResult(BaseModel):
    success: bool
    updated_count: int = 0
    error: Optional[str] = None


class EventUpdate(BaseModel):
    """Teil-Update eines Termins (nur gesetzte Felder werden geändert)."""

    date: Optional[str] = None        # ISO-UTC
    duration: Optional[int] = None
    status: Optional[str] = None

    def fields(self) -> dict:
        return self.model_dump(exclude_none=True)


class StoredEvent(BaseModel):
    id: str
    lesson_id: str
    date: str
    duration: int
    location: str
    status: str = "planned"


# ─── Schnittstelle ────────────────────────────────────────────────────────────

class EventStore(ABC):
    """Abstrakter externer Terminspeicher."""

    @abstractmethod
    def update_event(self, event_id: str, update: EventUpdate) -> StoreResult:
        ...

    @abstractmethod
    def delete_event(self, event_id: str) -> StoreResult:
        ...

    @abstractmethod
    def batch_reorganize_event_times(self, updates: list[DatabaseUpdate]) -> BatchResult:
        ...

    @abstractmethod
    def create_event(self, event: PlannedEvent) -> StoreResult:
        ...


class InMemoryEventStore(EventStore):
    """Dict-basierter Speicher. Updates sind idempotent.

    failing_ids: Termin- bzw. Lesson-IDs, deren Aufrufe fehlschlagen.
    fail_batches: jeder Batch-Aufruf schlägt fehl.
    """

    def __init__(
        self,
        events: Optional[list[StoredEvent]] = None,
        failing_ids: Optional[set[str]] = None,
        fail_batches: bool = False,
    ) -> None:
        self.events: dict[str, StoredEvent] = {e.id: e for e in events or []}
        self.failing_ids: set[str] = set(failing_ids or set())
        self.fail_batches = fail_batches
        self.calls: list[str] = []
        self._counter = 0

    def update_event(self, event_id: str, update: EventUpdate) -> StoreResult:
        self.calls.append(f"update:{event_id}")
        if event_id in self.failing_ids:
            return StoreResult(success=False, error=f"Update von {event_id} fehlgeschlagen")
        event = self.events.get(event_id)
        if event is None:
            return StoreResult(success=False, error=f"Termin {event_id} unbekannt")
        self.events[event_id] = event.model_copy(update=update.fields())
        return StoreResult(success=True, event_id=event_id)

    def delete_event(self, event_id: str) -> StoreResult:
        self.calls.append(f"delete:{event_id}")
        if event_id in self.failing_ids:
            return StoreResult(success=False, error=f"Löschen von {event_id} fehlgeschlagen")
        # Erneutes Löschen ist kein Fehler
        self.events.pop(event_id, None)
        return StoreResult(success=True, event_id=event_id)

    def batch_reorganize_event_times(self, updates: list[DatabaseUpdate]) -> BatchResult:
        self.calls.append(f"batch:{len(updates)}")
        if self.fail_batches:
            return BatchResult(success=False, error="Batch-Update fehlgeschlagen")
        unknown = [u.event_id for u in updates if u.event_id not in self.events]
        if unknown:
            return BatchResult(success=False, error=f"Unbekannte Termine: {', '.join(unknown)}")
        for u in updates:
            self.events[u.event_id] = self.events[u.event_id].model_copy(
                update={"date": u.new_date_time}
            )
        return BatchResult(success=True, updated_count=len(updates))

    def create_event(self, event: PlannedEvent) -> StoreResult:
        self.calls.append(f"create:{event.lesson_id}")
        if event.lesson_id in self.failing_ids:
            return StoreResult(success=False, error=f"Anlegen für {event.lesson_id} fehlgeschlagen")
        self._counter += 1
        event_id = f"created_{self._counter}"
        self.events[event_id] = StoredEvent(id=event_id, **event.model_dump())
        logger.debug(f"Termin {event_id} für {event.lesson_id} angelegt ({event.date})")
        return StoreResult(success=True, event_id=event_id)
