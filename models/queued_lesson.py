"""Datenmodell für vorgemerkte (noch nicht gespeicherte) Unterrichtsstunden."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from models.time_of_day import time_to_minutes


class AdjustmentKind(str, Enum):
    MANUAL = "manual"                      # vom Nutzer (+/- Schritt)
    AUTO_GAP_CLOSURE = "auto_gap_closure"  # automatisch beim Schließen einer Lücke


# Reihenfolge, in der Anpassungen beim Neuberechnen angewendet werden
ADJUSTMENT_ORDER: tuple[AdjustmentKind, ...] = (
    AdjustmentKind.MANUAL,
    AdjustmentKind.AUTO_GAP_CLOSURE,
)


class TimeAdjustment(BaseModel):
    """Eine Zeitverschiebung in Minuten, getaggt nach Herkunft."""

    kind: AdjustmentKind
    minutes: int


class QueuedLesson(BaseModel):
    """Ein Eintrag der Warteschlange eines Lehrers.

    Die Startzeit wird nie direkt gesetzt, sondern von LessonQueue aus
    (Startzeit, Terminen, Reihenfolge, Anpassungen) berechnet.
    """

    lesson_id: str
    duration: int                 # Minuten
    students: list[str] = []
    remaining_minutes: int        # Obergrenze für duration
    scheduled_start_time: Optional[str] = None
    adjustments: dict[AdjustmentKind, int] = {}
    has_gap: bool = False         # abgeleitet, nur Anzeige

    @property
    def time_adjustment(self) -> int:
        """Summe der manuellen Verschiebungen."""
        return self.adjustments.get(AdjustmentKind.MANUAL, 0)

    @property
    def gap_closure_adjustment(self) -> int:
        """Automatische Verschiebung durch Lückenschluss."""
        return self.adjustments.get(AdjustmentKind.AUTO_GAP_CLOSURE, 0)

    def ordered_adjustments(self) -> list[TimeAdjustment]:
        """Alle Anpassungen in fester Anwendungsreihenfolge."""
        return [
            TimeAdjustment(kind=kind, minutes=self.adjustments.get(kind, 0))
            for kind in ADJUSTMENT_ORDER
        ]

    @property
    def total_adjustment(self) -> int:
        return sum(a.minutes for a in self.ordered_adjustments())

    def adjust(self, kind: AdjustmentKind, minutes: int) -> None:
        """Addiert minutes zur Anpassung der angegebenen Art."""
        self.adjustments[kind] = self.adjustments.get(kind, 0) + minutes

    def set_adjustment(self, kind: AdjustmentKind, minutes: int) -> None:
        self.adjustments[kind] = minutes

    def reset_adjustments(self) -> None:
        self.adjustments = {}

    @property
    def student_count(self) -> int:
        return len(self.students)

    @property
    def start_minutes(self) -> Optional[int]:
        if self.scheduled_start_time is None:
            return None
        return time_to_minutes(self.scheduled_start_time)

    @property
    def end_minutes(self) -> Optional[int]:
        start = self.start_minutes
        return None if start is None else start + self.duration


class QueueRemoval(BaseModel):
    """Ergebnis von LessonQueue.remove_lesson_from_queue."""

    lesson_id: str
    was_first: bool
    # Verschiebung des neuen ersten Eintrags gegenüber dem entfernten (Minuten)
    global_offset: int = 0


class PlannedEvent(BaseModel):
    """Ein aus der Warteschlange erzeugter, anzulegender Termin."""

    lesson_id: str
    date: str           # ISO-UTC
    duration: int
    location: str
    status: str = "planned"
