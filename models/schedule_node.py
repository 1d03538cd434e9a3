"""Datenmodell für Zeitblöcke eines Lehrer-Tages (Pydantic v2)."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator

from models.time_of_day import minutes_to_time, time_to_minutes


class NodeKind(str, Enum):
    EVENT = "event"
    GAP = "gap"    # wird nie gespeichert, nur für Anzeigen erzeugt


class EventData(BaseModel):
    """Fachliche Daten eines Termins."""

    lesson_id: str
    location: str
    student_count: int = 1
    student_names: list[str] = []


class ScheduleNode(BaseModel):
    """Ein Zeitblock: gespeicherter Termin oder synthetische Lücke."""

    id: str
    kind: NodeKind = NodeKind.EVENT
    start_time: str          # "HH:MM"
    duration: int            # Minuten
    event_data: Optional[EventData] = None

    @field_validator("start_time")
    @classmethod
    def _check_start_time(cls, v: str) -> str:
        return minutes_to_time(time_to_minutes(v))

    @property
    def is_gap(self) -> bool:
        return self.kind == NodeKind.GAP

    @property
    def lesson_id(self) -> Optional[str]:
        return self.event_data.lesson_id if self.event_data else None

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minutes)

    def overlaps(self, start_minutes: int, duration: int) -> bool:
        """True wenn sich [start, start+duration) mit diesem Block überschneidet."""
        return start_minutes < self.end_minutes and start_minutes + duration > self.start_minutes

    def __str__(self) -> str:
        label = self.lesson_id or self.kind.value
        return f"{self.start_time}–{self.end_time} {label}"


class AvailableSlot(BaseModel):
    """Ein freies Zeitfenster."""

    start_time: str
    end_time: str
    duration: int


class ConflictInfo(BaseModel):
    """Ergebnis einer Konfliktprüfung."""

    has_conflict: bool
    conflicting_nodes: list[ScheduleNode]
    # Nächster freier Slot nach dem letzten Termin (nur bei Konflikt)
    suggested_slot: Optional[AvailableSlot] = None


class DaySchedule(BaseModel):
    """Momentaufnahme eines Lehrer-Tages (wird nicht persistiert)."""

    teacher_id: str
    teacher_name: str
    date: str                     # "YYYY-MM-DD"
    nodes: list[ScheduleNode] = []

    @property
    def head(self) -> Optional[ScheduleNode]:
        return self.nodes[0] if self.nodes else None
