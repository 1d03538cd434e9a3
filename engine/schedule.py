"""Chronologische Terminliste eines Lehrers für einen Tag.

Die Termine liegen in einer nach Startzeit sortierten Liste, die nur diese
Klasse verändert. Lücken werden nie gespeichert, sondern bei get_nodes()
zwischen benachbarten Terminen erzeugt.
"""

import bisect
import logging
import uuid
from typing import Optional

from config.schema import EngineConfig
from config.defaults import default_engine_config
from engine.gaps import detect_schedule_gaps, find_next_available_slot
from models.schedule_node import (
    AvailableSlot,
    ConflictInfo,
    DaySchedule,
    EventData,
    NodeKind,
    ScheduleNode,
)
from models.time_of_day import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


def _new_event_id() -> str:
    return f"event_{uuid.uuid4().hex[:12]}"


class TeacherSchedule:
    """Sortierte Termine eines Lehrers an einem Tag.

    Verwendung:
        schedule = TeacherSchedule("t1", "Ana", "2024-06-01")
        schedule.add_event("10:00", 120, "L1", "Los Lances", 2)
        schedule.get_nodes()   # Termine + Lücken
    """

    def __init__(
        self,
        teacher_id: str,
        teacher_name: str,
        date: str,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.teacher_id = teacher_id
        self.teacher_name = teacher_name
        self.date = date
        self.config = config or default_engine_config()
        self._nodes: list[ScheduleNode] = []

        from engine.queue import LessonQueue
        self.queue = LessonQueue(self)

    # ─── Einfügen / Entfernen ───

    def add_event(
        self,
        start_time: str,
        duration: int,
        lesson_id: str,
        location: str,
        student_count: int,
        student_names: Optional[list[str]] = None,
    ) -> ScheduleNode:
        """Legt einen Termin an und fügt ihn sortiert ein.

        Bei gleicher Startzeit landet der neue Termin hinter den vorhandenen.
        """
        node = ScheduleNode(
            id=_new_event_id(),
            kind=NodeKind.EVENT,
            start_time=start_time,
            duration=duration,
            event_data=EventData(
                lesson_id=lesson_id,
                location=location,
                student_count=student_count,
                student_names=list(student_names or []),
            ),
        )
        self._insert(node)
        return node.model_copy(deep=True)

    def _insert(self, node: ScheduleNode) -> None:
        bisect.insort_right(self._nodes, node, key=lambda n: n.start_minutes)

    def remove_node(self, node_id: str) -> bool:
        """Entfernt einen Termin. False wenn die ID unbekannt ist."""
        index = self._index_of(node_id)
        if index is None:
            return False
        del self._nodes[index]
        return True

    def _index_of(self, node_id: str) -> Optional[int]:
        for i, node in enumerate(self._nodes):
            if node.id == node_id:
                return i
        return None

    def move_node(self, node_id: str, start_minutes: int, resort: bool = True) -> bool:
        """Setzt die Startzeit eines Termins. False bei unbekannter ID
        oder negativer Zeit."""
        node = self._live_node(node_id)
        if node is None or start_minutes < 0:
            return False
        node.start_time = minutes_to_time(start_minutes)
        if resort:
            self.resort()
        return True

    def resort(self) -> None:
        """Stellt die zeitliche Sortierung nach Verschiebungen wieder her."""
        self._nodes.sort(key=lambda n: n.start_minutes)

    # ─── Lesen ───
    # Alle öffentlichen Leser liefern Kopien; Änderungen laufen über
    # move_node/resort bzw. ScheduleReorganizer.

    def get_stored_nodes(self) -> list[ScheduleNode]:
        """Nur echte Termine, aufsteigend nach Startzeit."""
        return [n.model_copy(deep=True) for n in self._nodes]

    def get_nodes(self) -> list[ScheduleNode]:
        """Termine mit dazwischen erzeugten Lücken."""
        return detect_schedule_gaps(self.get_stored_nodes())

    def get_node(self, node_id: str) -> Optional[ScheduleNode]:
        node = self._live_node(node_id)
        return None if node is None else node.model_copy(deep=True)

    def find_node_by_lesson(self, lesson_id: str) -> Optional[ScheduleNode]:
        node = next((n for n in self._nodes if n.lesson_id == lesson_id), None)
        return None if node is None else node.model_copy(deep=True)

    def first_event(self) -> Optional[ScheduleNode]:
        return self._nodes[0].model_copy(deep=True) if self._nodes else None

    def _stored_nodes(self) -> list[ScheduleNode]:
        """Die eigenen Knoten ohne Kopie (nur für ScheduleReorganizer)."""
        return list(self._nodes)

    def _live_node(self, node_id: str) -> Optional[ScheduleNode]:
        index = self._index_of(node_id)
        return None if index is None else self._nodes[index]

    def latest_end_minutes(self) -> Optional[int]:
        """Spätestes Ende aller Termine oder None bei leerem Tag."""
        if not self._nodes:
            return None
        return max(n.end_minutes for n in self._nodes)

    def get_schedule(self) -> DaySchedule:
        """Momentaufnahme des Tages."""
        return DaySchedule(
            teacher_id=self.teacher_id,
            teacher_name=self.teacher_name,
            date=self.date,
            nodes=[n.model_copy() for n in self._nodes],
        )

    @property
    def total_minutes(self) -> int:
        return sum(n.duration for n in self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"TeacherSchedule({self.teacher_id}, {self.date}, {len(self._nodes)} events)"

    # ─── Konflikte & Slots ───

    def check_conflict(self, start_time: str, duration: int) -> ConflictInfo:
        """Prüft, ob [start, start+duration) einen Termin überlappt.

        Bei Konflikt wird der nächste freie Slot nach dem letzten Termin
        vorgeschlagen, nie eine Lücke dazwischen.
        """
        start = time_to_minutes(start_time)
        conflicting = [
            n.model_copy(deep=True) for n in self._nodes if n.overlaps(start, duration)
        ]
        if not conflicting:
            return ConflictInfo(has_conflict=False, conflicting_nodes=[])
        return ConflictInfo(
            has_conflict=True,
            conflicting_nodes=conflicting,
            suggested_slot=find_next_available_slot(
                self._nodes, duration, self.config.default_slot_start
            ),
        )

    def calculate_possible_slot(
        self, duration: int, default_start: Optional[str] = None
    ) -> str:
        """Startzeit für einen neuen Termin: hinter dem letzten Termin.

        Ohne Termine wird default_start (bzw. der konfigurierte Default) genutzt.
        """
        default = default_start or self.config.default_slot_start
        return find_next_available_slot(self._nodes, duration, default).start_time

    def get_available_slots(self, minimum_duration: int = 60) -> list[AvailableSlot]:
        """Freie Zeitfenster innerhalb des Arbeitstages (≥ minimum_duration).

        Berücksichtigt den Bereich vor dem ersten Termin, Lücken zwischen
        Terminen und den Bereich nach dem letzten Termin.
        """
        day_start = time_to_minutes(self.config.working_day_start)
        day_end = time_to_minutes(self.config.working_day_end)

        windows: list[tuple[int, int]] = []
        cursor = day_start
        for node in self._nodes:
            if node.start_minutes > cursor:
                windows.append((cursor, min(node.start_minutes, day_end)))
            cursor = max(cursor, node.end_minutes)
        windows.append((cursor, day_end))

        return [
            AvailableSlot(
                start_time=minutes_to_time(start),
                end_time=minutes_to_time(end),
                duration=end - start,
            )
            for start, end in windows
            if end - start >= minimum_duration
        ]

    # ─── Kopien (für Diff-vor-Persistenz) ───

    def copy(self) -> "TeacherSchedule":
        """Tiefe Kopie der Termine (ohne Warteschlange)."""
        clone = TeacherSchedule(self.teacher_id, self.teacher_name, self.date, self.config)
        clone._nodes = [n.model_copy(deep=True) for n in self._nodes]
        return clone

    def adopt(self, other: "TeacherSchedule") -> None:
        """Übernimmt die Termine einer Arbeitskopie."""
        self._nodes = [n.model_copy(deep=True) for n in other._nodes]
        self.resort()
        logger.info(
            f"Tagesplan {self.teacher_id}/{self.date}: {len(self._nodes)} Termine übernommen"
        )
