"""Reorganisation eines Lehrer-Tages: Vorschläge, Anwendung und Update-Sets.

Architektur:
  - get_reorganization_options() berechnet nur Vorschläge, ändert nichts.
  - reorganize_teacher_events() wendet einen Vorschlag an.
  - get_database_updates_*() liefern (externe Termin-ID, neuer Zeitpunkt)
    für den externen Speicher. Die Engine kennt nur Lesson-IDs; die
    Zuordnung Lesson-ID → Termin-ID kommt vom Aufrufer.

Alle öffentlichen Methoden werfen keine Ausnahmen: Ablehnungen und
unerwartete Fehler werden als False bzw. [] zurückgegeben.
"""

import logging
from typing import Literal, Optional

from pydantic import BaseModel

from engine.gaps import find_next_available_slot
from engine.schedule import TeacherSchedule
from models.schedule_node import ScheduleNode
from models.time_of_day import create_utc_datetime, minutes_to_time, to_utc_string

logger = logging.getLogger(__name__)


# ─── Ergebnis-Modelle ─────────────────────────────────────────────────────────

class ReorganizationOption(BaseModel):
    """Vorschlag, wie der Tag nach einer Änderung umgebaut werden kann."""

    type: Literal["shift_next", "compact_schedule"]
    description: str
    # shift_next: der zu verschiebende Termin
    node_id: Optional[str] = None
    # compact_schedule: Termine, die nachrücken (in zeitlicher Reihenfolge)
    nodes_to_move: list[str] = []
    # Frei werdende Zeit (Dauer des entfernten Termins)
    time_saved: int = 0
    removed_node_id: Optional[str] = None


class DatabaseUpdate(BaseModel):
    """Neuer Zeitpunkt für einen externen Termin."""

    event_id: str
    new_date_time: str   # ISO-UTC


# ─── Reorganisation ──────────────────────────────────────────────────────────

class ScheduleReorganizer:
    """Berechnet und wendet Umbauten eines TeacherSchedule an.

    Verwendung:
        reorganizer = ScheduleReorganizer(schedule)
        options = reorganizer.get_reorganization_options(node_id)
        schedule.remove_node(node_id)
        reorganizer.reorganize_teacher_events(options[0])
    """

    def __init__(self, schedule: TeacherSchedule) -> None:
        self.schedule = schedule

    # ── Vorschläge ────────────────────────────────────────────────────────────

    def get_reorganization_options(self, node_id_to_remove: str) -> list[ReorganizationOption]:
        """Vorschläge für das Entfernen eines Termins.

        Liegen nach dem Termin weitere Termine, wird ein compact_schedule-
        Vorschlag erzeugt: diese Termine rücken lückenlos nach, ab dem Ende
        des Vorgängers bzw. ohne Vorgänger ab der um die Dauer des entfernten
        Termins vorgezogenen Startzeit. Ohne Nachfolger gibt es nichts umzubauen.
        """
        nodes = self.schedule.get_stored_nodes()
        index = next((i for i, n in enumerate(nodes) if n.id == node_id_to_remove), None)
        if index is None:
            return []

        target = nodes[index]
        following = nodes[index + 1:]
        if not following:
            return []

        # Gleiche Startregel wie _apply_compact
        if index > 0:
            anchor = nodes[index - 1].end_minutes
        else:
            anchor = following[0].start_minutes - target.duration

        return [ReorganizationOption(
            type="compact_schedule",
            description=(
                f"{len(following)} Termin(e) nach {target.start_time} "
                f"rücken lückenlos nach, ab {minutes_to_time(max(0, anchor))}"
            ),
            nodes_to_move=[n.id for n in following],
            time_saved=target.duration,
            removed_node_id=target.id,
        )]

    # ── Anwenden ─────────────────────────────────────────────────────────────

    def reorganize_teacher_events(self, option: ReorganizationOption) -> bool:
        """Wendet einen Vorschlag auf den Tagesplan an."""
        try:
            if option.type == "shift_next":
                return self._apply_shift_next(option)
            return self._apply_compact(option)
        except ValueError as e:
            logger.warning(f"Reorganisation '{option.type}' abgelehnt: {e}")
            return False

    def _apply_shift_next(self, option: ReorganizationOption) -> bool:
        node = self.schedule._live_node(option.node_id) if option.node_id else None
        if node is None:
            return False
        others = [n for n in self.schedule._stored_nodes() if n.id != node.id]
        slot = find_next_available_slot(
            others, node.duration, self.schedule.config.default_slot_start
        )
        node.start_time = slot.start_time
        self.schedule.resort()
        return True

    def _apply_compact(self, option: ReorganizationOption) -> bool:
        nodes = self.schedule._stored_nodes()
        to_move = set(option.nodes_to_move)
        moving = [n for n in nodes if n.id in to_move]
        if not moving:
            return False

        first = moving[0]
        excluded = to_move | {option.removed_node_id}
        predecessor = self._predecessor_of(nodes, first, excluded)
        if predecessor is not None:
            current = predecessor.end_minutes
        else:
            current = first.start_minutes - option.time_saved
        if current < 0:
            return False

        for node in moving:
            node.start_time = minutes_to_time(current)
            current += node.duration
        self.schedule.resort()
        return True

    @staticmethod
    def _predecessor_of(
        nodes: list[ScheduleNode], node: ScheduleNode, excluded: set
    ) -> Optional[ScheduleNode]:
        before = [n for n in nodes if n.id not in excluded and n.start_minutes < node.start_minutes]
        return before[-1] if before else None

    def shift_first_event_and_reorganize(self, offset_minutes: int) -> bool:
        """Verschiebt den ersten Termin um offset_minutes, alle weiteren
        folgen lückenlos.

        Lücken zwischen den Terminen bleiben dabei nicht erhalten. Würde der
        erste Termin vor 00:00 rutschen, wird nichts verändert.
        """
        nodes = self.schedule._stored_nodes()
        if not nodes:
            return False
        new_start = nodes[0].start_minutes + offset_minutes
        if new_start < 0:
            logger.warning(
                f"Verschiebung um {offset_minutes} min abgelehnt: "
                f"erster Termin läge vor 00:00"
            )
            return False

        current = new_start
        for node in nodes:
            node.start_time = minutes_to_time(current)
            current += node.duration
        return True

    def perform_compact_reorganization(self) -> bool:
        """Verdichtet den ganzen Tag ab dem ersten Termin.

        False bei weniger als zwei Terminen (nichts zu verdichten).
        """
        nodes = self.schedule._stored_nodes()
        if len(nodes) < 2:
            return False
        current = nodes[0].end_minutes
        for node in nodes[1:]:
            node.start_time = minutes_to_time(current)
            current += node.duration
        return True

    # ── Update-Sets für den externen Speicher ────────────────────────────────

    def get_database_updates_after_node_removal(
        self, node_id: str, date: str, event_id_map: dict[str, str]
    ) -> list[DatabaseUpdate]:
        """Updates, die Entfernen + Nachrücken auslösen würden (ohne Änderung).

        Der entfernte Termin selbst ist nicht enthalten; sein Löschen ist
        Sache des Aufrufers.
        """
        options = self.get_reorganization_options(node_id)
        if not options:
            return []
        working = self.schedule.copy()
        working.remove_node(node_id)
        return self._diff_after(working, options[0], date, event_id_map)

    def get_database_updates_for_reorganization(
        self, option: ReorganizationOption, date: str, event_id_map: dict[str, str]
    ) -> list[DatabaseUpdate]:
        """Updates, die ein Vorschlag auslösen würde (ohne Änderung)."""
        working = self.schedule.copy()
        if option.removed_node_id:
            working.remove_node(option.removed_node_id)
        return self._diff_after(working, option, date, event_id_map)

    def _diff_after(
        self,
        working: TeacherSchedule,
        option: ReorganizationOption,
        date: str,
        event_id_map: dict[str, str],
    ) -> list[DatabaseUpdate]:
        before = {n.id: n.start_time for n in self.schedule.get_stored_nodes()}
        if not ScheduleReorganizer(working).reorganize_teacher_events(option):
            return []
        changed = [
            n for n in working.get_stored_nodes()
            if n.id in before and before[n.id] != n.start_time
        ]
        return self._build_updates(changed, date, event_id_map)

    def get_database_updates_for_compact_reorganization(
        self, date: str, event_id_map: dict[str, str]
    ) -> list[DatabaseUpdate]:
        """Updates für alle Termine nach perform_compact_reorganization().

        Liest den aktuellen (bereits verdichteten) Stand.
        """
        return self._build_updates(self.schedule.get_stored_nodes(), date, event_id_map)

    def get_database_updates_for_shifted_schedule(
        self, date: str, event_id_map: dict[str, str]
    ) -> list[DatabaseUpdate]:
        """Updates für alle Termine nach shift_first_event_and_reorganize().

        Liest den aktuellen (bereits verschobenen) Stand.
        """
        return self._build_updates(self.schedule.get_stored_nodes(), date, event_id_map)

    @staticmethod
    def _build_updates(
        nodes: list[ScheduleNode], date: str, event_id_map: dict[str, str]
    ) -> list[DatabaseUpdate]:
        updates: list[DatabaseUpdate] = []
        for node in nodes:
            event_id = event_id_map.get(node.lesson_id or "")
            if not event_id:
                continue
            try:
                when = to_utc_string(create_utc_datetime(date, node.start_time))
            except ValueError as e:
                logger.warning(f"Kein Update für {node.id}: {e}")
                continue
            updates.append(DatabaseUpdate(event_id=event_id, new_date_time=when))
        return updates
