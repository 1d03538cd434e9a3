"""LessonQueue – vorgemerkte Stunden eines Lehrers vor dem Speichern.

Die Warteschlange ist unabhängig von den gespeicherten Terminen, weicht
ihnen aber aus. Startzeiten werden nie direkt gesetzt: Jede Änderung
passt Reihenfolge, Dauer oder Anpassungen an und ruft danach
recalculate_queue_times() auf. Gleiche Eingaben ergeben immer dieselben
Startzeiten.

Neuberechnung:
  1. Start = max(Flaggen-Zeit, Ende des letzten Termins); ohne Termine die
     Flaggen-Zeit, sonst der konfigurierte Default (09:00).
  2. Je Eintrag: Anpassungen addieren (manuell, dann Lückenschluss); nie
     vor das Ende des Vorgängers. Überlappt der Slot einen Termin, springt
     der Eintrag hinter den letzten Termin. Danach Start stempeln und um
     die Dauer weiterrücken.
  3. has_gap je Eintrag aus Start vs. Ende des Vorgängers (nur Anzeige).
"""

import logging
from typing import TYPE_CHECKING, Optional

from engine.gaps import compact_schedule_preserving_order, find_next_available_slot
from models.queued_lesson import AdjustmentKind, PlannedEvent, QueuedLesson, QueueRemoval
from models.schedule_node import EventData, ScheduleNode
from models.time_of_day import (
    create_utc_datetime,
    minutes_to_time,
    time_to_minutes,
    to_utc_string,
)

if TYPE_CHECKING:
    from engine.schedule import TeacherSchedule

logger = logging.getLogger(__name__)


class LessonQueue:
    """Geordnete Liste vorgemerkter Stunden für einen TeacherSchedule."""

    def __init__(self, schedule: "TeacherSchedule") -> None:
        self.schedule = schedule
        self.config = schedule.config
        self.queue_start_time: Optional[str] = None
        self._entries: list[QueuedLesson] = []

    # ─── Lesen ───

    def get_lesson_queue(self) -> list[QueuedLesson]:
        """Kopien aller Einträge in Warteschlangen-Reihenfolge."""
        return [e.model_copy(deep=True) for e in self._entries]

    def get_entry(self, lesson_id: str) -> Optional[QueuedLesson]:
        index = self._index_of(lesson_id)
        return None if index is None else self._entries[index].model_copy(deep=True)

    def _index_of(self, lesson_id: str) -> Optional[int]:
        for i, entry in enumerate(self._entries):
            if entry.lesson_id == lesson_id:
                return i
        return None

    def queue_flag_time(self) -> Optional[str]:
        """Startzeit des ersten Eintrags oder None bei leerer Warteschlange."""
        return self._entries[0].scheduled_start_time if self._entries else None

    def default_duration_for(self, student_count: int) -> int:
        return self.config.duration_caps.for_student_count(student_count)

    def as_nodes(self) -> list[ScheduleNode]:
        """Einträge als ScheduleNode-Platzhalter (für Verdichtungen)."""
        self.recalculate_queue_times()
        return [
            ScheduleNode(
                id=f"queue_{e.lesson_id}",
                start_time=e.scheduled_start_time,
                duration=e.duration,
                event_data=EventData(
                    lesson_id=e.lesson_id,
                    location=self.config.default_location,
                    student_count=len(e.students),
                    student_names=list(e.students),
                ),
            )
            for e in self._entries
        ]

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"LessonQueue({self.schedule.teacher_id}, {len(self._entries)} lessons)"

    # ─── Neuberechnung ───

    def _base_start_minutes(self) -> int:
        latest = self.schedule.latest_end_minutes()
        preferred = (
            time_to_minutes(self.queue_start_time) if self.queue_start_time else None
        )
        if latest is not None:
            return latest if preferred is None else max(preferred, latest)
        if preferred is not None:
            return preferred
        return time_to_minutes(self.config.default_start_time)

    def recalculate_queue_times(self) -> None:
        """Stempelt scheduled_start_time und has_gap aller Einträge neu."""
        events = self.schedule.get_stored_nodes()
        current = self._base_start_minutes()
        prev_end: Optional[int] = None

        for entry in self._entries:
            for adjustment in entry.ordered_adjustments():
                current += adjustment.minutes
            current = max(0, current if prev_end is None else max(current, prev_end))
            if any(e.overlaps(current, entry.duration) for e in events):
                current = time_to_minutes(
                    find_next_available_slot(events, entry.duration).start_time
                )
            entry.scheduled_start_time = minutes_to_time(current)
            current += entry.duration
            prev_end = current

        prev_end = None
        for entry in self._entries:
            entry.has_gap = prev_end is not None and entry.start_minutes > prev_end
            prev_end = entry.end_minutes

    def set_queue_start_time(self, start_time: Optional[str]) -> None:
        """Setzt die bevorzugte Startzeit (Flaggen-Zeit) und rechnet neu."""
        if start_time is not None:
            time_to_minutes(start_time)
        self.queue_start_time = start_time
        self.recalculate_queue_times()

    # ─── Einfügen / Entfernen ───

    def add_lesson_to_queue(
        self,
        lesson_id: str,
        duration: int,
        students: list[str],
        remaining_minutes: int,
        status: Optional[str] = None,
    ) -> bool:
        """Hängt eine Stunde an die Warteschlange an.

        Nur geplante Stunden ("planned") werden aufgenommen, jede Stunde
        höchstens einmal. Gibt False zurück, wenn nichts passiert ist.
        """
        if status is not None and status != "planned":
            logger.info(f"Stunde {lesson_id} nicht vorgemerkt: Status '{status}'")
            return False
        if self._index_of(lesson_id) is not None:
            logger.info(f"Stunde {lesson_id} ist bereits vorgemerkt")
            return False

        self._entries.append(QueuedLesson(
            lesson_id=lesson_id,
            duration=duration,
            students=list(students),
            remaining_minutes=remaining_minutes,
        ))
        self.recalculate_queue_times()
        return True

    def remove_lesson_from_queue(self, lesson_id: str) -> Optional[QueueRemoval]:
        """Entfernt eine Stunde. None wenn sie nicht vorgemerkt war.

        War sie die erste, enthält das Ergebnis die Verschiebung des neuen
        ersten Eintrags gegenüber der entfernten Startzeit.
        """
        index = self._index_of(lesson_id)
        if index is None:
            return None

        removed = self._entries.pop(index)
        old_start = removed.start_minutes
        self.recalculate_queue_times()

        offset = 0
        if index == 0 and self._entries and old_start is not None:
            offset = self._entries[0].start_minutes - old_start
        return QueueRemoval(lesson_id=lesson_id, was_first=index == 0, global_offset=offset)

    def clear_queue(self) -> int:
        """Leert die Warteschlange. Gibt die Anzahl entfernter Einträge zurück."""
        count = len(self._entries)
        self._entries = []
        return count

    # ─── Dauer & Zeit ───

    def update_queue_lesson_duration(self, lesson_id: str, new_duration: int) -> bool:
        """Ändert die Dauer (begrenzt durch remaining_minutes); spätere
        Einträge rücken entsprechend."""
        index = self._index_of(lesson_id)
        if index is None:
            return False
        entry = self._entries[index]
        clamped = min(max(new_duration, self.config.min_lesson_duration), entry.remaining_minutes)
        if clamped == entry.duration:
            return False
        entry.duration = clamped
        self.recalculate_queue_times()
        return True

    def update_queue_lesson_start_time(self, lesson_id: str, delta_minutes: int) -> bool:
        """Verschiebt einen Eintrag manuell um delta_minutes.

        Spätere Einträge wandern mit. Schließt die Verschiebung genau die
        Lücke zum Nachfolger, bleibt der Rest stehen: der Nachfolger erhält
        einen Lückenschluss-Ausgleich, der manuelle Wert bleibt unverändert.
        Abgelehnt (False) wird eine Verschiebung vor das Ende des Vorgängers,
        aus dem erlaubten Zeitfenster oder in einen gespeicherten Termin.
        """
        index = self._index_of(lesson_id)
        if index is None or delta_minutes == 0:
            return False
        self.recalculate_queue_times()

        entry = self._entries[index]
        new_start = entry.start_minutes + delta_minutes
        earliest, latest = self.config.queue_window
        if not earliest <= new_start <= latest:
            logger.info(
                f"Verschiebung von {lesson_id} auf {minutes_to_time(max(0, new_start))} "
                f"außerhalb {self.config.queue_earliest_time}-{self.config.queue_latest_time}"
            )
            return False
        if index > 0 and new_start < self._entries[index - 1].end_minutes:
            return False

        nxt = self._entries[index + 1] if index + 1 < len(self._entries) else None
        gap_after = nxt.start_minutes - entry.end_minutes if nxt else None

        saved = [(e, dict(e.adjustments)) for e in (entry, nxt) if e is not None]
        entry.adjust(AdjustmentKind.MANUAL, delta_minutes)
        if nxt is not None and delta_minutes > 0 and gap_after == delta_minutes:
            nxt.adjust(AdjustmentKind.AUTO_GAP_CLOSURE, -delta_minutes)
        self.recalculate_queue_times()

        # Landet der Eintrag nicht auf new_start (Termin im Weg), gilt die
        # Verschiebung als abgelehnt
        if entry.start_minutes != new_start:
            for e, adjustments in saved:
                e.adjustments = adjustments
            self.recalculate_queue_times()
            logger.info(
                f"Verschiebung von {lesson_id} auf {minutes_to_time(new_start)} "
                f"überschneidet einen gespeicherten Termin"
            )
            return False
        return True

    def can_move_queue_lesson_earlier(self, lesson_id: str) -> bool:
        """Erster Eintrag: immer. Sonst nur, wenn ein Schritt früher den
        Vorgänger nicht überlappt."""
        index = self._index_of(lesson_id)
        if index is None:
            return False
        if index == 0:
            return True
        self.recalculate_queue_times()
        entry = self._entries[index]
        previous = self._entries[index - 1]
        return entry.start_minutes - self.config.adjustment_step_minutes >= previous.end_minutes

    def remove_gap_for_lesson(self, lesson_id: str) -> bool:
        """Lässt einen Eintrag genau am Ende seines Vorgängers beginnen.

        Spätere Einträge wandern um denselben Betrag mit, ihre Abstände
        bleiben erhalten.
        """
        index = self._index_of(lesson_id)
        if index is None or index == 0:
            return False
        self.recalculate_queue_times()

        entry = self._entries[index]
        previous = self._entries[index - 1]
        if entry.start_minutes - previous.end_minutes <= 0:
            return False

        # Startzeit ohne eigene Anpassungen ermitteln
        entry.reset_adjustments()
        self.recalculate_queue_times()
        unadjusted = entry.start_minutes
        target = self._entries[index - 1].end_minutes

        entry.set_adjustment(AdjustmentKind.MANUAL, target - unadjusted)
        self.recalculate_queue_times()
        return True

    # ─── Reihenfolge ───

    def move_queue_lesson_up(self, lesson_id: str) -> bool:
        return self._move(lesson_id, -1)

    def move_queue_lesson_down(self, lesson_id: str) -> bool:
        return self._move(lesson_id, +1)

    def _move(self, lesson_id: str, step: int) -> bool:
        index = self._index_of(lesson_id)
        if index is None:
            return False
        other = index + step
        if not 0 <= other < len(self._entries):
            return False

        self.recalculate_queue_times()
        anchor = self._entries[0].scheduled_start_time
        self._entries[index], self._entries[other] = self._entries[other], self._entries[index]

        compacted = compact_schedule_preserving_order(self.as_nodes(), anchor)
        self._apply_target_times([n.start_minutes for n in compacted])
        self.recalculate_queue_times()
        return True

    def _apply_target_times(self, targets: list[int]) -> None:
        """Setzt die Anpassungen so, dass die Neuberechnung targets ergibt."""
        current = self._base_start_minutes()
        for entry, target in zip(self._entries, targets):
            entry.reset_adjustments()
            if target != current:
                entry.set_adjustment(AdjustmentKind.MANUAL, target - current)
            current = target + entry.duration

    # ─── Übergabe ───

    def can_schedule_queue(self) -> bool:
        """True wenn alle Einträge gestempelt, im Zeitfenster und frei von
        Überschneidungen mit gespeicherten Terminen sind."""
        if not self._entries:
            return False
        self.recalculate_queue_times()
        earliest, latest = self.config.queue_window
        events = self.schedule.get_stored_nodes()
        for entry in self._entries:
            start = entry.start_minutes
            if start is None or entry.duration <= 0:
                return False
            if not earliest <= start <= latest:
                return False
            if any(e.overlaps(start, entry.duration) for e in events):
                return False
        return True

    def create_events_from_queue(self, location: str, date: str) -> list[PlannedEvent]:
        """Erzeugt die anzulegenden Termine. Die Einträge bleiben in der
        Warteschlange, bis der Aufrufer sie nach dem Speichern entfernt."""
        if not self.can_schedule_queue():
            logger.warning(
                f"Warteschlange {self.schedule.teacher_id}/{date} kann nicht eingeplant werden"
            )
            return []
        return [
            PlannedEvent(
                lesson_id=e.lesson_id,
                date=to_utc_string(create_utc_datetime(date, e.scheduled_start_time)),
                duration=e.duration,
                location=location,
            )
            for e in self._entries
        ]
