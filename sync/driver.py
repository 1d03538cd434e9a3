"""ScheduleSyncDriver – schreibt Änderungen eines Tagesplans in den EventStore.

Ablauf jeder Operation:
  1. Änderung auf einer Arbeitskopie des TeacherSchedule ausführen
  2. Update-Set berechnen
  3. EventStore aufrufen
  4. Nur wenn alle Aufrufe erfolgreich waren, die Arbeitskopie übernehmen

Schlägt ein Aufruf fehl, bleibt der Tagesplan unverändert. Ausnahmen des
Speichers werden protokolliert und als Fehlschlag gemeldet.
"""

import logging
from typing import Iterable

from pydantic import BaseModel

from analysis.schedule_diff import diff_schedule_nodes
from config.defaults import EVENT_STATUSES
from engine.reorganization import DatabaseUpdate, ReorganizationOption, ScheduleReorganizer
from engine.schedule import TeacherSchedule
from models.schedule_node import ScheduleNode
from models.time_of_day import extract_time_from_utc
from sync.store import EventStore, EventUpdate

logger = logging.getLogger(__name__)


class SyncReport(BaseModel):
    """Ergebnis einer Folge von Einzelaufrufen."""

    attempted: int = 0
    succeeded: int = 0
    failures: list[str] = []
    # Lesson-ID → neu angelegte Termin-ID (nur commit_queue)
    created: dict[str, str] = {}

    @property
    def ok(self) -> bool:
        return not self.failures


class ScheduleSyncDriver:
    """Führt Reorganisationen aus und persistiert sie über einen EventStore."""

    def __init__(self, store: EventStore) -> None:
        self.store = store

    # ─── Reorganisationen ───

    def perform_full_schedule_reorganization(
        self, schedule: TeacherSchedule, date: str, event_id_map: dict[str, str]
    ) -> bool:
        """Verdichtet den ganzen Tag und speichert die neuen Zeiten."""
        working = schedule.copy()
        reorganizer = ScheduleReorganizer(working)
        if not reorganizer.perform_compact_reorganization():
            logger.info(f"{schedule.teacher_id}/{date}: nichts zu verdichten")
            return False

        updates = reorganizer.get_database_updates_for_compact_reorganization(date, event_id_map)
        if not self._send_batch(updates):
            return False
        schedule.adopt(working)
        logger.info(f"{schedule.teacher_id}/{date}: Tag verdichtet, {len(updates)} Termine aktualisiert")
        return True

    def accept_time_adjustment(
        self,
        schedule: TeacherSchedule,
        offset_minutes: int,
        date: str,
        event_id_map: dict[str, str],
    ) -> bool:
        """Verschiebt den Tag um offset_minutes (lückenlos) und speichert."""
        if offset_minutes == 0:
            return True
        working = schedule.copy()
        reorganizer = ScheduleReorganizer(working)
        if not reorganizer.shift_first_event_and_reorganize(offset_minutes):
            return False

        updates = reorganizer.get_database_updates_for_shifted_schedule(date, event_id_map)
        if not self._send_batch(updates):
            return False
        schedule.adopt(working)
        logger.info(f"{schedule.teacher_id}/{date}: um {offset_minutes} min verschoben")
        return True

    def apply_reorganization(
        self,
        schedule: TeacherSchedule,
        option: ReorganizationOption,
        date: str,
        event_id_map: dict[str, str],
    ) -> bool:
        """Wendet einen Vorschlag an. Löscht den entfernten Termin nicht extern."""
        updates = ScheduleReorganizer(schedule).get_database_updates_for_reorganization(
            option, date, event_id_map
        )
        working = schedule.copy()
        if option.removed_node_id:
            working.remove_node(option.removed_node_id)
        if not ScheduleReorganizer(working).reorganize_teacher_events(option):
            return False
        if not self._send_batch(updates):
            return False
        schedule.adopt(working)
        return True

    def remove_event_and_reorganize(
        self,
        schedule: TeacherSchedule,
        node_id: str,
        date: str,
        event_id_map: dict[str, str],
    ) -> bool:
        """Löscht einen Termin extern und lässt die späteren nachrücken."""
        node = schedule.get_node(node_id)
        if node is None:
            return False

        reorganizer = ScheduleReorganizer(schedule)
        options = reorganizer.get_reorganization_options(node_id)
        updates = reorganizer.get_database_updates_after_node_removal(node_id, date, event_id_map)

        working = schedule.copy()
        working.remove_node(node_id)
        if options and not ScheduleReorganizer(working).reorganize_teacher_events(options[0]):
            return False

        event_id = event_id_map.get(node.lesson_id or "")
        if event_id and not self._call(
            f"Löschen von {event_id}", lambda: self.store.delete_event(event_id)
        ):
            return False
        if not self._send_batch(updates):
            logger.error(
                f"{schedule.teacher_id}/{date}: {event_id} gelöscht, "
                f"Nachrücken der Folgetermine nicht gespeichert"
            )
            return False
        schedule.adopt(working)
        return True

    # ─── Bearbeitungsmodus ───

    def submit_queue_changes(
        self,
        original: Iterable[ScheduleNode],
        edited: Iterable[ScheduleNode],
        date: str,
        event_id_map: dict[str, str],
    ) -> SyncReport:
        """Speichert Zeit-/Dauer-Änderungen und Löschungen einer Bearbeitung."""
        diff = diff_schedule_nodes(original, edited, date, event_id_map)
        report = SyncReport()

        for change in diff.updates:
            update = EventUpdate(date=change.date, duration=change.duration)
            self._record(
                report,
                f"Update von {change.event_id}",
                lambda: self.store.update_event(change.event_id, update),
            )
        for event_id in diff.deletions:
            self._record(
                report, f"Löschen von {event_id}", lambda: self.store.delete_event(event_id)
            )

        if report.attempted and report.ok:
            logger.info(f"{date}: {report.succeeded} Änderungen gespeichert")
        return report

    def change_event_status(self, event_id: str, status: str) -> bool:
        """Setzt den Status eines externen Termins."""
        if status not in EVENT_STATUSES:
            logger.warning(f"Unbekannter Status '{status}' für {event_id}")
            return False
        ok = self._call(
            f"Statusänderung von {event_id}",
            lambda: self.store.update_event(event_id, EventUpdate(status=status)),
        )
        if ok:
            logger.info(f"Termin {event_id}: Status '{status}'")
        return ok

    # ─── Warteschlange ───

    def commit_queue(self, schedule: TeacherSchedule, location: str, date: str) -> SyncReport:
        """Legt alle vorgemerkten Stunden als Termine an.

        Erfolgreich angelegte Stunden wandern aus der Warteschlange in den
        Tagesplan; fehlgeschlagene bleiben vorgemerkt.
        """
        queue = schedule.queue
        report = SyncReport()
        entries = {e.lesson_id: e for e in queue.get_lesson_queue()}
        planned = queue.create_events_from_queue(location, date)
        if not planned:
            report.failures.append("Warteschlange kann nicht eingeplant werden")
            return report

        for event in planned:
            result = self._record(
                report, f"Anlegen für {event.lesson_id}", lambda: self.store.create_event(event)
            )
            if result is None:
                continue
            entry = entries[event.lesson_id]
            schedule.add_event(
                extract_time_from_utc(event.date),
                event.duration,
                event.lesson_id,
                event.location,
                max(1, entry.student_count),
                entry.students,
            )
            queue.remove_lesson_from_queue(event.lesson_id)
            if result.event_id:
                report.created[event.lesson_id] = result.event_id

        logger.info(
            f"{schedule.teacher_id}/{date}: {report.succeeded}/{report.attempted} "
            f"vorgemerkte Stunden angelegt"
        )
        return report

    # ─── Aufrufe ───

    def _send_batch(self, updates: list[DatabaseUpdate]) -> bool:
        if not updates:
            return True
        try:
            result = self.store.batch_reorganize_event_times(updates)
        except Exception as e:
            logger.error(f"Batch-Update ({len(updates)} Termine) fehlgeschlagen: {e}")
            return False
        if not result.success:
            logger.error(f"Batch-Update ({len(updates)} Termine) fehlgeschlagen: {result.error}")
            return False
        logger.info(f"{result.updated_count} Termine im Speicher aktualisiert")
        return True

    def _call(self, label: str, action) -> bool:
        return self._invoke(label, action) is not None

    def _record(self, report: SyncReport, label: str, action):
        report.attempted += 1
        result = self._invoke(label, action)
        if result is None:
            report.failures.append(label)
        else:
            report.succeeded += 1
        return result

    @staticmethod
    def _invoke(label: str, action):
        """Führt einen Speicher-Aufruf aus. None bei Fehlschlag."""
        try:
            result = action()
        except Exception as e:
            logger.error(f"{label} fehlgeschlagen: {e}")
            return None
        if not result.success:
            logger.error(f"{label} fehlgeschlagen: {result.error}")
            return None
        return result
