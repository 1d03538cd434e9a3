"""Import von Unterrichtsstunden (JSON) und Aufbau der Lehrer-Tagespläne.

Eingabe ist eine Liste von Stunden mit Lehrer, Terminen (ISO-UTC) und
Buchung. Daraus entsteht pro Lehrer ein TeacherSchedule für einen Tag.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, ValidationError

from config.schema import EngineConfig
from config.defaults import default_engine_config
from engine.schedule import TeacherSchedule
from models.lesson_record import LessonRecord
from models.time_of_day import extract_time_from_utc, is_same_utc_date

logger = logging.getLogger(__name__)


class LessonImportError(Exception):
    """Fehler beim Lesen einer Stunden-Datei."""


class ImportReport(BaseModel):
    """Bericht über den Aufbau der Tagespläne."""
    warnings: list[str] = []
    lessons_used: int = 0
    events_imported: int = 0

    def print_rich(self) -> None:
        from rich.console import Console
        from rich.panel import Panel
        console = Console()
        lines = [f"[green]Stunden: {self.lessons_used}[/green]  "
                 f"[green]Termine: {self.events_imported}[/green]"]
        if self.warnings:
            lines.append("\n[yellow]Warnungen:[/yellow]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        console.print(Panel("\n".join(lines), title="Stunden-Import", border_style="cyan"))


def load_lessons_json(path: Path) -> list[LessonRecord]:
    """Liest eine JSON-Datei mit einer Liste von Stunden.

    Raises:
        LessonImportError: Datei fehlt, ist kein JSON oder passt nicht zum Schema.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise LessonImportError(f"Datei nicht gefunden: {path}")
    except json.JSONDecodeError as e:
        raise LessonImportError(f"Ungültiges JSON in {path}: {e}")

    if not isinstance(raw, list):
        raise LessonImportError(f"{path}: erwartet wird eine Liste von Stunden")
    try:
        return [LessonRecord.model_validate(item) for item in raw]
    except ValidationError as e:
        raise LessonImportError(f"Ungültige Stunde in {path}:\n{e}")


def save_lessons_json(lessons: Iterable[LessonRecord], path: Path) -> Path:
    """Schreibt Stunden als JSON (Gegenstück zu load_lessons_json)."""
    path = Path(path)
    data = [lesson.model_dump(mode="json") for lesson in lessons]
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def create_schedules_from_lessons(
    date: str,
    lessons: Iterable[LessonRecord],
    config: Optional[EngineConfig] = None,
    report: Optional[ImportReport] = None,
) -> dict[str, TeacherSchedule]:
    """Baut je Lehrer einen TeacherSchedule für date ("YYYY-MM-DD").

    Berücksichtigt nur Termine am selben UTC-Tag. Fehlende Dauer bzw. Ort
    werden aus der Konfiguration ergänzt, die Schülerzahl ist die Zahl der
    gebuchten Schüler (mindestens 1). Stunden ohne Lehrer werden übersprungen.
    """
    config = config or default_engine_config()
    report = report if report is not None else ImportReport()
    schedules: dict[str, TeacherSchedule] = {}

    for lesson in lessons:
        if lesson.teacher is None:
            report.warnings.append(f"Stunde {lesson.id} ohne Lehrer übersprungen")
            continue
        teacher = lesson.teacher
        if teacher.id not in schedules:
            schedules[teacher.id] = TeacherSchedule(teacher.id, teacher.name, date, config)
        schedule = schedules[teacher.id]
        report.lessons_used += 1

        for event in lesson.events:
            if not is_same_utc_date(event.date, date):
                continue
            schedule.add_event(
                extract_time_from_utc(event.date),
                event.duration or config.default_event_duration,
                lesson.id,
                event.location or config.default_location,
                max(1, len(lesson.booking.students)),
                lesson.student_names,
            )
            report.events_imported += 1

    logger.info(
        f"{len(schedules)} Tagespläne für {date} aufgebaut "
        f"({report.events_imported} Termine)"
    )
    return schedules


def create_event_id_map(
    lessons: Iterable[LessonRecord], date: Optional[str] = None
) -> dict[str, str]:
    """Lesson-ID → externe Termin-ID.

    Mit date werden nur Termine an diesem UTC-Tag berücksichtigt. Hat eine
    Stunde mehrere passende Termine, gilt der erste.
    """
    mapping: dict[str, str] = {}
    for lesson in lessons:
        for event in lesson.events:
            if not event.id:
                continue
            if date is not None and not is_same_utc_date(event.date, date):
                continue
            mapping.setdefault(lesson.id, event.id)
    return mapping
