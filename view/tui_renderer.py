"""Gemeinsamer Renderer für die Terminal-Anzeige eines Lehrer-Tages.

Wird von cmd_show (Rich-Tabelle) verwendet.
"""

from typing import TYPE_CHECKING

from models.time_of_day import format_duration

if TYPE_CHECKING:
    from engine.schedule import TeacherSchedule


def render_day_rows(schedule: "TeacherSchedule") -> list[list[str]]:
    """Gibt Tabellenzeilen für den Tagesplan eines Lehrers zurück.

    Jede Zeile: [Zeit, Dauer, Stunde, Ort, Schüler]
    Lücken werden als eigene Zeilen mit '↕ Lücke' eingefügt.
    """
    rows: list[list[str]] = []
    for node in schedule.get_nodes():
        time_label = f"{node.start_time}–{node.end_time}"
        if node.is_gap:
            rows.append([time_label, format_duration(node.duration), "↕ Lücke", "—", "—"])
            continue
        data = node.event_data
        students = ", ".join(data.student_names) if data and data.student_names else "—"
        if data and not data.student_names and data.student_count > 1:
            students = f"{data.student_count} Schüler"
        rows.append([
            time_label,
            format_duration(node.duration),
            node.lesson_id or "?",
            data.location if data else "—",
            students,
        ])
    return rows


def render_queue_rows(schedule: "TeacherSchedule") -> list[list[str]]:
    """Gibt Tabellenzeilen für die Warteschlange zurück.

    Jede Zeile: [Zeit, Dauer, Stunde, Anpassung, Schüler]
    """
    rows: list[list[str]] = []
    for entry in schedule.queue.get_lesson_queue():
        start = entry.scheduled_start_time or "—"
        adjustment = f"{entry.total_adjustment:+d} min" if entry.total_adjustment else "—"
        if entry.has_gap:
            adjustment += " (Lücke)"
        rows.append([
            start,
            format_duration(entry.duration),
            entry.lesson_id,
            adjustment,
            ", ".join(entry.students) or "—",
        ])
    return rows
