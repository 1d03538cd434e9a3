"""Bearbeitungsmodus eines Lehrer-Tages: reine Funktionen über Terminlisten.

Im Bearbeitungsmodus wird eine Kopie der Termine verändert (Zeit, Dauer,
Reihenfolge, globaler Versatz), ohne den TeacherSchedule anzufassen. Das
Ergebnis wird anschließend per analysis.schedule_diff mit dem Original
verglichen und über den Sync-Treiber gespeichert.

Alle Funktionen liefern neue Listen mit Kopien; Lücken in der Eingabe
werden ignoriert.
"""

from typing import TYPE_CHECKING, Iterable, Literal, Optional

from engine.gaps import compact_schedule_preserving_order
from models.schedule_node import ScheduleNode
from models.time_of_day import minutes_to_time, time_to_minutes

if TYPE_CHECKING:
    from engine.schedule import TeacherSchedule


def _events(nodes: Iterable[ScheduleNode]) -> list[ScheduleNode]:
    return [n.model_copy(deep=True) for n in nodes if not n.is_gap]


def _index_of_lesson(nodes: list[ScheduleNode], lesson_id: str) -> Optional[int]:
    return next((i for i, n in enumerate(nodes) if n.lesson_id == lesson_id), None)


def _shifted(node: ScheduleNode, delta: int) -> None:
    node.start_time = minutes_to_time(max(0, node.start_minutes + delta))


# ─── Globaler Versatz ─────────────────────────────────────────────────────────

def calculate_time_offset(schedule: "TeacherSchedule", parent_time: str) -> int:
    """Minuten, um die der erste Termin verschoben werden müsste, damit er
    um parent_time beginnt. 0 bei leerem Tag."""
    first = schedule.first_event()
    if first is None:
        return 0
    return time_to_minutes(parent_time) - first.start_minutes


def apply_global_time_offset(nodes: Iterable[ScheduleNode], offset: int) -> list[ScheduleNode]:
    """Verschiebt alle Termine um offset Minuten (nicht vor 00:00)."""
    result = _events(nodes)
    if offset == 0:
        return result
    for node in result:
        _shifted(node, offset)
    return result


def apply_parent_time_to_schedule(
    nodes: Iterable[ScheduleNode], parent_time: str
) -> list[ScheduleNode]:
    """Verschiebt alle Termine so, dass der erste um parent_time beginnt."""
    result = _events(nodes)
    if not result:
        return result
    offset = time_to_minutes(parent_time) - result[0].start_minutes
    return apply_global_time_offset(result, offset)


def find_earliest_time(schedules: Iterable["TeacherSchedule"]) -> Optional[str]:
    """Früheste Startzeit über mehrere Lehrer-Tage, None wenn alle leer sind."""
    starts = [s.first_event().start_minutes for s in schedules if s.first_event()]
    return minutes_to_time(min(starts)) if starts else None


# ─── Einzelne Termine ─────────────────────────────────────────────────────────

def adjust_node_duration(
    nodes: Iterable[ScheduleNode],
    lesson_id: str,
    increment: bool,
    step: int = 30,
    minimum: int = 30,
) -> list[ScheduleNode]:
    """Verlängert bzw. verkürzt einen Termin um step Minuten (≥ minimum).

    Alle späteren Termine wandern um die tatsächliche Änderung mit.
    """
    result = _events(nodes)
    index = _index_of_lesson(result, lesson_id)
    if index is None:
        return result

    target = result[index]
    new_duration = max(minimum, target.duration + (step if increment else -step))
    delta = new_duration - target.duration
    if delta == 0:
        return result

    target.duration = new_duration
    for node in result[index + 1:]:
        _shifted(node, delta)
    return result


def adjust_node_time(
    nodes: Iterable[ScheduleNode],
    lesson_id: str,
    increment: bool,
    step: int = 30,
) -> tuple[list[ScheduleNode], int]:
    """Verschiebt einen Termin und alle späteren um ±step Minuten.

    Liegt beim Verschieben nach hinten dahinter genau eine Lücke von step
    Minuten, wird sie aufgebraucht: die späteren Termine bleiben stehen.

    Returns:
        (neue Liste, Änderung des globalen Versatzes). Der Versatz ändert
        sich nur, wenn der erste Termin verschoben wurde.
    """
    result = _events(nodes)
    index = _index_of_lesson(result, lesson_id)
    if index is None:
        return result, 0

    delta = step if increment else -step
    offset_delta = delta if index == 0 else 0
    for node in result[index:]:
        _shifted(node, delta)

    if increment and index < len(result) - 1:
        gap = result[index + 1].start_minutes - result[index].end_minutes
        if gap == step:
            for node in result[index + 1:]:
                _shifted(node, -step)
    return result, offset_delta


def remove_node_from_edit(
    nodes: Iterable[ScheduleNode],
    original_nodes: Iterable[ScheduleNode],
    lesson_id: str,
) -> tuple[list[ScheduleNode], int]:
    """Entfernt einen Termin aus der Bearbeitung.

    War es der erste, ergibt sich der neue globale Versatz aus dem neuen
    ersten Termin gegenüber dem ersten Termin des Originals.
    """
    current = _events(nodes)
    result = [n for n in current if n.lesson_id != lesson_id]

    new_offset = 0
    if current and current[0].lesson_id == lesson_id and result:
        original = _events(original_nodes)
        if original:
            new_offset = result[0].start_minutes - original[0].start_minutes
    return result, new_offset


def move_node_in_edit(
    nodes: Iterable[ScheduleNode],
    lesson_id: str,
    direction: Literal["up", "down"],
) -> list[ScheduleNode]:
    """Tauscht einen Termin mit seinem Nachbarn und verdichtet lückenlos ab
    der bisherigen ersten Startzeit."""
    result = _events(nodes)
    index = _index_of_lesson(result, lesson_id)
    if index is None:
        return result
    other = index - 1 if direction == "up" else index + 1
    if not 0 <= other < len(result):
        return result

    anchor = result[0].start_time
    result[index], result[other] = result[other], result[index]
    return compact_schedule_preserving_order(result, anchor)
