"""Lücken- und Verdichtungs-Funktionen über beliebige Zeitblöcke.

Ein Zeitblock ist jedes Objekt mit den Attributen ``start_time`` ("HH:MM")
und ``duration`` (Minuten). Alle Funktionen sind rein: Eingaben werden nie
verändert, Verdichtungen liefern flache Kopien.
"""

import copy
from typing import Optional, Sequence, TypeVar

from models.schedule_node import AvailableSlot, NodeKind, ScheduleNode
from models.time_of_day import minutes_to_time, time_to_minutes

T = TypeVar("T")


def _start(item) -> int:
    return time_to_minutes(item.start_time)


def _end(item) -> int:
    return _start(item) + item.duration


def _sorted(items: Sequence[T]) -> list[T]:
    return sorted(items, key=_start)


def _gap_id(a, b) -> str:
    return f"gap_{getattr(a, 'id', _start(a))}_{getattr(b, 'id', _start(b))}"


# ─── Lücken erkennen ──────────────────────────────────────────────────────────

def detect_schedule_gaps(items: Sequence[T]) -> list[T | ScheduleNode]:
    """Sortiert die Blöcke und fügt zwischen zwei Blöcken eine Lücke ein,
    wenn der erste endet, bevor der zweite beginnt.

    Die Lücke ist ein ScheduleNode vom Typ GAP mit
    ``duration = start(b) - end(a)``. Bei nahtlosen Blöcken keine Lücke.
    """
    ordered = _sorted(items)
    result: list[T | ScheduleNode] = []
    for i, item in enumerate(ordered):
        result.append(item)
        if i == len(ordered) - 1:
            break
        nxt = ordered[i + 1]
        gap = _start(nxt) - _end(item)
        if gap > 0:
            result.append(ScheduleNode(
                id=_gap_id(item, nxt),
                kind=NodeKind.GAP,
                start_time=minutes_to_time(_end(item)),
                duration=gap,
            ))
    return result


def has_schedule_gaps(items: Sequence, min_gap_minutes: int = 15) -> bool:
    """True wenn mindestens eine Lücke ≥ min_gap_minutes existiert."""
    ordered = _sorted(items)
    for a, b in zip(ordered, ordered[1:]):
        if _start(b) - _end(a) >= min_gap_minutes:
            return True
    return False


def calculate_total_gap_time(items: Sequence) -> int:
    """Summe aller positiven Lücken zwischen benachbarten Blöcken (Minuten)."""
    ordered = _sorted(items)
    return sum(
        max(0, _start(b) - _end(a))
        for a, b in zip(ordered, ordered[1:])
    )


# ─── Verdichten ───────────────────────────────────────────────────────────────

def compact_schedule(items: Sequence[T]) -> list[T]:
    """Entfernt alle Lücken in zeitlicher Reihenfolge.

    Der früheste Block bleibt als Anker stehen, jeder weitere beginnt genau
    am Ende seines Vorgängers.
    """
    ordered = [copy.copy(item) for item in _sorted(items)]
    if len(ordered) <= 1:
        return ordered
    current = _end(ordered[0])
    for item in ordered[1:]:
        item.start_time = minutes_to_time(current)
        current += item.duration
    return ordered


def compact_schedule_preserving_order(
    items: Sequence[T], anchor_time: Optional[str] = None
) -> list[T]:
    """Wie compact_schedule, aber in der übergebenen Reihenfolge.

    Für manuell umsortierte Listen, bei denen Anzeige- und Zeitreihenfolge
    auseinanderlaufen. Anker ist anchor_time oder die Startzeit des ersten
    Blocks.
    """
    result = [copy.copy(item) for item in items]
    if not result:
        return result
    current = time_to_minutes(anchor_time) if anchor_time else _start(result[0])
    for item in result:
        item.start_time = minutes_to_time(current)
        current += item.duration
    return result


# ─── Freie Slots ──────────────────────────────────────────────────────────────

def find_next_available_slot(
    items: Sequence, duration: int, default_start: str = "10:00"
) -> AvailableSlot:
    """Erster freier Slot nach dem spätesten Ende aller Blöcke.

    Lücken zwischen Blöcken werden bewusst nicht belegt. Ohne Blöcke
    beginnt der Slot bei default_start.
    """
    if not items:
        start = time_to_minutes(default_start)
    else:
        start = max(_end(item) for item in items)
    return AvailableSlot(
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(start + duration),
        duration=duration,
    )
