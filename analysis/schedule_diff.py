"""Vergleich zweier Terminlisten eines Lehrer-Tages (Original vs. bearbeitet).

Gibt strukturierte Unterschiede zurück, die als Rich-Tabelle oder JSON
ausgegeben bzw. über den Sync-Treiber gespeichert werden können.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from models.time_of_day import create_utc_datetime, to_utc_string

if TYPE_CHECKING:
    from models.schedule_node import ScheduleNode


@dataclass
class EventChange:
    """Geänderter Zeitpunkt und/oder geänderte Dauer eines Termins."""

    event_id: str
    lesson_id: str
    date: Optional[str] = None        # neuer ISO-UTC-Zeitpunkt
    duration: Optional[int] = None    # neue Dauer in Minuten


@dataclass
class ScheduleDiff:
    """Vollständiger Diff zwischen Original und bearbeiteter Terminliste."""

    updates: list[EventChange] = field(default_factory=list)
    deletions: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Gibt True zurück wenn kein Unterschied gefunden wurde."""
        return not self.updates and not self.deletions

    def to_dict(self) -> dict:
        """Serialisiert den Diff als Dictionary (für JSON-Ausgabe)."""
        return {
            "updates": [
                {
                    "event_id": u.event_id,
                    "lesson_id": u.lesson_id,
                    "date": u.date,
                    "duration": u.duration,
                }
                for u in self.updates
            ],
            "deletions": self.deletions,
        }

    def to_json(self, indent: int = 2) -> str:
        """Gibt den Diff als JSON-String zurück."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


def diff_schedule_nodes(
    original: Iterable["ScheduleNode"],
    edited: Iterable["ScheduleNode"],
    date: str,
    event_id_map: dict[str, str],
) -> ScheduleDiff:
    """Vergleicht zwei Terminlisten über die Lesson-ID.

    - Startzeit oder Dauer geändert → EventChange (nur geänderte Felder)
    - im Original, aber nicht mehr in der Bearbeitung → Löschung
    - neu in der Bearbeitung → ignoriert (Anlegen läuft über die Warteschlange)

    Termine ohne Eintrag in event_id_map werden übersprungen.
    """
    diff = ScheduleDiff()
    before = {n.lesson_id: n for n in original if not n.is_gap and n.lesson_id}
    after = {n.lesson_id: n for n in edited if not n.is_gap and n.lesson_id}

    # ── Änderungen ───────────────────────────────────────────────────────────
    for lesson_id, node in after.items():
        old = before.get(lesson_id)
        event_id = event_id_map.get(lesson_id)
        if old is None or not event_id:
            continue
        change = EventChange(event_id=event_id, lesson_id=lesson_id)
        if old.start_time != node.start_time:
            change.date = to_utc_string(create_utc_datetime(date, node.start_time))
        if old.duration != node.duration:
            change.duration = node.duration
        if change.date is not None or change.duration is not None:
            diff.updates.append(change)

    # ── Löschungen ───────────────────────────────────────────────────────────
    for lesson_id in before:
        if lesson_id not in after and event_id_map.get(lesson_id):
            diff.deletions.append(event_id_map[lesson_id])

    return diff
