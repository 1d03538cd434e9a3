"""Testdaten-Generator für die Tagesplanung der Kite-Schule.

Erzeugt realistische Stunden mit absichtlichen Stolpersteinen für robuste Tests.

Absichtliche Stolpersteine:
  1. Lücken: zwischen manchen Terminen eines Lehrers bleibt Leerlauf
  2. Fremde Tage: einzelne Termine liegen am Vortag bzw. Folgetag
  3. Unvollständige Termine: ohne Dauer oder Ort (Defaults greifen)
  4. Stunden ohne Termin: landen nur in der Warteschlange
"""

import random
from datetime import timedelta
from typing import Optional

from config.schema import EngineConfig
from config.defaults import LOCATIONS, default_engine_config
from models.lesson_record import (
    BookingRef,
    EventRecord,
    LessonRecord,
    StudentRef,
    TeacherRef,
)
from models.time_of_day import create_utc_datetime, time_to_minutes

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_TEACHER_NAMES = [
    "Ana", "Bruno", "Carla", "Diego", "Elena", "Fabio", "Greta", "Hugo",
    "Inés", "Jonas", "Lucía", "Mateo", "Nora", "Pablo", "Rosa", "Tomás",
]

_STUDENT_NAMES = [
    "Anna", "Ben", "Clara", "David", "Emma", "Felix", "Hanna", "Jan",
    "Julia", "Leon", "Lena", "Lukas", "Marie", "Max", "Mia", "Noah",
    "Paul", "Sofia", "Tim", "Zoe", "Carmen", "Javier", "Marta", "Sergio",
]

# Dauer in Minuten (gewichtet)
_DURATIONS: list[tuple[int, int]] = [(60, 2), (90, 3), (120, 5), (180, 2)]

# Gruppengrößen (gewichtet)
_GROUP_SIZES: list[tuple[int, int]] = [(1, 5), (2, 4), (3, 2), (4, 1)]


class FakeLessonGenerator:
    """Generiert Stunden mit Terminen für einen Tag auf Basis der EngineConfig."""

    def __init__(self, config: Optional[EngineConfig] = None, seed: Optional[int] = None) -> None:
        self.config = config or default_engine_config()
        self.rng = random.Random(seed)
        self._lesson_counter = 0
        self._event_counter = 0

    def _weighted(self, choices: list[tuple[int, int]]) -> int:
        values = [v for v, _ in choices]
        weights = [w for _, w in choices]
        return self.rng.choices(values, weights=weights, k=1)[0]

    def _next_lesson_id(self) -> str:
        self._lesson_counter += 1
        return f"L{self._lesson_counter:03d}"

    def _next_event_id(self) -> str:
        self._event_counter += 1
        return f"E{self._event_counter:03d}"

    def _booking(self) -> BookingRef:
        size = self._weighted(_GROUP_SIZES)
        names = self.rng.sample(_STUDENT_NAMES, k=size)
        return BookingRef(students=[StudentRef(name=n) for n in names])

    # ─── Stunden ──────────────────────────────────────────────────────────────

    def generate(
        self, date: str, num_teachers: int = 3, lessons_per_teacher: int = 4
    ) -> list[LessonRecord]:
        """Erzeugt Stunden für num_teachers Lehrer am Tag date."""
        names = self.rng.sample(_TEACHER_NAMES, k=min(num_teachers, len(_TEACHER_NAMES)))
        lessons: list[LessonRecord] = []
        for i, name in enumerate(names, start=1):
            teacher = TeacherRef(id=f"T{i:02d}", name=name)
            lessons.extend(self._teacher_day(teacher, date, lessons_per_teacher))
        return lessons

    def _teacher_day(
        self, teacher: TeacherRef, date: str, count: int
    ) -> list[LessonRecord]:
        lessons: list[LessonRecord] = []
        cursor = time_to_minutes(self.config.working_day_start)
        day_end = time_to_minutes(self.config.working_day_end)

        for _ in range(count):
            booking = self._booking()
            lesson = LessonRecord(id=self._next_lesson_id(), teacher=teacher, booking=booking)
            roll = self.rng.random()

            if roll < 0.1:
                # Stolperstein 4: noch kein Termin
                lessons.append(lesson)
                continue

            duration = self._weighted(_DURATIONS)
            if self.rng.random() < 0.3:
                cursor += self.rng.choice([30, 60])   # Stolperstein 1
            if cursor + duration > day_end:
                lessons.append(lesson)
                continue

            start = create_utc_datetime(date, f"{cursor // 60:02d}:{cursor % 60:02d}")
            if roll > 0.92:
                start += timedelta(days=self.rng.choice([-1, 1]))   # Stolperstein 2

            incomplete = self.rng.random() < 0.1   # Stolperstein 3
            lesson.events.append(EventRecord(
                id=self._next_event_id(),
                date=start,
                duration=None if incomplete else duration,
                location=None if incomplete else self.rng.choice(LOCATIONS),
            ))
            lessons.append(lesson)
            cursor += duration if not incomplete else self.config.default_event_duration

        return lessons
