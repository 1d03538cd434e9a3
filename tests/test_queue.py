"""Tests für LessonQueue (vorgemerkte Stunden)."""

import random

import pytest

from engine.queue import LessonQueue
from engine.schedule import TeacherSchedule
from models.queued_lesson import AdjustmentKind

DATE = "2024-06-01"


@pytest.fixture
def schedule() -> TeacherSchedule:
    return TeacherSchedule("t1", "Ana", DATE)


def _queue(schedule: TeacherSchedule, *entries: tuple[str, int], start: str = "09:00") -> LessonQueue:
    """Warteschlange mit (Lesson-ID, Dauer)-Einträgen und Flaggen-Zeit."""
    queue = schedule.queue
    queue.set_queue_start_time(start)
    for lesson_id, duration in entries:
        queue.add_lesson_to_queue(lesson_id, duration, ["Anna"], remaining_minutes=240)
    return queue


def _times(queue: LessonQueue) -> list[tuple[str, str]]:
    return [(e.lesson_id, e.scheduled_start_time) for e in queue.get_lesson_queue()]


def _assert_no_overlap(queue: LessonQueue) -> None:
    entries = queue.get_lesson_queue()
    for prev, cur in zip(entries, entries[1:]):
        assert prev.end_minutes <= cur.start_minutes, f"{prev.lesson_id} überlappt {cur.lesson_id}"


# ─── NEUBERECHNUNG ────────────────────────────────────────────────────────────

class TestRecompute:
    def test_back_to_back_from_flag_time(self, schedule):
        """Leerer Tag, Flagge 09:00: A(60) 09:00, B(90) 10:00."""
        queue = _queue(schedule, ("A", 60), ("B", 90))
        assert _times(queue) == [("A", "09:00"), ("B", "10:00")]
        assert [e.has_gap for e in queue.get_lesson_queue()] == [False, False]

    def test_default_start_without_flag(self, schedule):
        queue = schedule.queue
        queue.add_lesson_to_queue("A", 60, [], 120)
        assert _times(queue) == [("A", "09:00")]

    def test_starts_after_committed_events(self, schedule):
        """Flagge vor dem letzten Termin → Start am Ende des letzten Termins."""
        schedule.add_event("09:00", 120, "L1", "Los Lances", 1)
        queue = _queue(schedule, ("A", 60), start="08:00")
        assert _times(queue) == [("A", "11:00")]

    def test_flag_after_committed_events_wins(self, schedule):
        schedule.add_event("09:00", 120, "L1", "Los Lances", 1)
        queue = _queue(schedule, ("A", 60), start="12:30")
        assert _times(queue) == [("A", "12:30")]

    def test_conflict_jumps_after_committed(self, schedule):
        """Überlappt ein Eintrag einen Termin, springt er hinter den letzten Termin."""
        schedule.add_event("09:00", 60, "L1", "Los Lances", 1)
        queue = schedule.queue
        queue.add_lesson_to_queue("A", 60, [], 120)
        assert queue.update_queue_lesson_start_time("A", -120) is True
        assert _times(queue) == [("A", "08:00")]
        schedule.add_event("08:30", 30, "L2", "Los Lances", 1)
        queue.recalculate_queue_times()
        assert _times(queue) == [("A", "10:00")]

    def test_idempotent(self, schedule):
        """Erneutes Neuberechnen ändert keine Startzeit."""
        queue = _queue(schedule, ("A", 60), ("B", 90), ("C", 30))
        queue.update_queue_lesson_start_time("B", 30)
        before = _times(queue)
        queue.recalculate_queue_times()
        queue.recalculate_queue_times()
        assert _times(queue) == before

    def test_invalid_flag_time_raises(self, schedule):
        with pytest.raises(ValueError):
            schedule.queue.set_queue_start_time("9 Uhr")


# ─── EINFÜGEN / ENTFERNEN ─────────────────────────────────────────────────────

class TestAddRemove:
    def test_duplicate_add_returns_false(self, schedule):
        queue = _queue(schedule, ("A", 60))
        assert queue.add_lesson_to_queue("A", 90, [], 120) is False
        assert len(queue) == 1

    def test_only_planned_lessons(self, schedule):
        queue = schedule.queue
        assert queue.add_lesson_to_queue("A", 60, [], 120, status="completed") is False
        assert queue.add_lesson_to_queue("B", 60, [], 120, status="planned") is True
        assert [e.lesson_id for e in queue.get_lesson_queue()] == ["B"]

    def test_remove_later_entry(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60), ("C", 60))
        removal = queue.remove_lesson_from_queue("B")
        assert removal.was_first is False
        assert removal.global_offset == 0
        assert _times(queue) == [("A", "09:00"), ("C", "10:00")]

    def test_remove_first_reports_offset(self, schedule):
        """Neuer erster Eintrag beginnt 30 min früher als der entfernte."""
        queue = _queue(schedule, ("A", 60), ("B", 60))
        queue.update_queue_lesson_start_time("A", 30)
        removal = queue.remove_lesson_from_queue("A")
        assert removal.was_first is True
        assert removal.global_offset == -30
        assert _times(queue) == [("B", "09:00")]

    def test_remove_unknown_returns_none(self, schedule):
        assert _queue(schedule, ("A", 60)).remove_lesson_from_queue("X") is None

    def test_clear_queue(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        assert queue.clear_queue() == 2
        assert queue.get_lesson_queue() == []
        assert queue.queue_flag_time() is None

    def test_get_lesson_queue_returns_copies(self, schedule):
        queue = _queue(schedule, ("A", 60))
        queue.get_lesson_queue()[0].duration = 999
        assert queue.get_lesson_queue()[0].duration == 60


# ─── DAUER & ZEIT ─────────────────────────────────────────────────────────────

class TestDurationAndTime:
    def test_duration_clamped_to_remaining(self, schedule):
        queue = schedule.queue
        queue.set_queue_start_time("09:00")
        queue.add_lesson_to_queue("A", 60, [], remaining_minutes=90)
        queue.add_lesson_to_queue("B", 60, [], remaining_minutes=90)
        assert queue.update_queue_lesson_duration("A", 120) is True
        assert queue.get_entry("A").duration == 90
        assert _times(queue) == [("A", "09:00"), ("B", "10:30")]

    def test_duration_lower_bound(self, schedule):
        queue = _queue(schedule, ("A", 60))
        assert queue.update_queue_lesson_duration("A", 10) is True
        assert queue.get_entry("A").duration == 30

    def test_duration_unchanged_returns_false(self, schedule):
        queue = _queue(schedule, ("A", 60))
        assert queue.update_queue_lesson_duration("A", 60) is False
        assert queue.update_queue_lesson_duration("X", 90) is False

    def test_manual_shift_moves_later_entries(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60), ("C", 60))
        assert queue.update_queue_lesson_start_time("A", 30) is True
        assert _times(queue) == [("A", "09:30"), ("B", "10:30"), ("C", "11:30")]
        assert queue.get_entry("A").time_adjustment == 30

    def test_shift_creates_gap(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        queue.update_queue_lesson_start_time("B", 30)
        assert _times(queue) == [("A", "09:00"), ("B", "10:30")]
        assert queue.get_entry("B").has_gap is True

    def test_shift_into_gap_closes_it(self, schedule):
        """A rückt in die Lücke vor B: B bleibt stehen, manueller Wert bleibt."""
        queue = _queue(schedule, ("A", 60), ("B", 60))
        queue.update_queue_lesson_start_time("B", 30)
        assert queue.update_queue_lesson_start_time("A", 30) is True
        assert _times(queue) == [("A", "09:30"), ("B", "10:30")]
        b = queue.get_entry("B")
        assert b.time_adjustment == 30
        assert b.gap_closure_adjustment == -30
        assert b.has_gap is False

    def test_adjustments_apply_in_fixed_order(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        queue.update_queue_lesson_start_time("B", 30)
        queue.update_queue_lesson_start_time("A", 30)
        kinds = [a.kind for a in queue.get_entry("B").ordered_adjustments()]
        assert kinds == [AdjustmentKind.MANUAL, AdjustmentKind.AUTO_GAP_CLOSURE]

    def test_shift_outside_window_rejected(self, schedule):
        """Verschiebungen außerhalb 06:00-23:00 werden abgelehnt."""
        late = _queue(schedule, ("A", 60), start="22:30")
        assert late.update_queue_lesson_start_time("A", 60) is False
        assert _times(late) == [("A", "22:30")]

        other = TeacherSchedule("t2", "Bruno", DATE)
        early = _queue(other, ("A", 60), start="06:00")
        assert early.update_queue_lesson_start_time("A", -30) is False

    def test_shift_before_predecessor_rejected(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        assert queue.update_queue_lesson_start_time("B", -30) is False
        assert _times(queue) == [("A", "09:00"), ("B", "10:00")]

    def test_shift_into_committed_event_rejected(self, schedule):
        """Verschiebung in einen gespeicherten Termin → False, keine Anpassung bleibt hängen."""
        schedule.add_event("09:00", 60, "E", "Los Lances", 1)
        queue = schedule.queue
        queue.add_lesson_to_queue("A", 60, ["Anna"], 120)
        queue.add_lesson_to_queue("B", 60, ["Ben"], 120)
        assert _times(queue) == [("A", "10:00"), ("B", "11:00")]

        assert queue.update_queue_lesson_start_time("A", -30) is False
        assert queue.update_queue_lesson_start_time("A", -30) is False
        assert queue.get_entry("A").time_adjustment == 0
        assert _times(queue) == [("A", "10:00"), ("B", "11:00")]

        # Die nächste gültige Verschiebung wirkt sofort
        assert queue.update_queue_lesson_start_time("A", 30) is True
        assert _times(queue) == [("A", "10:30"), ("B", "11:30")]
        assert queue.get_entry("A").time_adjustment == 30

    def test_can_move_earlier(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        assert queue.can_move_queue_lesson_earlier("A") is True
        assert queue.can_move_queue_lesson_earlier("B") is False
        queue.update_queue_lesson_start_time("B", 30)
        assert queue.can_move_queue_lesson_earlier("B") is True
        assert queue.can_move_queue_lesson_earlier("X") is False

    def test_remove_gap_for_lesson(self, schedule):
        """B schließt an A an, C behält seinen Abstand zu B."""
        queue = _queue(schedule, ("A", 60), ("B", 60), ("C", 60))
        queue.update_queue_lesson_start_time("B", 60)
        queue.update_queue_lesson_start_time("C", 30)
        assert _times(queue) == [("A", "09:00"), ("B", "11:00"), ("C", "12:30")]

        assert queue.remove_gap_for_lesson("B") is True
        assert _times(queue) == [("A", "09:00"), ("B", "10:00"), ("C", "11:30")]
        assert queue.get_entry("B").has_gap is False

    def test_remove_gap_rejections(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        assert queue.remove_gap_for_lesson("A") is False
        assert queue.remove_gap_for_lesson("B") is False
        assert queue.remove_gap_for_lesson("X") is False


# ─── REIHENFOLGE ──────────────────────────────────────────────────────────────

class TestReorder:
    def test_move_up_compacts_from_original_anchor(self, schedule):
        """Zweiter von drei nach oben: lückenlos ab der alten ersten Startzeit."""
        queue = _queue(schedule, ("A", 60), ("B", 90), ("C", 30))
        queue.update_queue_lesson_start_time("C", 30)
        assert queue.move_queue_lesson_up("B") is True
        assert _times(queue) == [("B", "09:00"), ("A", "10:30"), ("C", "11:30")]
        assert not any(e.has_gap for e in queue.get_lesson_queue())

    def test_move_down(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 90), ("C", 30))
        assert queue.move_queue_lesson_down("A") is True
        assert [e.lesson_id for e in queue.get_lesson_queue()] == ["B", "A", "C"]
        assert _times(queue)[0] == ("B", "09:00")

    def test_move_keeps_shifted_anchor(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        queue.update_queue_lesson_start_time("A", 60)
        queue.move_queue_lesson_up("B")
        assert _times(queue) == [("B", "10:00"), ("A", "11:00")]

    def test_move_at_edges_rejected(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60))
        assert queue.move_queue_lesson_up("A") is False
        assert queue.move_queue_lesson_down("B") is False
        assert queue.move_queue_lesson_up("X") is False


# ─── ÜBERGABE ─────────────────────────────────────────────────────────────────

class TestCommitPreparation:
    def test_create_events_from_queue(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 90))
        events = queue.create_events_from_queue("Palmones", DATE)
        assert [(e.lesson_id, e.date, e.duration, e.location, e.status) for e in events] == [
            ("A", "2024-06-01T09:00:00.000Z", 60, "Palmones", "planned"),
            ("B", "2024-06-01T10:00:00.000Z", 90, "Palmones", "planned"),
        ]
        # Einträge bleiben, bis der Aufrufer sie entfernt
        assert len(queue) == 2

    def test_cannot_schedule_outside_window(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 60), start="22:30")
        assert queue.can_schedule_queue() is False
        assert queue.create_events_from_queue("Los Lances", DATE) == []

    def test_cannot_schedule_empty(self, schedule):
        assert schedule.queue.can_schedule_queue() is False

    def test_flag_time_and_default_duration(self, schedule):
        queue = _queue(schedule, ("A", 60), start="10:30")
        assert queue.queue_flag_time() == "10:30"
        assert queue.default_duration_for(1) == 120
        assert queue.default_duration_for(3) == 180
        assert queue.default_duration_for(5) == 240

    def test_as_nodes(self, schedule):
        queue = _queue(schedule, ("A", 60), ("B", 30))
        nodes = queue.as_nodes()
        assert [(n.id, n.lesson_id, n.start_time) for n in nodes] == [
            ("queue_A", "A", "09:00"), ("queue_B", "B", "10:00"),
        ]


# ─── EIGENSCHAFTEN ────────────────────────────────────────────────────────────

class TestQueueProperties:
    def test_no_overlap_after_random_operations(self, schedule):
        """Nach jeder Operation überlappen sich keine Einträge."""
        rng = random.Random(7)
        schedule.add_event("09:00", 60, "L1", "Los Lances", 1)
        queue = _queue(schedule, *[(f"Q{i}", rng.choice([30, 60, 90])) for i in range(5)])

        for _ in range(200):
            ids = [e.lesson_id for e in queue.get_lesson_queue()]
            lesson_id = rng.choice(ids)
            op = rng.randrange(5)
            if op == 0:
                queue.update_queue_lesson_start_time(lesson_id, rng.choice([-30, 30, 60]))
            elif op == 1:
                queue.update_queue_lesson_duration(lesson_id, rng.choice([30, 60, 120]))
            elif op == 2:
                queue.move_queue_lesson_up(lesson_id)
            elif op == 3:
                queue.move_queue_lesson_down(lesson_id)
            else:
                queue.remove_gap_for_lesson(lesson_id)
            _assert_no_overlap(queue)
            for entry in queue.get_lesson_queue():
                assert not any(
                    n.overlaps(entry.start_minutes, entry.duration)
                    for n in schedule.get_stored_nodes()
                )
