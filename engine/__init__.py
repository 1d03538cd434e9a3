"""Planungs-Engine: Tagesplan, Lücken, Reorganisation und Warteschlange."""

from engine.gaps import (
    calculate_total_gap_time,
    compact_schedule,
    compact_schedule_preserving_order,
    detect_schedule_gaps,
    find_next_available_slot,
    has_schedule_gaps,
)
from engine.schedule import TeacherSchedule
from engine.queue import LessonQueue
from engine.reorganization import DatabaseUpdate, ReorganizationOption, ScheduleReorganizer

__all__ = [
    "calculate_total_gap_time",
    "compact_schedule",
    "compact_schedule_preserving_order",
    "detect_schedule_gaps",
    "find_next_available_slot",
    "has_schedule_gaps",
    "TeacherSchedule",
    "LessonQueue",
    "DatabaseUpdate",
    "ReorganizationOption",
    "ScheduleReorganizer",
]
