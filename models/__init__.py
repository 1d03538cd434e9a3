from models.schedule_node import (
    AvailableSlot,
    ConflictInfo,
    DaySchedule,
    EventData,
    NodeKind,
    ScheduleNode,
)
from models.queued_lesson import (
    AdjustmentKind,
    PlannedEvent,
    QueuedLesson,
    QueueRemoval,
    TimeAdjustment,
)
from models.lesson_record import (
    BookingRef,
    EventRecord,
    LessonRecord,
    StudentRef,
    TeacherRef,
)

__all__ = [
    "AvailableSlot",
    "ConflictInfo",
    "DaySchedule",
    "EventData",
    "NodeKind",
    "ScheduleNode",
    "AdjustmentKind",
    "PlannedEvent",
    "QueuedLesson",
    "QueueRemoval",
    "TimeAdjustment",
    "BookingRef",
    "EventRecord",
    "LessonRecord",
    "StudentRef",
    "TeacherRef",
]
