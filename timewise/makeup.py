"""
timewise/makeup.py
Turns a resolvable conflict into makeup ExtraClass records.

The records are returned, not stored: the caller appends them to the
snapshot's extra classes and runs the engine again, which credits them
against the course's targets.
"""

from datetime import date, timedelta
from typing import List, Optional

from . import utils
from .config import MAKEUP_REASON
from .models import (
    ConflictType,
    ExtraClass,
    SchedulerInput,
    SessionType,
    TimetableConflict,
)

RECURRENCES = ("once", "weekly")


def is_resolvable(conflict: TimetableConflict) -> bool:
    if conflict.type is ConflictType.SEMESTER_HOUR_SHORTAGE:
        return True
    return (conflict.type is ConflictType.SCHEDULING_PERIOD_VIOLATION
            and "after the mid-semester" in conflict.description)


def resolvable_conflicts(conflicts: List[TimetableConflict]) -> List[TimetableConflict]:
    """Conflicts an administrator can fix by adding makeup classes."""
    return [c for c in conflicts if is_resolvable(c)]


def first_weekday_on_or_after(start: date, day_name: str) -> date:
    if day_name not in utils.DAYS:
        raise ValueError(f"Makeup classes run Monday-Friday, got '{day_name}'")
    offset = (utils.DAYS.index(day_name) - start.weekday()) % 7
    return start + timedelta(days=offset)


def _window_end(conflict: TimetableConflict, snapshot: SchedulerInput) -> Optional[date]:
    """Last date a makeup class may fall on for this conflict."""
    settings = snapshot.semester_settings
    if conflict.type is ConflictType.SCHEDULING_PERIOD_VIOLATION:
        course = snapshot.course_map().get(conflict.course_id)
        if course and course.enrolled_groups:
            exam_key = course.enrolled_groups[0].exam_key
            for exam in snapshot.exam_schedules:
                if exam.key == exam_key:
                    # first-half sessions must finish before the mid-sem date itself
                    return exam.mid_sem_date - timedelta(days=1)
    return settings.end_date


def plan_makeup_classes(conflict: TimetableConflict, snapshot: SchedulerInput, day: str,
                        start_date: utils.DateLike, time_slot: str, room_name: str,
                        recurrence: str = "once") -> List[ExtraClass]:
    """
    Builds makeup classes on `day` starting from the first such weekday on or
    after `start_date`, one per week, until the conflict's deficit is covered
    or its window closes. `recurrence="once"` stops after the first record.
    """
    if not is_resolvable(conflict):
        raise ValueError(f"Conflict of type '{conflict.type.value}' cannot be fixed with makeup classes")
    if recurrence not in RECURRENCES:
        raise ValueError(f"Unknown recurrence '{recurrence}'")
    utils.slot_index(time_slot)

    course_id = conflict.course_id
    course = snapshot.course_map().get(course_id)
    if course is None:
        raise ValueError(f"Conflict refers to unknown course '{course_id}'")

    if conflict.type is ConflictType.SCHEDULING_PERIOD_VIOLATION:
        deficit = int(conflict.details.get("violationHours", 0))
        session_type = SessionType.CLASSROOM
    else:
        deficit = int(conflict.details.get("deficit", 0))
        session_type = SessionType.parse(conflict.details.get("type", SessionType.CLASSROOM.value))

    if session_type is SessionType.LAB and not utils.lab_can_start(utils.slot_index(time_slot)):
        raise ValueError(f"A lab cannot start at {time_slot}")

    if not snapshot.semester_settings.is_valid():
        return []

    faculty_id = next((f.id for f in snapshot.faculty if course_id in f.courses), None)
    window_start = snapshot.semester_settings.start_date
    window_end = _window_end(conflict, snapshot)

    current = first_weekday_on_or_after(utils.parse_date(start_date), day)
    remaining = deficit
    classes: List[ExtraClass] = []
    while remaining > 0 and window_start <= current <= window_end:
        classes.append(ExtraClass(
            id=f"makeup-{course_id}-{utils.date_key(current)}-{time_slot}",
            course_id=course_id,
            date=current,
            time_slot=time_slot,
            room_name=room_name,
            reason=MAKEUP_REASON,
            faculty_id=faculty_id,
        ))
        remaining -= session_type.hours
        if recurrence == "once":
            break
        current += timedelta(days=7)
    return classes
