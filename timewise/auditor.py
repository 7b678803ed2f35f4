"""
timewise/auditor.py
Conflict records: the ones the planner raises while searching and the
post-run audit of exam windows and semester hour totals.
"""

from typing import Dict, Iterable, List, Set, Tuple

from . import utils
from .config import MAKEUP_REASON
from .models import (
    ConflictType,
    Course,
    CourseDuration,
    ExamSchedule,
    ExtraClass,
    Room,
    RoomType,
    SessionType,
    Timetable,
    TimetableConflict,
)
from .targets import AdjustedTarget, HoursTally


class ConflictLog:
    """Insertion-ordered conflict list that drops repeats of (type, course, description)."""

    def __init__(self):
        self._conflicts: List[TimetableConflict] = []
        self._seen: Set[Tuple[str, str, str]] = set()

    def add(self, conflict: TimetableConflict) -> bool:
        if conflict.dedupe_key in self._seen:
            return False
        self._seen.add(conflict.dedupe_key)
        self._conflicts.append(conflict)
        return True

    def extend(self, conflicts: Iterable[TimetableConflict]):
        for conflict in conflicts:
            self.add(conflict)

    def to_list(self) -> List[TimetableConflict]:
        return list(self._conflicts)

    def __len__(self) -> int:
        return len(self._conflicts)

    def __iter__(self):
        return iter(self._conflicts)


def missing_faculty_conflict(course: Course) -> TimetableConflict:
    return TimetableConflict(
        type=ConflictType.MISSING_FACULTY,
        description=f"Course {course.code} has no assigned faculty.",
        details={"courseId": course.id},
    )


def resource_shortage_conflict(course: Course, session_type: SessionType) -> TimetableConflict:
    room_type = Room.required_type(course, session_type)
    if room_type is RoomType.CLASSROOM:
        headcount = course.room_headcount(session_type)
        description = f"No suitable classroom for {course.code} (capacity: {headcount})."
    else:
        description = f"No suitable {room_type.value} rooms for {course.code}."
    return TimetableConflict(
        type=ConflictType.RESOURCE_SHORTAGE,
        description=description,
        details={"courseId": course.id},
    )


def _count_window_hours(counted: Dict[str, int], course: Course, exam: ExamSchedule, day, duration: int):
    if course.duration is CourseDuration.HALF_1 and day >= exam.mid_sem_date:
        counted["after_mid"] += duration
    if course.duration is CourseDuration.HALF_2 and day < exam.mid_sem_date:
        counted["before_mid"] += duration
    if day > exam.end_sem_date:
        counted["after_end"] += duration


def _exam_violation_hours(timetable: Timetable, courses: Dict[str, Course],
                          exam_map: Dict[str, ExamSchedule],
                          extra_classes: Iterable[ExtraClass] = ()) -> Dict[str, Dict[str, int]]:
    """
    Raw violation hours per course. Each (course, type, room) session is
    counted once per date and judged against the first enrolled group's
    exam dates. A makeup class counts as one hour on its own date.
    """
    hours = {cid: {"after_mid": 0, "before_mid": 0, "after_end": 0} for cid in courses}
    for day_key, slots in timetable.days.items():
        day = utils.parse_date(day_key)
        seen = set()
        for entries in slots.values():
            for entry in entries:
                course = courses.get(entry.course_id)
                if course is None or not course.enrolled_groups:
                    continue
                if entry.session_key in seen:
                    continue
                seen.add(entry.session_key)

                exam = exam_map.get(course.enrolled_groups[0].exam_key)
                if exam is None:
                    continue
                _count_window_hours(hours[course.id], course, exam, day, entry.session_type.hours)

    for extra in extra_classes:
        if extra.reason != MAKEUP_REASON:
            continue
        course = courses.get(extra.course_id)
        if course is None or not course.enrolled_groups:
            continue
        exam = exam_map.get(course.enrolled_groups[0].exam_key)
        if exam is not None:
            _count_window_hours(hours[course.id], course, exam, extra.date, 1)
    return hours


def audit_exam_windows(course: Course, raw_hours: Dict[str, int]) -> List[TimetableConflict]:
    """Scheduling Period Violations for one course, hours averaged over its groups."""
    conflicts = []
    group_count = max(1, len(course.enrolled_groups))
    messages = (
        ("after_mid", "First-half course {code} has {n} hour(s) scheduled after the mid-semester exam date."),
        ("before_mid", "Second-half course {code} has {n} hour(s) scheduled before the mid-semester exam date."),
        ("after_end", "Course {code} has {n} hour(s) scheduled after the end-semester exam date."),
    )
    for key, template in messages:
        if raw_hours.get(key, 0) <= 0:
            continue
        n = utils.round_half_up(raw_hours[key] / group_count)
        conflicts.append(TimetableConflict(
            type=ConflictType.SCHEDULING_PERIOD_VIOLATION,
            description=template.format(code=course.code, n=n),
            details={"courseId": course.id, "violationHours": n},
        ))
    return conflicts


def audit_hour_shortages(course: Course, target: AdjustedTarget, tally: HoursTally) -> List[TimetableConflict]:
    conflicts = []
    for session_type in (SessionType.CLASSROOM, SessionType.TUTORIAL, SessionType.LAB):
        deficit = target.total(session_type) - tally.scheduled(course.id, session_type)
        if deficit <= 0:
            continue
        conflicts.append(TimetableConflict(
            type=ConflictType.SEMESTER_HOUR_SHORTAGE,
            description=(f"Course {course.code} is short by {deficit} "
                         f"{session_type.value.lower()} hour(s) for the semester."),
            details={"courseId": course.id, "deficit": deficit, "type": session_type.value},
        ))
    return conflicts


def audit_timetable(timetable: Timetable, courses: List[Course], exam_schedules: List[ExamSchedule],
                    targets: Dict[str, AdjustedTarget], tally: HoursTally,
                    log: ConflictLog = None,
                    extra_classes: Iterable[ExtraClass] = ()) -> List[TimetableConflict]:
    """
    Runs both audits course by course, appending to `log` (or a fresh log)
    and returning the deduplicated conflict list.
    """
    log = log if log is not None else ConflictLog()
    course_map = {c.id: c for c in courses}
    exam_map = {es.key: es for es in exam_schedules}
    raw = _exam_violation_hours(timetable, course_map, exam_map, extra_classes)

    for course in courses:
        log.extend(audit_exam_windows(course, raw[course.id]))
        log.extend(audit_hour_shortages(course, targets[course.id], tally))
    return log.to_list()
