"""
timewise/constraints.py
Hard constraints and the scoring function used by the weekly planner.

`check_candidate` answers "may this session go here?" with a reason code,
`score_candidate` answers "how good is it?". The planner only scores
candidates that passed the check.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from . import utils
from .config import (
    DEFAULT_WEIGHTS,
    EDGE_WEEKDAYS,
    EVENING_COHORT_BRANCHES,
    MAX_CONSECUTIVE_FACULTY_HOURS,
    MAX_MORNING_GROUPS_AFTER_MIDSEM,
    MORNING_COHORT_BRANCH,
    ScoringWeights,
)
from .models import (
    Course,
    ExamSchedule,
    Faculty,
    Holiday,
    Room,
    SchedulerInput,
    SessionType,
)
from .tracking import SessionUnit, WeekTracker


class RejectReason(str, Enum):
    SAME_TYPE_SAME_DAY = "same_type_same_day"
    OUTSIDE_COURSE_WINDOW = "outside_course_window"
    OUTSIDE_EXAM_WINDOW = "outside_exam_window"
    HOLIDAY = "holiday"
    FACULTY_LEAVE = "faculty_leave"
    LAB_START_BARRED = "lab_start_barred"
    RESERVED_SLOT = "reserved_slot"
    SLOT_CANCELLED = "slot_cancelled"
    FACULTY_BUSY = "faculty_busy"
    REPEATED_GROUP = "repeated_group"
    ADJACENT_SAME_COURSE = "adjacent_same_course"
    FACULTY_OVERLOAD = "faculty_overload"
    STUDENT_CONFLICT = "student_conflict"
    NO_ROOM = "no_room"


@dataclass
class CheckResult:
    reason: Optional[RejectReason] = None
    room: Optional[Room] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


@dataclass
class PlanningContext:
    """Read-only lookups derived once per engine run from the input snapshot."""
    semester_start: date
    semester_end: date
    senior_end: date
    faculty_by_course: Dict[str, Faculty]
    rooms: List[Room]
    holidays: List[Holiday]
    leave_dates: Dict[str, Set[date]]
    cancelled_slots: Set[Tuple[date, int]]
    exam_map: Dict[str, ExamSchedule]
    weights: ScoringWeights = DEFAULT_WEIGHTS
    _room_cache: Dict[Tuple[str, SessionType], List[Room]] = field(default_factory=dict, repr=False)

    @classmethod
    def build(cls, snapshot: SchedulerInput, weights: Optional[ScoringWeights] = None) -> "PlanningContext":
        settings = snapshot.semester_settings

        faculty_by_course: Dict[str, Faculty] = {}
        for member in snapshot.faculty:
            for course_id in member.courses:
                faculty_by_course.setdefault(course_id, member)

        leave_dates: Dict[str, Set[date]] = {}
        for leave in snapshot.faculty_leaves:
            leave_dates.setdefault(leave.faculty_id, set()).update(leave.dates())

        cancelled_slots = {
            (c.date, utils.slot_index(c.time_slot))
            for c in snapshot.cancellations
            if c.time_slot in utils.TIME_SLOTS
        }

        return cls(
            semester_start=settings.start_date,
            semester_end=settings.end_date,
            senior_end=settings.effective_senior_end,
            faculty_by_course=faculty_by_course,
            rooms=list(snapshot.rooms),
            holidays=list(snapshot.holidays),
            leave_dates=leave_dates,
            cancelled_slots=cancelled_slots,
            exam_map={es.key: es for es in snapshot.exam_schedules},
            weights=weights or DEFAULT_WEIGHTS,
        )

    def faculty_for(self, course: Course) -> Optional[Faculty]:
        return self.faculty_by_course.get(course.id)

    def suitable_rooms(self, course: Course, session_type: SessionType) -> List[Room]:
        """Rooms of the right type and size, smallest first."""
        key = (course.id, session_type)
        if key not in self._room_cache:
            room_type = Room.required_type(course, session_type)
            headcount = course.room_headcount(session_type)
            self._room_cache[key] = sorted(
                (r for r in self.rooms if r.room_type is room_type and r.capacity >= headcount),
                key=lambda r: r.capacity,
            )
        return self._room_cache[key]

    def is_holiday(self, course: Course, day: date) -> bool:
        return any(h.covers(day) and h.applies_to(course) for h in self.holidays)

    def is_on_leave(self, faculty_id: str, day: date) -> bool:
        return day in self.leave_dates.get(faculty_id, set())

    def is_cancelled(self, day: date, slot_index: int) -> bool:
        return (day, slot_index) in self.cancelled_slots

    def course_end(self, course: Course) -> date:
        return self.senior_end if course.is_senior else self.semester_end

    def is_after_mid_sem(self, course: Course, day: date) -> bool:
        for group in course.enrolled_groups:
            exam = self.exam_map.get(group.exam_key)
            if exam and day >= exam.mid_sem_date:
                return True
        return False


def _outside_exam_window(ctx: PlanningContext, course: Course, day: date) -> bool:
    for group in course.enrolled_groups:
        exam = ctx.exam_map.get(group.exam_key)
        if not exam:
            continue
        if course.duration.value == "Half-1" and day >= exam.mid_sem_date:
            return True
        if course.duration.value == "Half-2" and day < exam.mid_sem_date:
            return True
        if day > exam.end_sem_date:
            return True
    return False


def check_day(ctx: PlanningContext, tracker: WeekTracker, session: SessionUnit,
              faculty: Faculty, day_index: int) -> Optional[RejectReason]:
    """Constraints that depend only on the day, not on the slot."""
    course = session.course
    day = tracker.days[day_index]

    if tracker.has_session_type(day_index, course.id, session.session_type):
        return RejectReason.SAME_TYPE_SAME_DAY
    if day < course.start_date or day < ctx.semester_start or day > ctx.course_end(course):
        return RejectReason.OUTSIDE_COURSE_WINDOW
    if _outside_exam_window(ctx, course, day):
        return RejectReason.OUTSIDE_EXAM_WINDOW
    if ctx.is_holiday(course, day):
        return RejectReason.HOLIDAY
    if ctx.is_on_leave(faculty.id, day):
        return RejectReason.FACULTY_LEAVE
    return None


def _is_reserved(course: Course, slot_index: int, after_mid_sem: bool) -> bool:
    label = utils.TIME_SLOTS[slot_index]
    evening_cohort = course.enrolls_first_sem_branch(EVENING_COHORT_BRANCHES)
    first_sem = course.is_first_semester

    if label == utils.MORNING_SLOT:
        if evening_cohort:
            return True
        if first_sem and after_mid_sem and len(course.enrolled_groups) > MAX_MORNING_GROUPS_AFTER_MIDSEM:
            return True
    if label == utils.EVENING_SLOT:
        if not evening_cohort:
            return True
        if first_sem and after_mid_sem:
            return True
    return False


def _busy_run(tracker: WeekTracker, day_index: int, faculty_id: str, start: int, step: int) -> int:
    run = 0
    index = start
    while tracker.is_faculty_busy(day_index, index, faculty_id):
        run += 1
        index += step
    return run


def _has_student_conflict(course: Course, state) -> bool:
    for key in course.group_keys:
        if key in state.student_groups:
            scheduled_basket = state.student_groups[key]
            if course.basket_id is None or course.basket_id != scheduled_basket:
                return True
    return False


def check_slot(ctx: PlanningContext, tracker: WeekTracker, session: SessionUnit,
               faculty: Faculty, day_index: int, slot_index: int) -> CheckResult:
    """Constraints for a specific start slot on a day that already passed `check_day`."""
    course = session.course
    day = tracker.days[day_index]
    slots = list(range(slot_index, slot_index + session.duration))
    before, after = slots[0] - 1, slots[-1] + 1

    if session.session_type is SessionType.LAB and not utils.lab_can_start(slot_index):
        return CheckResult(RejectReason.LAB_START_BARRED)
    if slots[-1] >= utils.TOTAL_SLOTS_PER_DAY:
        return CheckResult(RejectReason.LAB_START_BARRED)

    after_mid_sem = ctx.is_after_mid_sem(course, day)
    if any(_is_reserved(course, s, after_mid_sem) for s in slots):
        return CheckResult(RejectReason.RESERVED_SLOT)
    if any(ctx.is_cancelled(day, s) for s in slots):
        return CheckResult(RejectReason.SLOT_CANCELLED)
    if any(tracker.is_faculty_busy(day_index, s, faculty.id) for s in slots):
        return CheckResult(RejectReason.FACULTY_BUSY)

    group_keys = set(course.group_keys)
    for neighbour in (before, after):
        state = tracker.slot(day_index, neighbour)
        if state is None:
            continue
        if group_keys & state.groups_by_faculty.get(faculty.id, set()):
            return CheckResult(RejectReason.REPEATED_GROUP)
        if course.id in state.course_ids:
            return CheckResult(RejectReason.ADJACENT_SAME_COURSE)

    run = (_busy_run(tracker, day_index, faculty.id, before, -1)
           + len(slots)
           + _busy_run(tracker, day_index, faculty.id, after, 1))
    if run > MAX_CONSECUTIVE_FACULTY_HOURS:
        return CheckResult(RejectReason.FACULTY_OVERLOAD)

    if any(_has_student_conflict(course, tracker.grid[day_index][s]) for s in slots):
        return CheckResult(RejectReason.STUDENT_CONFLICT)

    for room in ctx.suitable_rooms(course, session.session_type):
        if all(room.id not in tracker.grid[day_index][s].rooms for s in slots):
            return CheckResult(room=room)
    return CheckResult(RejectReason.NO_ROOM)


def check_candidate(ctx: PlanningContext, tracker: WeekTracker, session: SessionUnit,
                    faculty: Faculty, day_index: int, slot_index: int) -> CheckResult:
    reason = check_day(ctx, tracker, session, faculty, day_index)
    if reason is not None:
        return CheckResult(reason)
    return check_slot(ctx, tracker, session, faculty, day_index, slot_index)


def score_candidate(ctx: PlanningContext, tracker: WeekTracker, session: SessionUnit,
                    faculty_id: str, day_index: int, slot_index: int) -> int:
    """Signed desirability of placing `session` at (day, slot). Higher is better."""
    weights = ctx.weights
    course = session.course
    day = tracker.days[day_index]
    group_keys = course.group_keys
    last_slot = slot_index + session.duration - 1

    score = weights.base
    for key in group_keys:
        score += weights.group_daily_load * tracker.group_hours(day_index, key)
    score += weights.faculty_daily_load * tracker.faculty_hours(day_index, faculty_id)
    if day.weekday() in EDGE_WEEKDAYS:
        score += weights.edge_weekday

    for neighbour in (slot_index - 1, last_slot + 1):
        state = tracker.slot(day_index, neighbour)
        if state is not None and any(key in state.student_groups for key in group_keys):
            score += weights.adjacent_group

    if course.basket_id:
        if slot_index < utils.EARLY_SLOT_COUNT:
            score += weights.basket_early_slot
        else:
            score += weights.basket_late_slot

    if course.enrolled_groups and course.is_first_semester:
        if ctx.is_holiday(course, day):
            score += weights.first_sem_holiday
        first_sem_cse = all(g.branch == MORNING_COHORT_BRANCH for g in course.enrolled_groups)
        if (first_sem_cse and session.session_type is SessionType.LAB
                and slot_index == 0 and ctx.is_after_mid_sem(course, day)):
            score += weights.first_sem_cse_morning_lab
    return score
