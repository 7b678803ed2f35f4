"""
timewise/planner.py
Greedy weekly session planner.

Each week the owed sessions are queued, split into priority groups and
placed one by one at the highest-scoring feasible (day, slot, room).
Whatever cannot be placed is deferred and shows up again in next week's
queue through the recomputed targets.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from . import utils
from .auditor import ConflictLog, missing_faculty_conflict, resource_shortage_conflict
from .config import BRANCH_PRIORITY, MORNING_COHORT_BRANCH, UNKNOWN_BRANCH_PRIORITY
from .constraints import PlanningContext, check_candidate, score_candidate
from .models import Course, Room, SessionType
from .targets import AdjustedTarget, HoursTally
from .tracking import Placement, SessionUnit, WeekTracker

SESSION_ORDER = (SessionType.CLASSROOM, SessionType.TUTORIAL, SessionType.LAB)


def build_weekly_sessions(courses: List[Course], targets: Dict[str, AdjustedTarget],
                          tally: HoursTally) -> List[SessionUnit]:
    """Queues the sessions every course still owes for one week."""
    sessions: List[SessionUnit] = []
    for course in courses:
        target = targets[course.id]
        for session_type in SESSION_ORDER:
            if not tally.is_short(course.id, session_type, target):
                continue
            for _ in range(target.weekly_units(session_type)):
                sessions.append(SessionUnit(course=course, session_type=session_type))
    return sessions


def lab_priority(session: SessionUnit) -> Tuple[bool, bool]:
    course = session.course
    return (not course.requires_hardware_lab, not course.is_multi_group)


def class_priority(session: SessionUnit) -> Tuple[bool, bool, int, int]:
    course = session.course
    return (
        not (course.is_senior and course.is_multi_group),
        not course.is_multi_group,
        BRANCH_PRIORITY.get(course.primary_branch, UNKNOWN_BRANCH_PRIORITY),
        -course.student_count,
    )


@dataclass
class SessionGroups:
    senior_labs: List[SessionUnit] = field(default_factory=list)
    senior_classes: List[SessionUnit] = field(default_factory=list)
    first_sem_cse: List[SessionUnit] = field(default_factory=list)
    first_sem_other: List[SessionUnit] = field(default_factory=list)


def _enrolls_cse(course: Course) -> bool:
    return any(g.branch == MORNING_COHORT_BRANCH for g in course.enrolled_groups)


def partition_sessions(sessions: List[SessionUnit]) -> SessionGroups:
    """
    Splits the queue into the four planning passes, each in priority order.
    Python's sort is stable, so equal keys keep queue order.
    """
    groups = SessionGroups()
    first_sem: List[SessionUnit] = []
    for session in sessions:
        if session.course.is_senior:
            if session.session_type is SessionType.LAB:
                groups.senior_labs.append(session)
            else:
                groups.senior_classes.append(session)
        else:
            first_sem.append(session)

    groups.senior_labs.sort(key=lab_priority)
    groups.senior_classes.sort(key=class_priority)
    first_sem.sort(key=class_priority)

    for session in first_sem:
        if _enrolls_cse(session.course):
            groups.first_sem_cse.append(session)
        else:
            groups.first_sem_other.append(session)
    return groups


@dataclass
class WeekPlan:
    tracker: WeekTracker
    deferred: List[SessionUnit] = field(default_factory=list)

    @property
    def placements(self) -> List[Placement]:
        return self.tracker.placements


class WeeklyPlanner:
    """
    Places one week's sessions on a fresh WeekTracker. Conflicts found while
    planning (missing faculty, no suitable room in the pool) go to the shared
    ConflictLog.
    """

    def __init__(self, ctx: PlanningContext, week_start: date, conflicts: ConflictLog):
        self.ctx = ctx
        self.tracker = WeekTracker(week_start)
        self.conflicts = conflicts
        self.deferred: List[SessionUnit] = []

    def _candidate_slots(self, session: SessionUnit) -> List[int]:
        if session.session_type is SessionType.LAB:
            return utils.LAB_START_SLOTS
        return list(range(utils.TOTAL_SLOTS_PER_DAY))

    def _precheck(self, session: SessionUnit):
        """Returns the assigned faculty, or None after logging why the session cannot run."""
        course = session.course
        faculty = self.ctx.faculty_for(course)
        if faculty is None:
            self.conflicts.add(missing_faculty_conflict(course))
            return None
        if not self.ctx.suitable_rooms(course, session.session_type):
            self.conflicts.add(resource_shortage_conflict(course, session.session_type))
            return None
        return faculty

    def _schedule_session(self, session: SessionUnit) -> bool:
        faculty = self._precheck(session)
        if faculty is None:
            return False

        best: Optional[Tuple[int, int, Room, int]] = None
        for day_index in range(len(self.tracker.days)):
            for slot_index in self._candidate_slots(session):
                result = check_candidate(self.ctx, self.tracker, session, faculty, day_index, slot_index)
                if not result.ok:
                    continue
                score = score_candidate(self.ctx, self.tracker, session, faculty.id, day_index, slot_index)
                if best is None or score > best[3]:
                    best = (day_index, slot_index, result.room, score)

        if best is None:
            return False
        day_index, slot_index, room, _ = best
        self.tracker.book(day_index, slot_index, session, faculty.id, room)
        return True

    def _schedule_phase(self, sessions: List[SessionUnit]):
        for session in sessions:
            if not self._schedule_session(session):
                self.deferred.append(session)

    def _morning_slot_taken_by_cse(self, day_index: int) -> bool:
        state = self.tracker.grid[day_index][0]
        for key in state.student_groups:
            semester, _, rest = key.partition("-")
            branch = rest.split("-")[0]
            if semester == "1" and branch == MORNING_COHORT_BRANCH:
                return True
        return False

    def _schedule_phase_first_sem_morning(self, cse_sessions: List[SessionUnit]):
        """
        Gives each weekday's 09:00 slot to the first first-semester CSE session
        that fits there. Placed sessions are removed from `cse_sessions`.
        """
        for day_index in range(len(self.tracker.days)):
            if not cse_sessions:
                return
            if self._morning_slot_taken_by_cse(day_index):
                continue
            for i, session in enumerate(cse_sessions):
                faculty = self.ctx.faculty_for(session.course)
                if faculty is None:
                    continue
                result = check_candidate(self.ctx, self.tracker, session, faculty, day_index, 0)
                if result.ok:
                    self.tracker.book(day_index, 0, session, faculty.id, result.room)
                    del cse_sessions[i]
                    break

    def run(self, sessions: List[SessionUnit]) -> WeekPlan:
        groups = partition_sessions(sessions)
        self._schedule_phase(groups.senior_labs)
        self._schedule_phase(groups.senior_classes)

        cse_sessions = list(groups.first_sem_cse)
        self._schedule_phase_first_sem_morning(cse_sessions)
        self._schedule_phase(groups.first_sem_other + cse_sessions)
        return WeekPlan(tracker=self.tracker, deferred=list(self.deferred))


def plan_week(ctx: PlanningContext, week_start: date, courses: List[Course],
              targets: Dict[str, AdjustedTarget], tally: HoursTally,
              conflicts: ConflictLog) -> WeekPlan:
    sessions = build_weekly_sessions(courses, targets, tally)
    return WeeklyPlanner(ctx, week_start, conflicts).run(sessions)
