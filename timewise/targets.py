"""
timewise/targets.py
Effective hour targets per course and the running scheduled-hours tally.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .config import MAKEUP_REASON
from .models import Cancellation, Course, ExtraClass, SessionType


@dataclass
class AdjustedTarget:
    """A course's semester and weekly targets after permanent cancellations."""
    classroom_hours: int
    tutorial_hours: int
    lab_hours: int
    weekly_classroom_hours: float
    weekly_tutorial_hours: float
    weekly_lab_hours: float

    @classmethod
    def from_course(cls, course: Course) -> "AdjustedTarget":
        return cls(
            classroom_hours=course.classroom_hours,
            tutorial_hours=course.tutorial_hours,
            lab_hours=course.lab_hours,
            weekly_classroom_hours=course.weekly_classroom_hours,
            weekly_tutorial_hours=course.weekly_tutorial_hours,
            weekly_lab_hours=course.weekly_lab_hours,
        )

    def total(self, session_type: SessionType) -> int:
        return {
            SessionType.CLASSROOM: self.classroom_hours,
            SessionType.TUTORIAL: self.tutorial_hours,
            SessionType.LAB: self.lab_hours,
        }[session_type]

    def weekly(self, session_type: SessionType) -> float:
        return {
            SessionType.CLASSROOM: self.weekly_classroom_hours,
            SessionType.TUTORIAL: self.weekly_tutorial_hours,
            SessionType.LAB: self.weekly_lab_hours,
        }[session_type]

    def weekly_units(self, session_type: SessionType) -> int:
        """Sessions to enqueue per week; a fractional cadence rounds up."""
        weekly = self.weekly(session_type)
        if weekly <= 0:
            return 0
        return math.ceil(weekly / session_type.hours)

    def remove_session(self, session_type: SessionType):
        """
        Drops one session from the semester total and scales the weekly
        cadence by the same ratio.
        """
        total = self.total(session_type)
        if total <= 0:
            return
        new_total = max(0, total - session_type.hours)
        new_weekly = max(0.0, self.weekly(session_type) * new_total / total)
        if session_type is SessionType.CLASSROOM:
            self.classroom_hours, self.weekly_classroom_hours = new_total, new_weekly
        elif session_type is SessionType.TUTORIAL:
            self.tutorial_hours, self.weekly_tutorial_hours = new_total, new_weekly
        else:
            self.lab_hours, self.weekly_lab_hours = new_total, new_weekly


@dataclass
class ScheduledHours:
    classroom: int = 0
    tutorial: int = 0
    lab: int = 0

    def get(self, session_type: SessionType) -> int:
        return {
            SessionType.CLASSROOM: self.classroom,
            SessionType.TUTORIAL: self.tutorial,
            SessionType.LAB: self.lab,
        }[session_type]

    def add(self, session_type: SessionType):
        if session_type is SessionType.CLASSROOM:
            self.classroom += session_type.hours
        elif session_type is SessionType.TUTORIAL:
            self.tutorial += session_type.hours
        else:
            self.lab += session_type.hours


class HoursTally:
    """Scheduled hours per course, accumulated over one engine run."""

    def __init__(self, course_ids: Iterable[str]):
        self.hours: Dict[str, ScheduledHours] = {cid: ScheduledHours() for cid in course_ids}

    def __contains__(self, course_id: str) -> bool:
        return course_id in self.hours

    def get(self, course_id: str) -> ScheduledHours:
        return self.hours[course_id]

    def scheduled(self, course_id: str, session_type: SessionType) -> int:
        return self.hours[course_id].get(session_type)

    def add(self, course_id: str, session_type: SessionType):
        self.hours[course_id].add(session_type)

    def is_short(self, course_id: str, session_type: SessionType, target: AdjustedTarget) -> bool:
        return self.scheduled(course_id, session_type) < target.total(session_type)


def adjust_targets(courses: List[Course], cancellations: List[Cancellation]) -> Dict[str, AdjustedTarget]:
    """Applies every permanently cancelled session to its course's targets."""
    targets = {c.id: AdjustedTarget.from_course(c) for c in courses}
    courses_by_id = {c.id: c for c in courses}

    for cancellation in cancellations:
        if not cancellation.is_permanent:
            continue
        for cancelled in cancellation.cancelled_classes:
            course = courses_by_id.get(cancelled.course_id)
            if course is None or course.total_hours(cancelled.session_type) <= 0:
                continue
            targets[course.id].remove_session(cancelled.session_type)
    return targets


def apply_makeup_credit(courses: List[Course], extra_classes: List[ExtraClass],
                        targets: Dict[str, AdjustedTarget]) -> HoursTally:
    """
    Seeds the tally with makeup classes. Each one covers the first session
    type the course is still short on, in classroom, tutorial, lab order.
    """
    tally = HoursTally(c.id for c in courses)
    courses_by_id = {c.id: c for c in courses}

    for extra in extra_classes:
        if extra.reason != MAKEUP_REASON:
            continue
        course = courses_by_id.get(extra.course_id)
        if course is None:
            continue
        target = targets[course.id]
        for session_type in (SessionType.CLASSROOM, SessionType.TUTORIAL, SessionType.LAB):
            if tally.is_short(course.id, session_type, target) and course.weekly_hours(session_type) > 0:
                tally.add(course.id, session_type)
                break
    return tally


def build_targets(courses: List[Course], cancellations: List[Cancellation],
                  extra_classes: List[ExtraClass]) -> Tuple[Dict[str, AdjustedTarget], HoursTally]:
    targets = adjust_targets(courses, cancellations)
    return targets, apply_makeup_credit(courses, extra_classes, targets)
