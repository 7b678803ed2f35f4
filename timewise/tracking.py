"""
timewise/tracking.py
Per-week booking state used while the planner searches for slots.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Set

from . import utils
from .models import Course, Room, SessionType, TimetableEntry


@dataclass
class SlotState:
    """Everything booked into one (day, slot) cell of the week grid."""
    faculty: Set[str] = field(default_factory=set)
    rooms: Set[str] = field(default_factory=set)
    # group key -> basket id of the course holding it (None for non-electives)
    student_groups: Dict[str, Optional[str]] = field(default_factory=dict)
    # faculty id -> session type they teach in this slot
    class_types: Dict[str, SessionType] = field(default_factory=dict)
    groups_by_faculty: Dict[str, Set[str]] = field(default_factory=dict)
    course_ids: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class SessionUnit:
    """One owed session of a course for the current week."""
    course: Course
    session_type: SessionType

    @property
    def duration(self) -> int:
        return self.session_type.hours


@dataclass
class Placement:
    day_index: int
    slot_index: int
    entry: TimetableEntry

    @property
    def duration(self) -> int:
        return self.entry.session_type.hours


class WeekTracker:
    """
    Represents the 5-day x 8-slot grid of one semester week, with the daily
    load counters the scoring function reads.
    """

    def __init__(self, week_start: date):
        self.week_start = week_start
        self.days: List[date] = utils.week_days(week_start)
        self.grid: List[List[SlotState]] = [
            [SlotState() for _ in range(utils.TOTAL_SLOTS_PER_DAY)]
            for _ in range(len(self.days))
        ]
        self.student_load: List[Dict[str, int]] = [{} for _ in self.days]
        self.faculty_load: List[Dict[str, int]] = [{} for _ in self.days]
        self.daily_session_tracker: List[Dict[str, Set[SessionType]]] = [{} for _ in self.days]
        self.placements: List[Placement] = []

    def slot(self, day_index: int, slot_index: int) -> Optional[SlotState]:
        if 0 <= slot_index < utils.TOTAL_SLOTS_PER_DAY:
            return self.grid[day_index][slot_index]
        return None

    def is_faculty_busy(self, day_index: int, slot_index: int, faculty_id: str) -> bool:
        state = self.slot(day_index, slot_index)
        return state is not None and faculty_id in state.faculty

    def has_session_type(self, day_index: int, course_id: str, session_type: SessionType) -> bool:
        return session_type in self.daily_session_tracker[day_index].get(course_id, set())

    def group_hours(self, day_index: int, group_key: str) -> int:
        return self.student_load[day_index].get(group_key, 0)

    def faculty_hours(self, day_index: int, faculty_id: str) -> int:
        return self.faculty_load[day_index].get(faculty_id, 0)

    def book(self, day_index: int, slot_index: int, session: SessionUnit,
             faculty_id: str, room: Room) -> Placement:
        course = session.course
        group_keys = course.group_keys
        entry = TimetableEntry(
            course_id=course.id,
            room_id=room.id,
            session_type=session.session_type,
            faculty_id=faculty_id,
        )

        for offset in range(session.duration):
            state = self.grid[day_index][slot_index + offset]
            for key in group_keys:
                state.student_groups[key] = course.basket_id
            state.rooms.add(room.id)
            state.faculty.add(faculty_id)
            state.course_ids.add(course.id)
            state.class_types[faculty_id] = session.session_type
            state.groups_by_faculty.setdefault(faculty_id, set()).update(group_keys)

        for key in group_keys:
            self.student_load[day_index][key] = self.group_hours(day_index, key) + session.duration
        self.faculty_load[day_index][faculty_id] = self.faculty_hours(day_index, faculty_id) + session.duration
        self.daily_session_tracker[day_index].setdefault(course.id, set()).add(session.session_type)

        placement = Placement(day_index=day_index, slot_index=slot_index, entry=entry)
        self.placements.append(placement)
        return placement

    def placements_by_start(self) -> Dict[tuple, List[Placement]]:
        starts: Dict[tuple, List[Placement]] = {}
        for placement in self.placements:
            starts.setdefault((placement.day_index, placement.slot_index), []).append(placement)
        return starts
