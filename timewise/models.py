"""
timewise/models.py
Input entities, timetable structures and conflict records.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from . import utils


class SessionType(str, Enum):
    CLASSROOM = "Classroom"
    TUTORIAL = "Tutorial"
    LAB = "Lab"

    @property
    def hours(self) -> int:
        """Labs are 2-hour blocks; everything else is a single hour."""
        return 2 if self is SessionType.LAB else 1

    @classmethod
    def parse(cls, value: str) -> "SessionType":
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        raise ValueError(f"Unknown session type '{value}'")


class RoomType(str, Enum):
    CLASSROOM = "Classroom"
    SOFTWARE_LAB = "Software Lab"
    HARDWARE_LAB = "Hardware Lab"

    @classmethod
    def parse(cls, value: str) -> "RoomType":
        text = str(value).strip().lower().replace("_", " ")
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown room type '{value}'")


class CourseDuration(str, Enum):
    FULL = "Full"
    HALF_1 = "Half-1"
    HALF_2 = "Half-2"

    @classmethod
    def parse(cls, value: str) -> "CourseDuration":
        text = str(value).strip().lower().replace("_", "-").replace(" ", "-")
        if not text:
            return cls.FULL
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown course duration '{value}'")


class HolidayScope(str, Enum):
    ALL_EXCEPT_FIRST_SEM = "all_except_first_sem"
    ONLY_FIRST_SEM = "only_first_sem"

    @classmethod
    def parse(cls, value: str) -> "HolidayScope":
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown holiday scope '{value}'")


class CancellationStatus(str, Enum):
    RESCHEDULED = "Rescheduled"
    CANCELLED = "Cancelled"
    POSTPONED = "Postponed"
    PERMANENTLY_CANCELLED = "Permanently Cancelled"

    @classmethod
    def parse(cls, value: str) -> "CancellationStatus":
        text = str(value).strip().lower().replace("-", " ").replace("_", " ")
        for member in cls:
            if member.value.lower() == text:
                return member
        raise ValueError(f"Unknown cancellation status '{value}'")


class ConflictType(str, Enum):
    MISSING_FACULTY = "Missing Faculty"
    RESOURCE_SHORTAGE = "Resource Shortage"
    SEMESTER_HOUR_SHORTAGE = "Semester Hour Shortage"
    SCHEDULING_PERIOD_VIOLATION = "Scheduling Period Violation"


@dataclass(frozen=True)
class StudentGroup:
    """A (semester, branch, section) cohort, the unit of student double-booking."""
    semester: int
    branch: str
    section: Optional[str] = None

    @property
    def key(self) -> str:
        if self.section:
            return f"{self.semester}-{self.branch}-{self.section}"
        return f"{self.semester}-{self.branch}"

    @property
    def exam_key(self) -> str:
        return f"{self.semester}-{self.branch}"

    @classmethod
    def from_key(cls, key: str) -> "StudentGroup":
        parts = [p.strip() for p in str(key).strip().split("-") if p.strip()]
        if len(parts) < 2:
            raise ValueError(f"Invalid student group '{key}'")
        section = parts[2].upper() if len(parts) > 2 else None
        return cls(semester=int(parts[0]), branch=parts[1].upper(), section=section)


@dataclass
class Course:
    """
    A course offering. Hour fields named `*_hours` are semester totals, the
    `weekly_*` ones the cadence per calendar week.
    """
    id: str
    code: str
    name: str
    enrolled_groups: List[StudentGroup]
    student_count: int
    classroom_hours: int
    tutorial_hours: int
    lab_hours: int
    weekly_classroom_hours: float
    weekly_tutorial_hours: float
    weekly_lab_hours: float
    start_date: date
    duration: CourseDuration = CourseDuration.FULL
    basket_id: Optional[str] = None
    requires_hardware_lab: bool = False

    def __post_init__(self):
        self.code = self.code.upper().strip()
        self.basket_id = self.basket_id or None
        if self.lab_hours % 2 or self.weekly_lab_hours % 2:
            raise ValueError(f"Lab hours for {self.code} must be even (2-hour blocks).")

    @property
    def group_keys(self) -> List[str]:
        return [g.key for g in self.enrolled_groups]

    @property
    def is_senior(self) -> bool:
        return any(g.semester > 1 for g in self.enrolled_groups)

    @property
    def is_first_semester(self) -> bool:
        return all(g.semester == 1 for g in self.enrolled_groups)

    @property
    def is_multi_group(self) -> bool:
        return len(self.enrolled_groups) > 1

    @property
    def primary_branch(self) -> Optional[str]:
        return self.enrolled_groups[0].branch if self.enrolled_groups else None

    def enrolls_first_sem_branch(self, branches: Tuple[str, ...]) -> bool:
        return any(g.semester == 1 and g.branch in branches for g in self.enrolled_groups)

    @property
    def section_count(self) -> int:
        return len({g.section for g in self.enrolled_groups if g.section})

    def room_headcount(self, session_type: SessionType) -> int:
        """Students who sit in the room; sectioned labs and tutorials split the cohort."""
        sections = self.section_count
        if sections and session_type in (SessionType.LAB, SessionType.TUTORIAL):
            return math.ceil(self.student_count / sections)
        return self.student_count

    def total_hours(self, session_type: SessionType) -> int:
        return {
            SessionType.CLASSROOM: self.classroom_hours,
            SessionType.TUTORIAL: self.tutorial_hours,
            SessionType.LAB: self.lab_hours,
        }[session_type]

    def weekly_hours(self, session_type: SessionType) -> float:
        return {
            SessionType.CLASSROOM: self.weekly_classroom_hours,
            SessionType.TUTORIAL: self.weekly_tutorial_hours,
            SessionType.LAB: self.weekly_lab_hours,
        }[session_type]


@dataclass
class Faculty:
    id: str
    name: str
    courses: List[str] = field(default_factory=list)


@dataclass
class Room:
    id: str
    name: str
    room_type: RoomType
    capacity: int

    @staticmethod
    def required_type(course: Course, session_type: SessionType) -> RoomType:
        if session_type is SessionType.LAB:
            return RoomType.HARDWARE_LAB if course.requires_hardware_lab else RoomType.SOFTWARE_LAB
        return RoomType.CLASSROOM


@dataclass
class Holiday:
    id: str
    name: str
    start: date
    scope: HolidayScope
    end: Optional[date] = None

    def covers(self, day: date) -> bool:
        return self.start <= day <= (self.end or self.start)

    def applies_to(self, course: Course) -> bool:
        if self.scope is HolidayScope.ONLY_FIRST_SEM:
            return course.is_first_semester
        return not course.is_first_semester


@dataclass
class FacultyLeave:
    id: str
    faculty_id: str
    start: date
    end: Optional[date] = None
    reason: str = ""

    def dates(self) -> List[date]:
        return utils.date_range(self.start, self.end)


@dataclass(frozen=True)
class CancelledClass:
    course_id: str
    session_type: SessionType


@dataclass
class Cancellation:
    id: str
    date: date
    time_slot: str
    reason: str
    status: CancellationStatus
    cancelled_classes: List[CancelledClass] = field(default_factory=list)
    extra_class_id: Optional[str] = None

    @property
    def is_permanent(self) -> bool:
        """A plain "Cancelled" record that names its classes is a permanent removal too."""
        if self.status is CancellationStatus.PERMANENTLY_CANCELLED:
            return True
        return self.status is CancellationStatus.CANCELLED and bool(self.cancelled_classes)


@dataclass
class ExtraClass:
    id: str
    course_id: str
    date: date
    time_slot: str
    room_name: str
    reason: str
    faculty_id: Optional[str] = None
    linked_cancellation_id: Optional[str] = None


@dataclass
class ExamSchedule:
    semester: int
    branch: str
    mid_sem_date: date
    end_sem_date: date

    @property
    def key(self) -> str:
        return f"{self.semester}-{self.branch}"


@dataclass
class Basket:
    id: str
    name: str
    code: str = ""


@dataclass
class SemesterSettings:
    start_date: Optional[date]
    end_date: Optional[date]
    senior_end_date: Optional[date] = None

    @property
    def effective_senior_end(self) -> Optional[date]:
        return self.senior_end_date or self.end_date

    @property
    def planning_end(self) -> Optional[date]:
        """Last day any cohort can be scheduled."""
        ends = [d for d in (self.end_date, self.senior_end_date) if d]
        return max(ends) if ends else None

    def is_valid(self) -> bool:
        if not self.start_date or not self.end_date:
            return False
        return self.start_date <= self.end_date and self.start_date <= self.effective_senior_end


@dataclass
class SchedulerInput:
    """Immutable snapshot of everything a single engine run reads."""
    courses: List[Course]
    faculty: List[Faculty]
    rooms: List[Room]
    semester_settings: SemesterSettings
    holidays: List[Holiday] = field(default_factory=list)
    cancellations: List[Cancellation] = field(default_factory=list)
    faculty_leaves: List[FacultyLeave] = field(default_factory=list)
    extra_classes: List[ExtraClass] = field(default_factory=list)
    baskets: List[Basket] = field(default_factory=list)
    exam_schedules: List[ExamSchedule] = field(default_factory=list)

    def course_map(self) -> Dict[str, Course]:
        return {c.id: c for c in self.courses}


@dataclass(frozen=True)
class TimetableEntry:
    course_id: str
    room_id: str
    session_type: SessionType
    faculty_id: Optional[str] = None

    @property
    def session_key(self) -> Tuple[str, SessionType, str]:
        return (self.course_id, self.session_type, self.room_id)


class Timetable:
    """
    Date-indexed timetable: ISO date -> slot label -> entries.
    Keys are kept in the order they were first written, which the
    materializer guarantees is chronological.
    """

    def __init__(self):
        self.days: Dict[str, Dict[str, List[TimetableEntry]]] = {}

    def add(self, day: utils.DateLike, time_slot: str, entry: TimetableEntry):
        if time_slot not in utils.TIME_SLOTS:
            raise ValueError(f"Unknown time slot '{time_slot}'")
        key = utils.date_key(utils.parse_date(day))
        self.days.setdefault(key, {}).setdefault(time_slot, []).append(entry)

    def entries_at(self, day: utils.DateLike, time_slot: str) -> List[TimetableEntry]:
        key = utils.date_key(utils.parse_date(day))
        return list(self.days.get(key, {}).get(time_slot, []))

    def dates(self) -> List[str]:
        return list(self.days.keys())

    def iter_entries(self) -> Iterator[Tuple[str, str, TimetableEntry]]:
        for day_key, slots in self.days.items():
            for time_slot, entries in slots.items():
                for entry in entries:
                    yield day_key, time_slot, entry

    def entries_for_course(self, course_id: str) -> List[Tuple[str, str, TimetableEntry]]:
        return [item for item in self.iter_entries() if item[2].course_id == course_id]

    def __len__(self) -> int:
        return sum(1 for _ in self.iter_entries())

    def __eq__(self, other) -> bool:
        if not isinstance(other, Timetable):
            return NotImplemented
        return self.days == other.days

    def to_dict(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        return {
            day_key: {
                time_slot: [
                    {
                        "courseId": e.course_id,
                        "facultyId": e.faculty_id,
                        "roomId": e.room_id,
                        "type": e.session_type.value,
                    }
                    for e in entries
                ]
                for time_slot, entries in slots.items()
            }
            for day_key, slots in self.days.items()
        }


@dataclass
class TimetableConflict:
    type: ConflictType
    description: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def course_id(self) -> str:
        return self.details.get("courseId", "")

    @property
    def dedupe_key(self) -> Tuple[str, str, str]:
        return (self.type.value, self.course_id, self.description)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "description": self.description, "details": dict(self.details)}
