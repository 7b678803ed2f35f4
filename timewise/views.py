"""
timewise/views.py
Per-group, per-faculty and per-room slices of a timetable, and the daily
agenda rows shown on the dashboards (extra and makeup classes included).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from . import utils
from .config import MAKEUP_REASON
from .models import Course, SchedulerInput, StudentGroup, Timetable, TimetableEntry


def filter_timetable(timetable: Timetable, keep: Callable[[TimetableEntry], bool]) -> Timetable:
    """A new timetable holding only the entries `keep` accepts, in the same order."""
    filtered = Timetable()
    for day_key, time_slot, entry in timetable.iter_entries():
        if keep(entry):
            filtered.add(day_key, time_slot, entry)
    return filtered


def course_matches_group(course: Course, group: StudentGroup) -> bool:
    """
    True if `course` is taken by `group`. A group without a section matches
    every section of its semester and branch; a course group without a
    section is common to all sections.
    """
    for g in course.enrolled_groups:
        if g.semester != group.semester or g.branch != group.branch:
            continue
        if not group.section or not g.section or g.section == group.section:
            return True
    return False


def group_view(timetable: Timetable, snapshot: SchedulerInput, group_key: str) -> Timetable:
    group = StudentGroup.from_key(group_key)
    courses = snapshot.course_map()
    return filter_timetable(
        timetable,
        lambda e: e.course_id in courses and course_matches_group(courses[e.course_id], group),
    )


def faculty_view(timetable: Timetable, faculty_id: str) -> Timetable:
    return filter_timetable(timetable, lambda e: e.faculty_id == faculty_id)


def room_view(timetable: Timetable, room_id: str) -> Timetable:
    return filter_timetable(timetable, lambda e: e.room_id == room_id)


@dataclass
class ViewEntry:
    """One row of a day agenda."""
    date: date
    time: str
    course_id: str
    course_name: str
    kind: str
    room_name: str
    faculty_id: Optional[str] = None
    groups: List[str] = field(default_factory=list)
    is_extra: bool = False

    def to_dict(self):
        return {
            "date": utils.date_key(self.date),
            "time": self.time,
            "courseId": self.course_id,
            "courseName": self.course_name,
            "type": self.kind,
            "roomName": self.room_name,
            "facultyId": self.faculty_id,
            "enrolledGroups": list(self.groups),
            "isExtra": self.is_extra,
        }


def _slot_start(time: str) -> int:
    start, _ = utils.slot_bounds(time)
    for i, label in enumerate(utils.TIME_SLOTS):
        if label.startswith(start):
            return i
    return utils.TOTAL_SLOTS_PER_DAY


def day_agenda(timetable: Timetable, snapshot: SchedulerInput, day: utils.DateLike,
               extra_filter: Callable = None) -> List[ViewEntry]:
    """
    Agenda rows for one date of `timetable`. Labs become a single row spanning
    both slots. Extra classes on that date are merged in, filtered by
    `extra_filter` when given, and the rows are sorted by start time.
    """
    day = utils.parse_date(day)
    courses = snapshot.course_map()
    rooms = {r.id: r for r in snapshot.rooms}
    rows: List[ViewEntry] = []

    seen_labs = set()
    for index, time_slot in enumerate(utils.TIME_SLOTS):
        for entry in timetable.entries_at(day, time_slot):
            course = courses.get(entry.course_id)
            time = time_slot
            if entry.session_type.hours > 1:
                if entry.session_key in seen_labs:
                    continue
                seen_labs.add(entry.session_key)
                last = utils.TIME_SLOTS[min(index + entry.session_type.hours - 1, utils.TOTAL_SLOTS_PER_DAY - 1)]
                time = f"{utils.slot_bounds(time_slot)[0]}-{utils.slot_bounds(last)[1]}"
            room = rooms.get(entry.room_id)
            rows.append(ViewEntry(
                date=day,
                time=time,
                course_id=entry.course_id,
                course_name=course.name if course else "Unknown Course",
                kind=entry.session_type.value,
                room_name=room.name if room else "N/A",
                faculty_id=entry.faculty_id,
                groups=course.group_keys if course else [],
            ))

    for extra in snapshot.extra_classes:
        if extra.date != day or (extra_filter and not extra_filter(extra)):
            continue
        course = courses.get(extra.course_id)
        rows.append(ViewEntry(
            date=day,
            time=extra.time_slot,
            course_id=extra.course_id,
            course_name=course.name if course else "Unknown Course",
            kind="Makeup Class" if extra.reason == MAKEUP_REASON else "Extra Class",
            room_name=extra.room_name,
            faculty_id=extra.faculty_id,
            groups=course.group_keys if course else [],
            is_extra=True,
        ))

    rows.sort(key=lambda r: _slot_start(r.time))
    return rows


def faculty_agenda(timetable: Timetable, snapshot: SchedulerInput, faculty_id: str,
                   day: utils.DateLike) -> List[ViewEntry]:
    return day_agenda(
        faculty_view(timetable, faculty_id), snapshot, day,
        extra_filter=lambda ec: ec.faculty_id == faculty_id,
    )


def group_agenda(timetable: Timetable, snapshot: SchedulerInput, group_key: str,
                 day: utils.DateLike) -> List[ViewEntry]:
    group = StudentGroup.from_key(group_key)
    courses = snapshot.course_map()
    return day_agenda(
        group_view(timetable, snapshot, group_key), snapshot, day,
        extra_filter=lambda ec: ec.course_id in courses and course_matches_group(courses[ec.course_id], group),
    )


def free_slots(timetable: Timetable, snapshot: SchedulerInput, group_key: str,
               day: utils.DateLike) -> List[str]:
    """Slot labels on `day` where `group_key` has neither a class nor an extra class."""
    busy = {row.time for row in group_agenda(timetable, snapshot, group_key, day)}
    busy_indices = set()
    for time in busy:
        start = _slot_start(time)
        end = utils.slot_bounds(time)[1]
        for i in range(start, utils.TOTAL_SLOTS_PER_DAY):
            busy_indices.add(i)
            if utils.TIME_SLOTS[i].endswith(end):
                break
    return [label for i, label in enumerate(utils.TIME_SLOTS) if i not in busy_indices]
