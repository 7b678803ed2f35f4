"""
timewise/validators.py
Independent post-run checks of a generated timetable.
"""

from typing import Dict, List, Tuple

from . import utils
from .engine import SchedulerResult
from .models import SchedulerInput, SessionType, Timetable
from .targets import apply_makeup_credit


def validate_all(result: SchedulerResult, snapshot: SchedulerInput) -> bool:
    """
    Runs all validation checks and prints a report.
    """
    print("\n--- RUNNING POST-SCHEDULING VALIDATION ---")

    violations = find_violations(result, snapshot)
    if not violations:
        print("Validation PASSED: No double-booking, labs are contiguous and hours are conserved.")
        return True

    print("Validation FAILED:")
    print(f"  Found {len(violations)} problems.")
    for v in violations:
        print(f"    - {v}")
    return False


def find_violations(result: SchedulerResult, snapshot: SchedulerInput) -> List[str]:
    timetable = result.timetable
    problems = []
    problems += _check_slot_labels(timetable)
    problems += _check_double_booking(timetable, snapshot)
    problems += _check_lab_blocks(timetable)
    problems += _check_hour_conservation(result, snapshot)
    return sorted(set(problems))


def _check_slot_labels(timetable: Timetable) -> List[str]:
    conflicts = []
    for day_key, slots in timetable.days.items():
        for time_slot in slots:
            if time_slot not in utils.TIME_SLOTS:
                conflicts.append(f"Unknown Slot: {day_key} uses '{time_slot}'")
    return conflicts


def _check_double_booking(timetable: Timetable, snapshot: SchedulerInput) -> List[str]:
    """
    Faculty, rooms and student groups may each appear once per slot. Groups
    may overlap only when every overlapping course sits in the same basket.
    """
    courses = snapshot.course_map()
    conflicts = []
    for day_key, slots in timetable.days.items():
        for time_slot, entries in slots.items():
            faculty_seen: Dict[str, str] = {}
            rooms_seen: Dict[str, str] = {}
            groups_seen: Dict[str, List[Tuple[str, object]]] = {}

            for entry in entries:
                where = f"{day_key} {time_slot}"
                if entry.faculty_id:
                    if entry.faculty_id in faculty_seen:
                        conflicts.append(f"Faculty Conflict: {entry.faculty_id} at {where}")
                    faculty_seen[entry.faculty_id] = entry.course_id
                if entry.room_id in rooms_seen:
                    conflicts.append(f"Room Conflict: {entry.room_id} at {where}")
                rooms_seen[entry.room_id] = entry.course_id

                course = courses.get(entry.course_id)
                if course is None:
                    conflicts.append(f"Unknown Course: {entry.course_id} at {where}")
                    continue
                for key in course.group_keys:
                    for other_id, other_basket in groups_seen.get(key, []):
                        if course.basket_id is None or course.basket_id != other_basket:
                            conflicts.append(f"Student Conflict: {key} has {other_id} and {course.id} at {where}")
                    groups_seen.setdefault(key, []).append((course.id, course.basket_id))
    return conflicts


def _check_lab_blocks(timetable: Timetable) -> List[str]:
    """Every lab occupies exactly two contiguous slots starting at a legal lab slot."""
    conflicts = []
    for day_key, slots in timetable.days.items():
        lab_slots: Dict[tuple, List[int]] = {}
        for time_slot, entries in slots.items():
            if time_slot not in utils.TIME_SLOTS:
                continue
            for entry in entries:
                if entry.session_type is SessionType.LAB:
                    lab_slots.setdefault(entry.session_key, []).append(utils.slot_index(time_slot))

        for (course_id, _, room_id), indices in lab_slots.items():
            indices.sort()
            if len(indices) % 2:
                conflicts.append(f"Broken Lab: {course_id} in {room_id} on {day_key} has an unpaired hour")
                continue
            for start, second in zip(indices[::2], indices[1::2]):
                if second != start + 1 or not utils.lab_can_start(start):
                    conflicts.append(
                        f"Broken Lab: {course_id} in {room_id} on {day_key} at {utils.TIME_SLOTS[start]}"
                    )
    return conflicts


def _timetable_hours(timetable: Timetable) -> Dict[Tuple[str, SessionType], int]:
    hours: Dict[Tuple[str, SessionType], int] = {}
    for _, _, entry in timetable.iter_entries():
        key = (entry.course_id, entry.session_type)
        hours[key] = hours.get(key, 0) + 1
    return hours


def _check_hour_conservation(result: SchedulerResult, snapshot: SchedulerInput) -> List[str]:
    """
    Written hours plus makeup credit must equal the reported tally, and the
    tally may never pass the adjusted target.
    """
    if not result.targets:
        return []
    conflicts = []
    written = _timetable_hours(result.timetable)
    credit = apply_makeup_credit(snapshot.courses, snapshot.extra_classes, result.targets)

    for course in snapshot.courses:
        target = result.targets[course.id]
        tally = result.scheduled_hours.get(course.id)
        if tally is None:
            continue
        for session_type in (SessionType.CLASSROOM, SessionType.TUTORIAL, SessionType.LAB):
            expected = written.get((course.id, session_type), 0) + credit.scheduled(course.id, session_type)
            reported = tally.get(session_type)
            if expected != reported:
                conflicts.append(
                    f"Hour Mismatch: {course.code} {session_type.value} has {expected} hours written, "
                    f"{reported} reported"
                )
            if reported > target.total(session_type):
                conflicts.append(
                    f"Over Target: {course.code} {session_type.value} has {reported} of "
                    f"{target.total(session_type)} hours"
                )
    return conflicts
