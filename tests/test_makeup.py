"""
tests/test_makeup.py

Tests for planning makeup classes out of resolvable conflicts.
"""
from datetime import date

import pytest

from timewise.engine import generate_timetable
from timewise.makeup import (
    first_weekday_on_or_after,
    is_resolvable,
    plan_makeup_classes,
    resolvable_conflicts,
)
from timewise.models import (
    ConflictType,
    CourseDuration,
    ExamSchedule,
    SemesterSettings,
    TimetableConflict,
)


def _shortage(deficit, session_type="Classroom", course_id="C1"):
    return TimetableConflict(
        type=ConflictType.SEMESTER_HOUR_SHORTAGE,
        description=f"Course CS{course_id} is short by {deficit} {session_type.lower()} hour(s) for the semester.",
        details={"courseId": course_id, "deficit": deficit, "type": session_type},
    )


def test_first_weekday_on_or_after():
    assert first_weekday_on_or_after(date(2025, 8, 4), "Wednesday") == date(2025, 8, 6)
    assert first_weekday_on_or_after(date(2025, 8, 6), "Wednesday") == date(2025, 8, 6)
    assert first_weekday_on_or_after(date(2025, 8, 7), "Monday") == date(2025, 8, 11)
    with pytest.raises(ValueError):
        first_weekday_on_or_after(date(2025, 8, 4), "Saturday")


def test_weekly_makeup_covers_the_deficit(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=20, weekly_classroom=3)])
    classes = plan_makeup_classes(_shortage(3), snapshot, "Wednesday", "2025-08-04",
                                  "13:30-14:30", "Room 1", recurrence="weekly")
    assert [c.date for c in classes] == [date(2025, 8, 6), date(2025, 8, 13), date(2025, 8, 20)]
    first = classes[0]
    assert first.id == "makeup-C1-2025-08-06-13:30-14:30"
    assert first.reason == "Conflict Resolution"
    assert first.faculty_id == "F-C1"
    assert first.room_name == "Room 1"


def test_once_makes_a_single_class(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=20, weekly_classroom=3)])
    classes = plan_makeup_classes(_shortage(3), snapshot, "Friday", date(2025, 8, 4), "11:00-12:00", "Room 1")
    assert [c.date for c in classes] == [date(2025, 8, 8)]


def test_lab_makeup_consumes_two_hours_each(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(lab=12, weekly_lab=2)])
    classes = plan_makeup_classes(_shortage(4, "Lab"), snapshot, "Monday", "2025-08-04",
                                  "09:00-10:00", "Lab 1", recurrence="weekly")
    assert len(classes) == 2


def test_lab_makeup_needs_a_lab_start_slot(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(lab=12, weekly_lab=2)])
    with pytest.raises(ValueError):
        plan_makeup_classes(_shortage(4, "Lab"), snapshot, "Monday", "2025-08-04", "11:00-12:00", "Lab 1")


def test_weekly_makeup_stops_at_semester_end(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=40, weekly_classroom=3)])
    classes = plan_makeup_classes(_shortage(10), snapshot, "Thursday", "2025-08-04",
                                  "13:30-14:30", "Room 1", recurrence="weekly")
    assert [c.date for c in classes][-1] == date(2025, 8, 28)
    assert len(classes) == 4


def test_period_violation_makeup_ends_before_mid_sem(make_course, make_snapshot):
    course = make_course(classroom=12, weekly_classroom=3, duration=CourseDuration.HALF_1)
    exams = [ExamSchedule(3, "CSE", date(2025, 8, 18), date(2025, 8, 29))]
    snapshot = make_snapshot([course], exam_schedules=exams)
    conflict = TimetableConflict(
        type=ConflictType.SCHEDULING_PERIOD_VIOLATION,
        description="First-half course CSC1 has 5 hour(s) scheduled after the mid-semester exam date.",
        details={"courseId": "C1", "violationHours": 5},
    )
    classes = plan_makeup_classes(conflict, snapshot, "Monday", "2025-08-04",
                                  "13:30-14:30", "Room 1", recurrence="weekly")
    assert [c.date for c in classes] == [date(2025, 8, 4), date(2025, 8, 11)]


def test_unresolvable_conflicts_are_rejected(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)])
    missing = TimetableConflict(ConflictType.MISSING_FACULTY, "Course CSC1 has no assigned faculty.",
                                {"courseId": "C1"})
    end_sem = TimetableConflict(
        ConflictType.SCHEDULING_PERIOD_VIOLATION,
        "Course CSC1 has 2 hour(s) scheduled after the end-semester exam date.",
        {"courseId": "C1", "violationHours": 2},
    )
    assert not is_resolvable(missing)
    assert not is_resolvable(end_sem)
    assert resolvable_conflicts([missing, end_sem, _shortage(1)]) == [_shortage(1)]
    with pytest.raises(ValueError):
        plan_makeup_classes(missing, snapshot, "Monday", "2025-08-04", "13:30-14:30", "Room 1")


def test_bad_requests_are_rejected(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)])
    with pytest.raises(ValueError):
        plan_makeup_classes(_shortage(1), snapshot, "Monday", "2025-08-04", "13:30-14:30", "Room 1",
                            recurrence="daily")
    with pytest.raises(ValueError):
        plan_makeup_classes(_shortage(1), snapshot, "Monday", "2025-08-04", "12:00-13:00", "Room 1")
    with pytest.raises(ValueError):
        plan_makeup_classes(_shortage(1, course_id="ZZ"), snapshot, "Monday", "2025-08-04",
                            "13:30-14:30", "Room 1")


def test_invalid_semester_gives_no_classes(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)])
    snapshot.semester_settings = SemesterSettings(None, None)
    assert plan_makeup_classes(_shortage(1), snapshot, "Monday", "2025-08-04", "13:30-14:30", "Room 1") == []


def test_makeup_classes_clear_the_shortage(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=14, weekly_classroom=3)])
    result = generate_timetable(snapshot)
    conflict = resolvable_conflicts(result.conflicts)[0]
    assert conflict.details["deficit"] == 2

    snapshot.extra_classes += plan_makeup_classes(conflict, snapshot, "Friday",
                                                  "2025-08-04", "17:00-18:00", "Room 1", recurrence="weekly")
    rerun = generate_timetable(snapshot)
    assert rerun.conflicts == []
    assert rerun.scheduled_hours["C1"].classroom == 14
