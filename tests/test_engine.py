"""
tests/test_engine.py

End-to-end tests of generate_timetable on a four-week semester.
"""
from datetime import date

from timewise.engine import generate_timetable
from timewise.models import (
    Cancellation,
    CancellationStatus,
    CancelledClass,
    ConflictType,
    CourseDuration,
    ExamSchedule,
    ExtraClass,
    Faculty,
    Holiday,
    HolidayScope,
    Room,
    RoomType,
    SemesterSettings,
    SessionType,
)
from timewise.serializers import snapshot_from_dict
from timewise.validators import find_violations


def _written(result, course_id="C1", session_type=None):
    return sum(
        1 for _, _, e in result.timetable.iter_entries()
        if e.course_id == course_id and (session_type is None or e.session_type is session_type)
    )


def test_invalid_semester_yields_empty_result(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)])
    snapshot.semester_settings = SemesterSettings(None, date(2025, 8, 29))
    result = generate_timetable(snapshot)
    assert len(result.timetable) == 0
    assert result.conflicts == []


def test_inverted_semester_yields_empty_result(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)],
                             start=date(2025, 8, 29), end=date(2025, 8, 4))
    assert len(generate_timetable(snapshot).timetable) == 0


def test_course_meets_its_semester_hours(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)])
    result = generate_timetable(snapshot)
    assert _written(result) == 12
    assert result.scheduled_hours["C1"].classroom == 12
    assert result.conflicts == []
    assert find_violations(result, snapshot) == []


def test_generation_is_deterministic(make_course, make_snapshot):
    courses = [
        make_course(cid="A", groups=("3-CSE",), classroom=12, weekly_classroom=3, tutorial=4, weekly_tutorial=1),
        make_course(cid="B", groups=("3-CSE", "3-ECE"), classroom=8, weekly_classroom=2, lab=8, weekly_lab=2),
        make_course(cid="C", groups=("1-CSE",), classroom=12, weekly_classroom=3),
        make_course(cid="D", groups=("1-DSAI",), classroom=12, weekly_classroom=3),
    ]
    first = generate_timetable(make_snapshot(courses))
    second = generate_timetable(make_snapshot(courses))
    assert first.timetable == second.timetable
    assert [c.to_dict() for c in first.conflicts] == [c.to_dict() for c in second.conflicts]


def test_unreachable_total_is_reported_as_shortage(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=20, weekly_classroom=3)])
    result = generate_timetable(snapshot)
    assert _written(result) == 12
    assert [c.description for c in result.conflicts] == [
        "Course CSC1 is short by 8 classroom hour(s) for the semester."
    ]


def test_missing_faculty_reported_first(make_course, make_snapshot):
    orphan = make_course(cid="C1", classroom=12, weekly_classroom=3)
    staffed = make_course(cid="C2", groups=("3-ECE",), classroom=12, weekly_classroom=3)
    snapshot = make_snapshot([orphan, staffed], faculty=[Faculty("F2", "Dr. Two", ["C2"])])
    result = generate_timetable(snapshot)

    assert [c.type for c in result.conflicts] == [
        ConflictType.MISSING_FACULTY,
        ConflictType.SEMESTER_HOUR_SHORTAGE,
    ]
    assert all(c.course_id == "C1" for c in result.conflicts)
    assert _written(result, "C2") == 12


def test_holidays_are_kept_free(make_course, make_snapshot):
    holidays = [Holiday("H1", "Festival", date(2025, 8, 5), HolidayScope.ALL_EXCEPT_FIRST_SEM)]
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)], holidays=holidays)
    result = generate_timetable(snapshot)
    assert "2025-08-05" not in result.timetable.dates()
    assert _written(result) == 12


def test_permanent_cancellation_lowers_target(make_course, make_snapshot):
    cancellation = Cancellation(
        "X1", date(2025, 8, 5), "10:00-11:00", "Faculty away",
        CancellationStatus.PERMANENTLY_CANCELLED, [CancelledClass("C1", SessionType.CLASSROOM)],
    )
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)], cancellations=[cancellation])
    result = generate_timetable(snapshot)
    assert result.targets["C1"].classroom_hours == 11
    assert _written(result) == 11
    assert result.conflicts == []
    assert result.timetable.entries_at("2025-08-05", "10:00-11:00") == []


def test_missing_lab_room_reported_once(make_course, make_snapshot):
    rooms = [Room("R1", "Room 1", RoomType.CLASSROOM, 100)]
    snapshot = make_snapshot([make_course(lab=8, weekly_lab=2)], rooms=rooms)
    result = generate_timetable(snapshot)
    assert [c.type for c in result.conflicts] == [
        ConflictType.RESOURCE_SHORTAGE,
        ConflictType.SEMESTER_HOUR_SHORTAGE,
    ]
    assert result.conflicts[1].details["deficit"] == 8


def test_labs_are_contiguous(make_course, make_snapshot):
    courses = [
        make_course(cid="A", groups=("3-CSE",), lab=8, weekly_lab=2),
        make_course(cid="B", groups=("3-ECE",), lab=8, weekly_lab=2, hardware=True),
        make_course(cid="C", groups=("1-CSE",), lab=8, weekly_lab=2),
    ]
    snapshot = make_snapshot(courses)
    result = generate_timetable(snapshot)
    for course_id in ("A", "B", "C"):
        assert _written(result, course_id, SessionType.LAB) == 8
    assert find_violations(result, snapshot) == []


def test_makeup_class_counts_towards_target(make_course, make_snapshot):
    makeup = ExtraClass("E1", "C1", date(2025, 8, 9), "10:00-11:00", "Room 1", "Conflict Resolution")
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)], extra_classes=[makeup])
    result = generate_timetable(snapshot)
    assert _written(result) == 11
    assert result.scheduled_hours["C1"].classroom == 12
    assert result.conflicts == []
    assert find_violations(result, snapshot) == []


def test_mixed_load_passes_validation(make_course, make_snapshot):
    courses = [
        make_course(cid="A", groups=("3-CSE",), classroom=12, weekly_classroom=3, tutorial=4, weekly_tutorial=1,
                    lab=8, weekly_lab=2),
        make_course(cid="B", groups=("3-CSE",), classroom=8, weekly_classroom=2, basket_id="EL1"),
        make_course(cid="C", groups=("3-CSE",), classroom=8, weekly_classroom=2, basket_id="EL1"),
        make_course(cid="D", groups=("1-CSE", "1-ECE"), classroom=12, weekly_classroom=3),
        make_course(cid="E", groups=("1-ECE",), classroom=8, weekly_classroom=2, lab=8, weekly_lab=2),
    ]
    snapshot = make_snapshot(courses)
    result = generate_timetable(snapshot)
    assert find_violations(result, snapshot) == []


def test_first_semester_holiday_only_frees_first_semester(make_course, make_snapshot):
    courses = [
        make_course(cid="F1", groups=("1-ECE",), classroom=12, weekly_classroom=3),
        make_course(cid="S1", groups=("3-CSE",), classroom=12, weekly_classroom=3),
    ]
    holidays = [Holiday("H1", "Orientation", date(2025, 8, 5), HolidayScope.ONLY_FIRST_SEM)]
    snapshot = make_snapshot(courses, holidays=holidays)
    result = generate_timetable(snapshot)

    on_holiday = {e.course_id for entries in result.timetable.days.get("2025-08-05", {}).values()
                  for e in entries}
    assert "F1" not in on_holiday
    assert "S1" in on_holiday
    assert _written(result, "F1") == 12
    assert _written(result, "S1") == 12
    assert result.conflicts == []


def test_cancelled_record_with_classes_lowers_target():
    snapshot = snapshot_from_dict({
        "courses": [{
            "id": "C1", "code": "CS101", "enrolledGroups": [{"semester": 3, "branch": "CSE"}],
            "studentCount": 60, "classroomHours": 12, "weeklyClassroomHours": 3, "startDate": "2025-08-04",
        }],
        "faculty": [{"id": "F1", "name": "Dr. Rao", "courses": ["C1"]}],
        "rooms": [{"id": "R1", "name": "C-101", "type": "Classroom", "capacity": 80}],
        "semesterSettings": {"startDate": "2025-08-04", "endDate": "2025-08-29"},
        "cancellations": [{
            "id": "X1", "date": "2025-08-05", "timeSlot": "10:00-11:00", "reason": "Faculty away",
            "status": "Cancelled", "cancelledClasses": [{"courseId": "C1", "classType": "Classroom"}],
        }],
    })
    result = generate_timetable(snapshot)
    assert result.targets["C1"].classroom_hours == 11
    assert _written(result) == 11
    assert result.conflicts == []


def test_makeup_class_after_mid_sem_is_flagged(make_course, make_snapshot):
    course = make_course(classroom=6, weekly_classroom=3, duration=CourseDuration.HALF_1)
    makeup = ExtraClass("E1", "C1", date(2025, 8, 19), "17:00-18:00", "Room 1", "Conflict Resolution")
    exams = [ExamSchedule(3, "CSE", date(2025, 8, 18), date(2025, 8, 29))]
    snapshot = make_snapshot([course], extra_classes=[makeup], exam_schedules=exams)
    result = generate_timetable(snapshot)

    assert _written(result) == 5
    assert [c.to_dict() for c in result.conflicts] == [{
        "type": "Scheduling Period Violation",
        "description": "First-half course CSC1 has 1 hour(s) scheduled after the mid-semester exam date.",
        "details": {"courseId": "C1", "violationHours": 1},
    }]
