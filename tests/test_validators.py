"""
tests/test_validators.py
"""
from timewise.engine import SchedulerResult, generate_timetable
from timewise.models import SessionType, Timetable, TimetableEntry
from timewise.validators import find_violations, validate_all


def _entry(course_id, faculty_id, room_id, session_type=SessionType.CLASSROOM):
    return TimetableEntry(course_id=course_id, room_id=room_id, session_type=session_type, faculty_id=faculty_id)


def test_generated_timetable_passes(make_course, make_snapshot, capsys):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3, lab=8, weekly_lab=2)])
    result = generate_timetable(snapshot)
    assert validate_all(result, snapshot)
    assert "Validation PASSED" in capsys.readouterr().out


def test_faculty_and_room_double_booking(make_course, make_snapshot, capsys):
    a = make_course(cid="A", groups=("3-CSE",))
    b = make_course(cid="B", groups=("3-ECE",))
    snapshot = make_snapshot([a, b])
    timetable = Timetable()
    timetable.add("2025-08-05", "09:00-10:00", _entry("A", "F1", "R1"))
    timetable.add("2025-08-05", "09:00-10:00", _entry("B", "F1", "R1"))

    result = SchedulerResult(timetable=timetable, conflicts=[])
    assert find_violations(result, snapshot) == [
        "Faculty Conflict: F1 at 2025-08-05 09:00-10:00",
        "Room Conflict: R1 at 2025-08-05 09:00-10:00",
    ]
    assert not validate_all(result, snapshot)
    assert "Validation FAILED" in capsys.readouterr().out


def test_student_overlap_allowed_only_within_basket(make_course, make_snapshot):
    a = make_course(cid="A", groups=("5-CSE",), basket_id="B1")
    b = make_course(cid="B", groups=("5-CSE",), basket_id="B1")
    c = make_course(cid="C", groups=("5-CSE",))
    snapshot = make_snapshot([a, b, c])

    timetable = Timetable()
    timetable.add("2025-08-05", "13:30-14:30", _entry("A", "F-A", "R1"))
    timetable.add("2025-08-05", "13:30-14:30", _entry("B", "F-B", "R2"))
    assert find_violations(SchedulerResult(timetable, []), snapshot) == []

    timetable.add("2025-08-05", "13:30-14:30", _entry("C", "F-C", "R3"))
    assert find_violations(SchedulerResult(timetable, []), snapshot) == [
        "Student Conflict: 5-CSE has A and C at 2025-08-05 13:30-14:30",
        "Student Conflict: 5-CSE has B and C at 2025-08-05 13:30-14:30",
    ]


def test_broken_labs(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(cid="A", lab=8, weekly_lab=2)])
    timetable = Timetable()
    timetable.add("2025-08-05", "11:00-12:00", _entry("A", "F-A", "L1", SessionType.LAB))
    timetable.add("2025-08-05", "13:30-14:30", _entry("A", "F-A", "L1", SessionType.LAB))
    timetable.add("2025-08-06", "09:00-10:00", _entry("A", "F-A", "L1", SessionType.LAB))

    assert find_violations(SchedulerResult(timetable, []), snapshot) == [
        "Broken Lab: A in L1 on 2025-08-05 at 11:00-12:00",
        "Broken Lab: A in L1 on 2025-08-06 has an unpaired hour",
    ]


def test_unknown_course(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(cid="A")])
    timetable = Timetable()
    timetable.add("2025-08-05", "09:00-10:00", _entry("Z", "F1", "R1"))
    assert find_violations(SchedulerResult(timetable, []), snapshot) == [
        "Unknown Course: Z at 2025-08-05 09:00-10:00"
    ]


def test_tally_must_match_written_hours(make_course, make_snapshot):
    snapshot = make_snapshot([make_course(classroom=12, weekly_classroom=3)])
    result = generate_timetable(snapshot)
    result.scheduled_hours["C1"].classroom += 1
    assert find_violations(result, snapshot) == [
        "Hour Mismatch: CSC1 Classroom has 12 hours written, 13 reported",
        "Over Target: CSC1 Classroom has 13 of 12 hours",
    ]
