"""
tests/conftest.py

Shared fixtures. The test semester runs four full weeks,
Monday 2025-08-04 to Friday 2025-08-29.
"""
from datetime import date

import pytest

from timewise.models import (
    Course,
    CourseDuration,
    Faculty,
    Room,
    RoomType,
    SchedulerInput,
    SemesterSettings,
    StudentGroup,
)

SEM_START = date(2025, 8, 4)
SEM_END = date(2025, 8, 29)


def _course(cid="C1", groups=("3-CSE",), students=60, classroom=0, weekly_classroom=0,
            tutorial=0, weekly_tutorial=0, lab=0, weekly_lab=0, start=SEM_START,
            duration=CourseDuration.FULL, basket_id=None, hardware=False, code=None):
    return Course(
        id=cid,
        code=code or f"CS{cid}",
        name=f"Course {cid}",
        enrolled_groups=[StudentGroup.from_key(g) for g in groups],
        student_count=students,
        classroom_hours=classroom,
        tutorial_hours=tutorial,
        lab_hours=lab,
        weekly_classroom_hours=weekly_classroom,
        weekly_tutorial_hours=weekly_tutorial,
        weekly_lab_hours=weekly_lab,
        start_date=start,
        duration=duration,
        basket_id=basket_id,
        requires_hardware_lab=hardware,
    )


def default_rooms():
    return [
        Room("R1", "Room 1", RoomType.CLASSROOM, 100),
        Room("R2", "Room 2", RoomType.CLASSROOM, 100),
        Room("L1", "Lab 1", RoomType.SOFTWARE_LAB, 100),
        Room("H1", "Hardware Lab 1", RoomType.HARDWARE_LAB, 100),
    ]


def _snapshot(courses, faculty=None, rooms=None, start=SEM_START, end=SEM_END, senior_end=None, **extra):
    if faculty is None:
        faculty = [Faculty(f"F-{c.id}", f"Dr. {c.id}", [c.id]) for c in courses]
    return SchedulerInput(
        courses=list(courses),
        faculty=faculty,
        rooms=default_rooms() if rooms is None else rooms,
        semester_settings=SemesterSettings(start, end, senior_end),
        **extra,
    )


@pytest.fixture
def make_course():
    """Factory for courses; defaults to a single senior CSE group of 60."""
    return _course


@pytest.fixture
def make_snapshot():
    """Factory for snapshots; one faculty member per course unless given."""
    return _snapshot
