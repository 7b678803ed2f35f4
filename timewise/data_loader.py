"""
timewise/data_loader.py
Loads a SchedulerInput snapshot from a directory of CSV files.
"""

import os
from typing import Callable, List, Optional

import pandas as pd

from . import utils
from .models import (
    Basket,
    Cancellation,
    CancellationStatus,
    CancelledClass,
    Course,
    CourseDuration,
    ExamSchedule,
    ExtraClass,
    Faculty,
    FacultyLeave,
    Holiday,
    HolidayScope,
    Room,
    RoomType,
    SchedulerInput,
    SemesterSettings,
    SessionType,
    StudentGroup,
)

LIST_SEPARATOR = ";"

REQUIRED_FILES = ("courses.csv", "rooms.csv", "semester.csv")


def _split(cell: str) -> List[str]:
    return [part.strip() for part in str(cell).split(LIST_SEPARATOR) if part.strip()]


def _to_bool(cell: str) -> bool:
    return str(cell).strip().lower() in ("1", "true", "yes", "y")


def _to_float(cell: str) -> float:
    text = str(cell).strip()
    return float(text) if text else 0.0


def _to_int(cell: str) -> int:
    text = str(cell).strip()
    return int(float(text)) if text else 0


def _required_date(row: pd.Series, column: str):
    value = utils.parse_date(row[column])
    if value is None:
        raise ValueError(f"{column} is required")
    return value


class SnapshotLoader:
    """Loads all scheduler input from CSV files in `data_dir`."""

    def __init__(self, data_dir: str = "data"):
        self.data_dir = data_dir
        self.courses: List[Course] = []
        self.faculty: List[Faculty] = []
        self.rooms: List[Room] = []
        self.holidays: List[Holiday] = []
        self.cancellations: List[Cancellation] = []
        self.faculty_leaves: List[FacultyLeave] = []
        self.extra_classes: List[ExtraClass] = []
        self.exam_schedules: List[ExamSchedule] = []
        self.baskets: List[Basket] = []
        self.semester_settings = SemesterSettings(start_date=None, end_date=None)
        self.missing_required: List[str] = []

    def _read(self, filename: str) -> Optional[pd.DataFrame]:
        filepath = os.path.join(self.data_dir, filename)
        if not os.path.exists(filepath):
            if filename in REQUIRED_FILES:
                print(f"Fatal Error: Required file not found at {filepath}")
                self.missing_required.append(filename)
            else:
                print(f"Warning: {filename} not found in {self.data_dir}. Using an empty list.")
            return None
        df = pd.read_csv(filepath, dtype=str, keep_default_na=False, encoding="utf-8-sig")
        df.columns = df.columns.str.strip()
        return df

    def _load_rows(self, filename: str, label: str, build: Callable[[pd.Series], object]) -> list:
        df = self._read(filename)
        if df is None:
            return []
        items = []
        for _, row in df.iterrows():
            try:
                items.append(build(row))
            except (KeyError, ValueError, TypeError) as e:
                print(f"Warning: Skipping invalid {label} row: {dict(row)}. Error: {e}")
        print(f"Successfully loaded {len(items)} {label} record(s).")
        return items

    @staticmethod
    def _course(row: pd.Series) -> Course:
        return Course(
            id=row["id"].strip(),
            code=row.get("code", "").strip() or row["id"].strip(),
            name=row.get("name", "").strip(),
            enrolled_groups=[StudentGroup.from_key(k) for k in _split(row.get("enrolled_groups", ""))],
            student_count=_to_int(row.get("student_count", "0")),
            classroom_hours=_to_int(row.get("classroom_hours", "0")),
            tutorial_hours=_to_int(row.get("tutorial_hours", "0")),
            lab_hours=_to_int(row.get("lab_hours", "0")),
            weekly_classroom_hours=_to_float(row.get("weekly_classroom_hours", "0")),
            weekly_tutorial_hours=_to_float(row.get("weekly_tutorial_hours", "0")),
            weekly_lab_hours=_to_float(row.get("weekly_lab_hours", "0")),
            start_date=_required_date(row, "start_date"),
            duration=CourseDuration.parse(row.get("duration", "")),
            basket_id=row.get("basket_id", "").strip() or None,
            requires_hardware_lab=_to_bool(row.get("requires_hardware_lab", "")),
        )

    @staticmethod
    def _faculty(row: pd.Series) -> Faculty:
        return Faculty(id=row["id"].strip(), name=row.get("name", "").strip(), courses=_split(row.get("courses", "")))

    @staticmethod
    def _room(row: pd.Series) -> Room:
        return Room(
            id=row["id"].strip(),
            name=row.get("name", "").strip() or row["id"].strip(),
            room_type=RoomType.parse(row["type"]),
            capacity=_to_int(row["capacity"]),
        )

    @staticmethod
    def _holiday(row: pd.Series) -> Holiday:
        return Holiday(
            id=row["id"].strip(),
            name=row.get("name", "").strip(),
            start=_required_date(row, "start_date"),
            end=utils.parse_date(row.get("end_date", "")),
            scope=HolidayScope.parse(row.get("scope", "all_except_first_sem")),
        )

    @staticmethod
    def _cancelled_class(token: str) -> CancelledClass:
        course_id, _, session_type = token.partition(":")
        return CancelledClass(course_id=course_id.strip(), session_type=SessionType.parse(session_type))

    @staticmethod
    def _cancellation(row: pd.Series) -> Cancellation:
        return Cancellation(
            id=row["id"].strip(),
            date=_required_date(row, "date"),
            time_slot=row["time_slot"].strip(),
            reason=row.get("reason", "").strip(),
            status=CancellationStatus.parse(row.get("status", "Cancelled")),
            cancelled_classes=[SnapshotLoader._cancelled_class(t) for t in _split(row.get("cancelled_classes", ""))],
            extra_class_id=row.get("extra_class_id", "").strip() or None,
        )

    @staticmethod
    def _faculty_leave(row: pd.Series) -> FacultyLeave:
        return FacultyLeave(
            id=row["id"].strip(),
            faculty_id=row["faculty_id"].strip(),
            start=_required_date(row, "start_date"),
            end=utils.parse_date(row.get("end_date", "")),
            reason=row.get("reason", "").strip(),
        )

    @staticmethod
    def _extra_class(row: pd.Series) -> ExtraClass:
        time_slot = row["time_slot"].strip()
        utils.slot_index(time_slot)
        return ExtraClass(
            id=row["id"].strip(),
            course_id=row["course_id"].strip(),
            date=_required_date(row, "date"),
            time_slot=time_slot,
            room_name=row.get("room_name", "").strip(),
            reason=row.get("reason", "").strip(),
            faculty_id=row.get("faculty_id", "").strip() or None,
            linked_cancellation_id=row.get("linked_cancellation_id", "").strip() or None,
        )

    @staticmethod
    def _exam_schedule(row: pd.Series) -> ExamSchedule:
        return ExamSchedule(
            semester=_to_int(row["semester"]),
            branch=row["branch"].strip().upper(),
            mid_sem_date=_required_date(row, "mid_sem_date"),
            end_sem_date=_required_date(row, "end_sem_date"),
        )

    @staticmethod
    def _basket(row: pd.Series) -> Basket:
        return Basket(id=row["id"].strip(), name=row.get("name", "").strip(), code=row.get("code", "").strip())

    def load_semester(self):
        """semester.csv holds a single row: start_date, end_date, senior_end_date."""
        df = self._read("semester.csv")
        if df is None or df.empty:
            return
        row = df.iloc[0]
        try:
            self.semester_settings = SemesterSettings(
                start_date=utils.parse_date(row.get("start_date", "")),
                end_date=utils.parse_date(row.get("end_date", "")),
                senior_end_date=utils.parse_date(row.get("senior_end_date", "")),
            )
        except ValueError as e:
            print(f"Fatal Error: Could not read semester dates. {e}")

    def load_all_data(self) -> SchedulerInput:
        print(f"\n--- LOADING SNAPSHOT FROM {self.data_dir} ---")
        self.courses = self._load_rows("courses.csv", "course", self._course)
        self.faculty = self._load_rows("faculty.csv", "faculty", self._faculty)
        self.rooms = self._load_rows("rooms.csv", "room", self._room)
        self.holidays = self._load_rows("holidays.csv", "holiday", self._holiday)
        self.cancellations = self._load_rows("cancellations.csv", "cancellation", self._cancellation)
        self.faculty_leaves = self._load_rows("faculty_leaves.csv", "faculty leave", self._faculty_leave)
        self.extra_classes = self._load_rows("extra_classes.csv", "extra class", self._extra_class)
        self.exam_schedules = self._load_rows("exam_schedules.csv", "exam schedule", self._exam_schedule)
        self.baskets = self._load_rows("baskets.csv", "basket", self._basket)
        self.load_semester()
        return self.snapshot()

    def snapshot(self) -> SchedulerInput:
        return SchedulerInput(
            courses=self.courses,
            faculty=self.faculty,
            rooms=self.rooms,
            semester_settings=self.semester_settings,
            holidays=self.holidays,
            cancellations=self.cancellations,
            faculty_leaves=self.faculty_leaves,
            extra_classes=self.extra_classes,
            baskets=self.baskets,
            exam_schedules=self.exam_schedules,
        )


def load_snapshot(data_dir: str) -> SchedulerInput:
    return SnapshotLoader(data_dir).load_all_data()
