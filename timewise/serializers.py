"""
timewise/serializers.py
JSON wire format (camelCase keys, ISO dates) used by the web API.
"""

from typing import Any, Dict, List

from . import utils
from .models import (
    Basket,
    Cancellation,
    CancellationStatus,
    CancelledClass,
    ConflictType,
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
    Timetable,
    TimetableConflict,
)


def _date_range(data: Dict[str, Any], start_key: str, end_key: str):
    """Accepts either flat start/end keys or a {'from', 'to'} dateRange object."""
    if "dateRange" in data:
        span = data["dateRange"] or {}
        return utils.parse_date(span.get("from")), utils.parse_date(span.get("to"))
    return utils.parse_date(data.get(start_key)), utils.parse_date(data.get(end_key))


def _required_date(data: Dict[str, Any], key: str):
    value = utils.parse_date(data.get(key))
    if value is None:
        raise ValueError(f"{key} is required")
    return value


def group_from_dict(data) -> StudentGroup:
    if isinstance(data, str):
        return StudentGroup.from_key(data)
    return StudentGroup(
        semester=int(data["semester"]),
        branch=str(data["branch"]).upper(),
        section=data.get("section") or None,
    )


def course_from_dict(data: Dict[str, Any]) -> Course:
    return Course(
        id=str(data["id"]),
        code=str(data.get("code", data["id"])),
        name=str(data.get("name", "")),
        enrolled_groups=[group_from_dict(g) for g in data.get("enrolledGroups", [])],
        student_count=int(data.get("studentCount", 0)),
        classroom_hours=int(data.get("classroomHours", 0)),
        tutorial_hours=int(data.get("tutorialHours", 0)),
        lab_hours=int(data.get("labHours", 0)),
        weekly_classroom_hours=float(data.get("weeklyClassroomHours", 0)),
        weekly_tutorial_hours=float(data.get("weeklyTutorialHours", 0)),
        weekly_lab_hours=float(data.get("weeklyLabHours", 0)),
        start_date=_required_date(data, "startDate"),
        duration=CourseDuration.parse(data.get("duration") or ""),
        basket_id=data.get("basketId") or None,
        requires_hardware_lab=bool(data.get("requiresHardwareLab", False)),
    )


def cancellation_from_dict(data: Dict[str, Any]) -> Cancellation:
    cancelled = [
        CancelledClass(
            course_id=str(c["courseId"]),
            session_type=SessionType.parse(c.get("classType") or c.get("type")),
        )
        for c in data.get("cancelledClasses") or []
    ]
    return Cancellation(
        id=str(data["id"]),
        date=_required_date(data, "date"),
        time_slot=str(data.get("timeSlot", "")),
        reason=str(data.get("reason", "")),
        status=CancellationStatus.parse(data.get("status", "Cancelled")),
        cancelled_classes=cancelled,
        extra_class_id=data.get("extraClassId") or None,
    )


def extra_class_from_dict(data: Dict[str, Any]) -> ExtraClass:
    return ExtraClass(
        id=str(data["id"]),
        course_id=str(data["courseId"]),
        date=_required_date(data, "date"),
        time_slot=str(data["timeSlot"]),
        room_name=str(data.get("roomName", "")),
        reason=str(data.get("reason", "")),
        faculty_id=data.get("facultyId") or None,
        linked_cancellation_id=data.get("linkedCancellationId") or None,
    )


def snapshot_from_dict(data: Dict[str, Any]) -> SchedulerInput:
    """
    Builds a SchedulerInput from the JSON payload. Raises KeyError or
    ValueError on malformed records.
    """
    settings = data.get("semesterSettings") or {}
    holidays = []
    for h in data.get("holidays", []):
        start, end = _date_range(h, "date", "endDate")
        if start is None:
            raise ValueError(f"Holiday {h.get('id')} has no date")
        holidays.append(Holiday(
            id=str(h["id"]), name=str(h.get("name", "")), start=start,
            scope=HolidayScope.parse(h.get("scope", "all_except_first_sem")), end=end,
        ))
    leaves = []
    for leave in data.get("facultyLeaves", []):
        start, end = _date_range(leave, "startDate", "endDate")
        if start is None:
            raise ValueError(f"Faculty leave {leave.get('id')} has no start date")
        leaves.append(FacultyLeave(
            id=str(leave["id"]), faculty_id=str(leave["facultyId"]),
            start=start, end=end, reason=str(leave.get("reason", "")),
        ))

    return SchedulerInput(
        courses=[course_from_dict(c) for c in data.get("courses", [])],
        faculty=[
            Faculty(id=str(f["id"]), name=str(f.get("name", "")), courses=[str(c) for c in f.get("courses", [])])
            for f in data.get("faculty", [])
        ],
        rooms=[
            Room(id=str(r["id"]), name=str(r.get("name", r["id"])),
                 room_type=RoomType.parse(r["type"]), capacity=int(r["capacity"]))
            for r in data.get("rooms", [])
        ],
        semester_settings=SemesterSettings(
            start_date=utils.parse_date(settings.get("startDate")),
            end_date=utils.parse_date(settings.get("endDate")),
            senior_end_date=utils.parse_date(settings.get("seniorEndDate")),
        ),
        holidays=holidays,
        cancellations=[cancellation_from_dict(c) for c in data.get("cancellations", [])],
        faculty_leaves=leaves,
        extra_classes=[extra_class_from_dict(e) for e in data.get("extraClasses", [])],
        baskets=[
            Basket(id=str(b["id"]), name=str(b.get("name", "")), code=str(b.get("code", "")))
            for b in data.get("baskets", [])
        ],
        exam_schedules=[
            ExamSchedule(
                semester=int(e["semester"]), branch=str(e["branch"]).upper(),
                mid_sem_date=_required_date(e, "midSemDate"),
                end_sem_date=_required_date(e, "endSemDate"),
            )
            for e in data.get("examSchedules", [])
        ],
    )


def timetable_to_dict(timetable: Timetable) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    return timetable.to_dict()


def conflicts_to_list(conflicts: List[TimetableConflict]) -> List[Dict[str, Any]]:
    return [c.to_dict() for c in conflicts]


def conflict_from_dict(data: Dict[str, Any]) -> TimetableConflict:
    return TimetableConflict(
        type=ConflictType(data["type"]),
        description=str(data.get("description", "")),
        details=dict(data.get("details") or {}),
    )


def extra_classes_to_list(extra_classes: List[ExtraClass]) -> List[Dict[str, Any]]:
    return [
        {
            "id": e.id,
            "courseId": e.course_id,
            "facultyId": e.faculty_id,
            "date": utils.date_key(e.date),
            "timeSlot": e.time_slot,
            "roomName": e.room_name,
            "reason": e.reason,
            "linkedCancellationId": e.linked_cancellation_id,
        }
        for e in extra_classes
    ]
