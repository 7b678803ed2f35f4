"""
timewise/engine.py
Runs the four scheduling stages for one snapshot:
target adjustment -> weekly planning -> materialization -> audit.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from . import utils
from .auditor import ConflictLog, audit_timetable
from .config import ScoringWeights
from .constraints import PlanningContext
from .materializer import materialize_week
from .models import SchedulerInput, Timetable, TimetableConflict
from .planner import plan_week
from .targets import AdjustedTarget, ScheduledHours, build_targets


@dataclass
class SchedulerResult:
    timetable: Timetable
    conflicts: List[TimetableConflict]
    targets: Dict[str, AdjustedTarget] = field(default_factory=dict)
    scheduled_hours: Dict[str, ScheduledHours] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "SchedulerResult":
        return cls(timetable=Timetable(), conflicts=[])


def generate_timetable(snapshot: SchedulerInput, weights: Optional[ScoringWeights] = None,
                       verbose: bool = False) -> SchedulerResult:
    """
    Builds the semester timetable for `snapshot`. Never raises for
    unsatisfiable requirements: anything that could not be met is reported
    in `conflicts`. An unusable semester window yields an empty result.
    """
    settings = snapshot.semester_settings
    if not settings.is_valid():
        if verbose:
            print("Warning: Semester start/end dates are missing or inverted. Nothing to schedule.")
        return SchedulerResult.empty()

    if verbose:
        print(f"\n--- GENERATING TIMETABLE {settings.start_date} -> {settings.planning_end} ---")

    courses = snapshot.courses
    targets, tally = build_targets(courses, snapshot.cancellations, snapshot.extra_classes)
    ctx = PlanningContext.build(snapshot, weights)
    conflicts = ConflictLog()
    timetable = Timetable()

    weeks = utils.week_starts(settings.start_date, settings.planning_end)
    deferred = 0
    for week_start in weeks:
        plan = plan_week(ctx, week_start, courses, targets, tally, conflicts)
        materialize_week(plan.tracker, targets, tally, timetable)
        deferred += len(plan.deferred)

    audit_timetable(timetable, courses, snapshot.exam_schedules, targets, tally, conflicts,
                    extra_classes=snapshot.extra_classes)

    if verbose:
        print(f"  Planned {len(weeks)} week(s), {len(timetable)} slot entries, "
              f"{deferred} deferred session(s).")
        if len(conflicts):
            print(f"  Warning: {len(conflicts)} conflict(s) need attention.")
        print("--- TIMETABLE GENERATION COMPLETE ---")

    return SchedulerResult(
        timetable=timetable,
        conflicts=conflicts.to_list(),
        targets=targets,
        scheduled_hours=dict(tally.hours),
    )
