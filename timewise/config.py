"""Scheduling rules and scoring weights for the timetable engine."""
from dataclasses import dataclass

# Branch order used to break priority ties between sessions (lower runs first).
BRANCH_PRIORITY = {"CSE": 1, "DSAI": 2, "ECE": 3}
UNKNOWN_BRANCH_PRIORITY = len(BRANCH_PRIORITY) + 1

# ExtraClass.reason that marks an admin-placed makeup class.
MAKEUP_REASON = "Conflict Resolution"

# A faculty member may teach at most this many contiguous slots.
MAX_CONSECUTIVE_FACULTY_HOURS = 2

# First-semester cohorts kept out of 09:00 and given the 18:00 slot instead.
EVENING_COHORT_BRANCHES = ("DSAI", "ECE")

# First-semester cohort given priority access to 09:00.
MORNING_COHORT_BRANCH = "CSE"

# After the mid-semester exams, first-semester courses with more groups than
# this stay out of the 09:00 slot.
MAX_MORNING_GROUPS_AFTER_MIDSEM = 2

# Weekday numbers (Monday == 0) that carry the edge-of-week penalty.
EDGE_WEEKDAYS = (0, 4)


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weight vector of the slot scoring function. Every candidate starts at
    `base` and the remaining weights are added whenever their condition holds.
    """
    base: int = 100
    group_daily_load: int = -20
    faculty_daily_load: int = -5
    edge_weekday: int = -5
    adjacent_group: int = 30
    basket_early_slot: int = -50
    basket_late_slot: int = 30
    first_sem_holiday: int = 500
    first_sem_cse_morning_lab: int = 20


DEFAULT_WEIGHTS = ScoringWeights()
