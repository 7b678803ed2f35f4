"""
timewise/utils.py
Calendar and slot-grid helpers shared by every scheduling stage.
"""
import math
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, Union

# --- Core Calendar Constants ---
DAYS: List[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

# Lunch runs 12:00-13:30 and the snack break 16:30-17:00, so neither appears here.
TIME_SLOTS: List[str] = [
    "09:00-10:00",
    "10:00-11:00",
    "11:00-12:00",
    "13:30-14:30",
    "14:30-15:30",
    "15:30-16:30",
    "17:00-18:00",
    "18:00-19:00",
]
TOTAL_SLOTS_PER_DAY: int = len(TIME_SLOTS)

MORNING_SLOT: str = TIME_SLOTS[0]
EVENING_SLOT: str = TIME_SLOTS[-1]

# Slots before lunch. Electives are pushed out of these.
EARLY_SLOT_COUNT: int = 3

DateLike = Union[date, datetime, str]


def slot_index(label: str) -> int:
    """Returns the position of a slot label in TIME_SLOTS."""
    try:
        return TIME_SLOTS.index(label)
    except ValueError:
        raise ValueError(f"Unknown time slot '{label}'")


def slot_label(index: int) -> str:
    if index < 0 or index >= TOTAL_SLOTS_PER_DAY:
        raise ValueError(f"Slot index {index} is outside the daily grid")
    return TIME_SLOTS[index]


def slot_bounds(label: str) -> Tuple[str, str]:
    start, end = label.split("-")
    return start.strip(), end.strip()


def is_contiguous(index: int) -> bool:
    """True when slot `index` ends exactly where slot `index + 1` begins."""
    if index + 1 >= TOTAL_SLOTS_PER_DAY:
        return False
    _, end = slot_bounds(TIME_SLOTS[index])
    start, _ = slot_bounds(TIME_SLOTS[index + 1])
    return end == start


def lab_can_start(index: int) -> bool:
    """
    A 2-hour lab needs its second hour in the very next slot with no break
    in between, and may not start in either of the two evening slots.
    """
    if index < 0 or index >= TOTAL_SLOTS_PER_DAY - 2:
        return False
    return is_contiguous(index)


LAB_START_SLOTS: List[int] = [i for i in range(TOTAL_SLOTS_PER_DAY) if lab_can_start(i)]


def parse_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Accepts a date, a datetime or an ISO string ('YYYY-MM-DD', optionally
    followed by a time part) and returns a plain date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    return date.fromisoformat(text[:10])


def date_key(day: date) -> str:
    return day.isoformat()


def week_starts(start: date, end: date) -> List[date]:
    """Mondays of every week overlapping [start, end]."""
    if end < start:
        return []
    monday = start - timedelta(days=start.weekday())
    weeks = []
    while monday <= end:
        weeks.append(monday)
        monday += timedelta(days=7)
    return weeks


def week_days(week_start: date) -> List[date]:
    """The working days (Mon-Fri) of the week beginning on `week_start`."""
    return [week_start + timedelta(days=offset) for offset in range(len(DAYS))]


def date_range(start: date, end: Optional[date] = None) -> List[date]:
    end = end or start
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
