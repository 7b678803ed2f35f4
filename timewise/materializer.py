"""
timewise/materializer.py
Writes a planned week into the semester timetable, capping every course at
its adjusted target.
"""

from typing import Dict

from . import utils
from .targets import AdjustedTarget, HoursTally
from .models import Timetable
from .tracking import WeekTracker


def materialize_week(tracker: WeekTracker, targets: Dict[str, AdjustedTarget],
                     tally: HoursTally, timetable: Timetable) -> int:
    """
    Admits the week's placements day by day, slot by slot. A placement is
    written only while its course is still below target for that session
    type; labs fill both of their slots. Returns the number of admitted
    placements.
    """
    starts = tracker.placements_by_start()
    admitted = 0
    for day_index, day in enumerate(tracker.days):
        for slot_index in range(utils.TOTAL_SLOTS_PER_DAY):
            for placement in starts.get((day_index, slot_index), []):
                entry = placement.entry
                target = targets[entry.course_id]
                if not tally.is_short(entry.course_id, entry.session_type, target):
                    continue
                for offset in range(placement.duration):
                    timetable.add(day, utils.slot_label(slot_index + offset), entry)
                tally.add(entry.course_id, entry.session_type)
                admitted += 1
    return admitted
