"""
timewise/excel_exporter.py
Writes a generated timetable and its conflicts to an .xlsx workbook.
"""

import io
import re
import zlib
from datetime import date
from typing import Dict, List, Optional, Union

from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from . import utils
from .models import SchedulerInput, SessionType, Timetable, TimetableConflict, TimetableEntry

# --- Styling Constants ---
HEADER_FILL = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
DAY_FILL = PatternFill(start_color="DCE6F1", end_color="DCE6F1", fill_type="solid")
DAY_FONT = Font(bold=True, size=11)
CENTER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)
THIN_BORDER_SIDE = Side(style="thin", color="BFBFBF")
THIN_BORDER = Border(left=THIN_BORDER_SIDE, right=THIN_BORDER_SIDE, top=THIN_BORDER_SIDE, bottom=THIN_BORDER_SIDE)
SHARED_FILL = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")

CONFLICT_HEADERS = ["Type", "Course", "Description", "Details"]


def course_color(course_id: str) -> str:
    """Stable pastel RGB hex for a course id."""
    digest = zlib.crc32(course_id.encode("utf-8"))
    r = 180 + (digest & 0xFF) % 61
    g = 180 + ((digest >> 8) & 0xFF) % 61
    b = 180 + ((digest >> 16) & 0xFF) % 61
    return f"{r:02X}{g:02X}{b:02X}"


def safe_sheet_title(title: str) -> str:
    return re.sub(r'[\\/*?:\[\]]', '', title)[:31]


class ExcelExporter:
    def __init__(self, timetable: Timetable, conflicts: List[TimetableConflict],
                 snapshot: Optional[SchedulerInput] = None):
        self.timetable = timetable
        self.conflicts = conflicts
        self.snapshot = snapshot
        self.course_codes: Dict[str, str] = {}
        self.room_names: Dict[str, str] = {}
        self.faculty_names: Dict[str, str] = {}
        if snapshot is not None:
            self.course_codes = {c.id: c.code for c in snapshot.courses}
            self.room_names = {r.id: r.name for r in snapshot.rooms}
            self.faculty_names = {f.id: f.name for f in snapshot.faculty}
        self.course_color_map = {
            entry.course_id: course_color(entry.course_id)
            for _, _, entry in timetable.iter_entries()
        }
        print("\nInitializing Excel Exporter...")

    def _format_entry(self, entry: TimetableEntry) -> str:
        code = self.course_codes.get(entry.course_id, entry.course_id)
        room = self.room_names.get(entry.room_id, entry.room_id)
        lines = [f"{code} ({entry.session_type.value})", room]
        if entry.faculty_id:
            lines.append(self.faculty_names.get(entry.faculty_id, entry.faculty_id))
        return "\n".join(lines)

    def _format_cell_content(self, entries: List[TimetableEntry]) -> str:
        return "\n\n".join(self._format_entry(e) for e in entries)

    def _week_starts(self) -> List[date]:
        days = [utils.parse_date(d) for d in self.timetable.dates()]
        if not days:
            return []
        return utils.week_starts(min(days), max(days))

    def _is_lab_block(self, day: date, slot_index: int) -> bool:
        """True when every entry at `slot_index` is a lab continuing into the next slot."""
        if not utils.lab_can_start(slot_index):
            return False
        entries = self.timetable.entries_at(day, utils.TIME_SLOTS[slot_index])
        following = self.timetable.entries_at(day, utils.TIME_SLOTS[slot_index + 1])
        return bool(entries) and entries == following and all(e.session_type is SessionType.LAB for e in entries)

    def _style_and_fill_week(self, ws: Worksheet, week_start: date):
        ws.cell(row=1, column=1, value="Day / Time").fill = HEADER_FILL
        ws.cell(row=1, column=1).font = HEADER_FONT
        ws.column_dimensions['A'].width = 18

        for c, time_str in enumerate(utils.TIME_SLOTS, start=2):
            cell = ws.cell(row=1, column=c, value=time_str)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.alignment = CENTER_ALIGN
            ws.column_dimensions[get_column_letter(c)].width = 22

        for day_idx, day in enumerate(utils.week_days(week_start)):
            row_idx = day_idx + 2
            cell = ws.cell(row=row_idx, column=1, value=f"{utils.DAYS[day_idx]}\n{utils.date_key(day)}")
            cell.fill = DAY_FILL
            cell.font = DAY_FONT
            cell.alignment = CENTER_ALIGN
            ws.row_dimensions[row_idx].height = 90

            slot_index = 0
            while slot_index < utils.TOTAL_SLOTS_PER_DAY:
                col_idx = slot_index + 2
                entries = self.timetable.entries_at(day, utils.TIME_SLOTS[slot_index])
                if not entries:
                    ws.cell(row=row_idx, column=col_idx).border = THIN_BORDER
                    slot_index += 1
                    continue

                duration = 2 if self._is_lab_block(day, slot_index) else 1
                if duration > 1:
                    ws.merge_cells(
                        start_row=row_idx, start_column=col_idx,
                        end_row=row_idx, end_column=col_idx + duration - 1
                    )

                cell = ws.cell(row=row_idx, column=col_idx)
                cell.value = self._format_cell_content(entries)
                cell.alignment = CENTER_ALIGN
                course_ids = {e.course_id for e in entries}
                if len(course_ids) == 1:
                    color = self.course_color_map[entries[0].course_id]
                    cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
                else:
                    cell.fill = SHARED_FILL

                for c in range(col_idx, col_idx + duration):
                    ws.cell(row=row_idx, column=c).border = THIN_BORDER
                slot_index += duration

    def _fill_conflicts(self, ws: Worksheet):
        for c, header in enumerate(CONFLICT_HEADERS, start=1):
            cell = ws.cell(row=1, column=c, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
        ws.column_dimensions['A'].width = 28
        ws.column_dimensions['B'].width = 14
        ws.column_dimensions['C'].width = 80
        ws.column_dimensions['D'].width = 40

        for r, conflict in enumerate(self.conflicts, start=2):
            extra = {k: v for k, v in conflict.details.items() if k != "courseId"}
            ws.cell(row=r, column=1, value=conflict.type.value)
            ws.cell(row=r, column=2, value=self.course_codes.get(conflict.course_id, conflict.course_id))
            ws.cell(row=r, column=3, value=conflict.description)
            ws.cell(row=r, column=4, value=", ".join(f"{k}={v}" for k, v in extra.items()))

    def build_workbook(self) -> Workbook:
        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        weeks = self._week_starts()
        if not weeks:
            wb.create_sheet(title="No Classes Scheduled")
        for week_start in weeks:
            ws = wb.create_sheet(title=safe_sheet_title(f"Week of {utils.date_key(week_start)}"))
            self._style_and_fill_week(ws, week_start)

        self._fill_conflicts(wb.create_sheet(title="Conflicts"))
        return wb

    def export_timetable(self, filepath: Union[str, io.BytesIO]) -> bool:
        print(f"Exporting timetable to {filepath}...")
        wb = self.build_workbook()
        try:
            wb.save(filepath)
            print(f"Successfully saved timetable to {filepath}")
            return True
        except PermissionError:
            print(f"Fatal Error: Could not save to {filepath}. Is the file open in Excel?")
        except OSError as e:
            print(f"Fatal Error: Could not save timetable. {e}")
        return False
