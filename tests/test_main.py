"""
tests/test_main.py

Runs the command-line entry point against a small CSV snapshot.
"""
from openpyxl import load_workbook

import main

from test_data_loader import COURSES, FACULTY, ROOMS, SEMESTER, _write


def test_cli_writes_workbook(tmp_path, capsys):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    _write(data_dir, courses=COURSES, faculty=FACULTY, rooms=ROOMS, semester=SEMESTER)
    out_dir = tmp_path / "out"

    code = main.main(["--data-dir", str(data_dir), "--output-dir", str(out_dir), "--output-file", "tt.xlsx"])
    assert code == 0
    wb = load_workbook(out_dir / "tt.xlsx")
    assert wb.sheetnames[0] == "Week of 2025-08-04"
    assert wb.sheetnames[-1] == "Conflicts"

    out = capsys.readouterr().out
    assert "--- TIMETABLE GENERATION COMPLETE ---" in out
    assert "Validation PASSED" in out


def test_cli_stops_on_missing_required_file(tmp_path, capsys):
    _write(tmp_path, courses=COURSES, semester=SEMESTER)
    code = main.main(["--data-dir", str(tmp_path), "--output-dir", str(tmp_path / "out")])
    assert code == 1
    assert not (tmp_path / "out").exists()
    assert "Fatal Error: Missing required input: rooms.csv" in capsys.readouterr().out
