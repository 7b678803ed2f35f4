"""
main.py

Command-line entry point for the semester timetable engine.
Loads the snapshot CSVs, generates the timetable, validates it and writes
the workbook.
"""

import argparse
import os

from timewise.data_loader import SnapshotLoader
from timewise.engine import generate_timetable
from timewise.excel_exporter import ExcelExporter
from timewise.validators import validate_all

# --- Configuration ---
DATA_DIR = "data"
OUTPUT_DIR = "output"
TIMETABLE_FILE = "Semester_Timetable.xlsx"


def print_conflicts(conflicts):
    if not conflicts:
        print("\nNo conflicts reported.")
        return
    print(f"\n--- {len(conflicts)} CONFLICT(S) ---")
    for conflict in conflicts:
        print(f"  [{conflict.type.value}] {conflict.description}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate a semester timetable from CSV input.")
    parser.add_argument("--data-dir", default=DATA_DIR)
    parser.add_argument("--output-dir", default=OUTPUT_DIR)
    parser.add_argument("--output-file", default=TIMETABLE_FILE)
    args = parser.parse_args(argv)

    # --- 1. Load Data ---
    loader = SnapshotLoader(args.data_dir)
    snapshot = loader.load_all_data()
    if loader.missing_required:
        print(f"Fatal Error: Missing required input: {', '.join(loader.missing_required)}")
        return 1

    # --- 2. Generate ---
    result = generate_timetable(snapshot, verbose=True)

    # --- 3. Run Validators ---
    validate_all(result, snapshot)

    # --- 4. Export All Results ---
    os.makedirs(args.output_dir, exist_ok=True)
    output_path = os.path.join(args.output_dir, args.output_file)
    ExcelExporter(result.timetable, result.conflicts, snapshot).export_timetable(output_path)

    print_conflicts(result.conflicts)
    print("\n--- Timetable Generation Complete. ---")
    print(f"Output files are in the '{args.output_dir}' directory.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
