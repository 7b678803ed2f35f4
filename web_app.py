"""
JSON web API for the semester timetable engine.

Run: python web_app.py
Visit: http://localhost:5000
"""

import io
from typing import Optional

from flask import Flask, jsonify, request, send_file

from timewise.engine import SchedulerResult, generate_timetable
from timewise.excel_exporter import ExcelExporter
from timewise.makeup import plan_makeup_classes
from timewise.models import SchedulerInput, TimetableConflict
from timewise.serializers import (
    conflict_from_dict,
    conflicts_to_list,
    extra_classes_to_list,
    snapshot_from_dict,
    timetable_to_dict,
)
from timewise.views import faculty_view, group_view, room_view

app = Flask(__name__)

# --- Global Cache for the Last Generated Timetable ---
g_snapshot: Optional[SchedulerInput] = None
g_result: Optional[SchedulerResult] = None


def _error(message: str, status: int = 400):
    return jsonify({'success': False, 'error': message}), status


def _not_generated():
    return _error('Timetable has not been generated. POST a snapshot to /api/generate first.', 409)


def reset_state():
    global g_snapshot, g_result
    g_snapshot = None
    g_result = None


@app.route('/api/generate', methods=['POST'])
def api_generate():
    """Runs the engine on the posted snapshot and caches the result."""
    global g_snapshot, g_result

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error('Request body must be a JSON snapshot object.')
    try:
        snapshot = snapshot_from_dict(payload)
    except (KeyError, ValueError, TypeError) as e:
        return _error(f'Invalid snapshot: {e}')

    result = generate_timetable(snapshot, verbose=True)
    g_snapshot, g_result = snapshot, result
    return jsonify({
        'success': True,
        'timetable': timetable_to_dict(result.timetable),
        'conflicts': conflicts_to_list(result.conflicts),
    })


@app.route('/api/timetable')
def api_timetable():
    if g_result is None:
        return _not_generated()
    return jsonify({'success': True, 'timetable': timetable_to_dict(g_result.timetable)})


@app.route('/api/conflicts')
def api_conflicts():
    if g_result is None:
        return _not_generated()
    return jsonify({'success': True, 'conflicts': conflicts_to_list(g_result.conflicts)})


@app.route('/api/timetable/group/<group_key>')
def api_group_timetable(group_key):
    if g_result is None:
        return _not_generated()
    try:
        view = group_view(g_result.timetable, g_snapshot, group_key)
    except ValueError as e:
        return _error(str(e))
    return jsonify({'success': True, 'timetable': timetable_to_dict(view)})


@app.route('/api/timetable/faculty/<faculty_id>')
def api_faculty_timetable(faculty_id):
    if g_result is None:
        return _not_generated()
    if not any(f.id == faculty_id for f in g_snapshot.faculty):
        return _error(f'Faculty "{faculty_id}" not found.', 404)
    return jsonify({'success': True, 'timetable': timetable_to_dict(faculty_view(g_result.timetable, faculty_id))})


@app.route('/api/timetable/room/<room_id>')
def api_room_timetable(room_id):
    if g_result is None:
        return _not_generated()
    if not any(r.id == room_id for r in g_snapshot.rooms):
        return _error(f'Room "{room_id}" not found.', 404)
    return jsonify({'success': True, 'timetable': timetable_to_dict(room_view(g_result.timetable, room_id))})


@app.route('/api/makeup', methods=['POST'])
def api_makeup():
    """
    Plans makeup classes for one conflict. The records are returned to the
    caller, who adds them to the snapshot and regenerates.
    """
    if g_result is None:
        return _not_generated()
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _error('Request body must be a JSON object.')
    try:
        conflict: TimetableConflict = conflict_from_dict(payload['conflict'])
        classes = plan_makeup_classes(
            conflict,
            g_snapshot,
            day=payload['day'],
            start_date=payload['startDate'],
            time_slot=payload['timeSlot'],
            room_name=payload['roomName'],
            recurrence=payload.get('recurrence', 'once'),
        )
    except (KeyError, ValueError, TypeError) as e:
        return _error(f'Invalid makeup request: {e}')
    return jsonify({'success': True, 'extraClasses': extra_classes_to_list(classes)})


@app.route('/download')
def download():
    """Sends the generated timetable as an .xlsx workbook."""
    if g_result is None:
        return _not_generated()
    buffer = io.BytesIO()
    ExcelExporter(g_result.timetable, g_result.conflicts, g_snapshot).export_timetable(buffer)
    buffer.seek(0)
    return send_file(
        buffer,
        as_attachment=True,
        download_name="Semester_Timetable.xlsx",
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )


# --- Main Execution ---
if __name__ == '__main__':
    print("=" * 70)
    print("Starting Timetable Engine Web API".center(70))
    print("=" * 70)
    print("\nPOST a snapshot to http://localhost:5000/api/generate")
    print("Press Ctrl+C to stop the server\n")
    app.run(debug=True, port=5000, use_reloader=False)
