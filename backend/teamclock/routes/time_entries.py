# Overview: Flask API routes for timekeeping operations; parses input and returns JSON responses.

"""
Time Entry Routes

SECURITY:
- Every route requires TRACK_TIME and acts on the caller's own sessions.
- Sessions of other users are reported as not found.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import timekeeping_service
from ..services.timekeeping_service import TimekeepingError, EntryNotFoundError
from teamclock.time_utils import parse_iso_datetime


time_entries_bp = Blueprint("time_entries", __name__, url_prefix="/api/time-entries")


def _parse_datetime_field(data: dict, key: str):
    """Returns (value, error_response)."""
    raw = data.get(key)
    if not raw:
        return None, None
    try:
        return parse_iso_datetime(raw), None
    except (TypeError, ValueError):
        return None, (jsonify({"error": f"Invalid {key}"}), 400)


@time_entries_bp.get("")
@require_auth
@require_permission("TRACK_TIME")
def list_entries_route():
    limit = request.args.get("limit", default=50, type=int)
    entries = timekeeping_service.list_entries(g.current_user.id, limit=limit)
    active = next((e for e in entries if e.is_open), None)
    return jsonify({
        "entries": [e.to_dict() for e in entries],
        "active_entry": active.to_dict() if active else None,
        "count": len(entries),
    })


@time_entries_bp.get("/status")
@require_auth
@require_permission("TRACK_TIME")
def status_route():
    return jsonify(timekeeping_service.get_current_status(g.current_user.id))


@time_entries_bp.post("/start")
@require_auth
@require_permission("TRACK_TIME")
def start_route():
    data = request.get_json(silent=True) or {}
    try:
        entry = timekeeping_service.start_timer(
            user_id=g.current_user.id,
            project_id=g.project_id,
            description=data.get("description"),
        )
        return jsonify({"entry": entry.to_dict()}), 201
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.post("/stop")
@require_auth
@require_permission("TRACK_TIME")
def stop_route():
    try:
        entry = timekeeping_service.stop_timer(user_id=g.current_user.id)
        return jsonify({"entry": entry.to_dict()})
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.post("/pause")
@require_auth
@require_permission("TRACK_TIME")
def pause_route():
    try:
        brk = timekeeping_service.pause_timer(user_id=g.current_user.id)
        return jsonify({"break": brk.to_dict(), "message": "Paused"}), 201
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.post("/resume")
@require_auth
@require_permission("TRACK_TIME")
def resume_route():
    try:
        brk = timekeeping_service.resume_timer(user_id=g.current_user.id)
        return jsonify({"break": brk.to_dict(), "message": "Resumed"})
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.post("/break")
@require_auth
@require_permission("TRACK_TIME")
def auto_break_start_route():
    """Break started by location monitoring when the user leaves the work area."""
    data = request.get_json(silent=True) or {}
    try:
        brk, created = timekeeping_service.start_auto_break(
            user_id=g.current_user.id,
            reason=data.get("reason") or "left_work_area",
        )
        message = "Break started" if created else "Already on break"
        return jsonify({"break": brk.to_dict(), "message": message}), 201 if created else 200
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.patch("/break")
@require_auth
@require_permission("TRACK_TIME")
def auto_break_end_route():
    try:
        brk = timekeeping_service.end_auto_break(user_id=g.current_user.id)
        return jsonify({"break": brk.to_dict(), "message": "Break ended, work resumed"})
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.post("/manual")
@require_auth
@require_permission("TRACK_TIME")
def manual_entry_route():
    data = request.get_json(silent=True) or {}

    start_at, error = _parse_datetime_field(data, "start")
    if error:
        return error
    end_at, error = _parse_datetime_field(data, "end")
    if error:
        return error
    if not start_at or not end_at:
        return jsonify({"error": "start and end are required"}), 400

    try:
        entry = timekeeping_service.create_manual_entry(
            user_id=g.current_user.id,
            project_id=g.project_id,
            start_at=start_at,
            end_at=end_at,
            description=data.get("description"),
        )
        return jsonify({"entry": entry.to_dict()}), 201
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create manual entry")
        return jsonify({"error": "Internal server error"}), 500


@time_entries_bp.patch("/<int:entry_id>")
@require_auth
@require_permission("TRACK_TIME")
def update_entry_route(entry_id: int):
    data = request.get_json(silent=True) or {}

    start_at, error = _parse_datetime_field(data, "start")
    if error:
        return error
    end_at, error = _parse_datetime_field(data, "end")
    if error:
        return error

    # Use sentinel for description to distinguish "not provided" from "set to null"
    description = data["description"] if "description" in data else ...

    try:
        entry = timekeeping_service.update_entry(
            user_id=g.current_user.id,
            entry_id=entry_id,
            description=description,
            start_at=start_at,
            end_at=end_at,
        )
        return jsonify({"entry": entry.to_dict()})
    except EntryNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except TimekeepingError as e:
        return jsonify({"error": str(e)}), 400


@time_entries_bp.delete("/<int:entry_id>")
@require_auth
@require_permission("TRACK_TIME")
def delete_entry_route(entry_id: int):
    try:
        timekeeping_service.delete_entry(user_id=g.current_user.id, entry_id=entry_id)
        return jsonify({"message": "Deleted"})
    except EntryNotFoundError as e:
        return jsonify({"error": str(e)}), 404
