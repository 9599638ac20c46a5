# Overview: Flask API routes for tasks; CRUD plus checklist items, subtasks and notes.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import task_service
from ..services.project_service import TenantAccessError
from ..services.task_service import TaskError, TaskNotFoundError, TaskPermissionError
from teamclock.time_utils import parse_iso_datetime


tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")

TASK_ERRORS = (TaskError, TaskPermissionError, TenantAccessError)


def _task_error_response(e: Exception):
    if isinstance(e, (TaskNotFoundError, TenantAccessError)):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, TaskPermissionError):
        return jsonify({"error": str(e)}), 403
    return jsonify({"error": str(e)}), 400


def _parse_deadline(data: dict):
    """Returns (value, error_response); value is ... when the key is absent."""
    if "deadline" not in data:
        return ..., None
    raw = data.get("deadline")
    if not raw:
        return None, None
    try:
        return parse_iso_datetime(raw), None
    except (AttributeError, TypeError, ValueError):
        return None, (jsonify({"error": "Invalid deadline"}), 400)


@tasks_bp.get("")
@require_auth
@require_permission("VIEW_TASKS")
def list_tasks_route():
    status = request.args.get("status")
    assignee_id = request.args.get("assignee_id", type=int)
    try:
        tasks = task_service.list_tasks(g.current_user, status=status, assignee_id=assignee_id)
    except TaskError as e:
        return _task_error_response(e)
    return jsonify({"tasks": [t.to_dict() for t in tasks], "count": len(tasks)})


@tasks_bp.post("")
@require_auth
@require_permission("EDIT_TASKS")
def create_task_route():
    data = request.get_json(silent=True) or {}
    deadline, error = _parse_deadline(data)
    if error:
        return error

    try:
        task = task_service.create_task(
            actor=g.current_user,
            title=data.get("title"),
            description=data.get("description"),
            priority=data.get("priority"),
            deadline=None if deadline is ... else deadline,
            assignee_ids=data.get("assignee_ids"),
        )
        return jsonify({"task": task.to_dict()}), 201
    except TASK_ERRORS as e:
        return _task_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create task")
        return jsonify({"error": "Internal server error"}), 500


@tasks_bp.get("/<int:task_id>")
@require_auth
@require_permission("VIEW_TASKS")
def get_task_route(task_id: int):
    try:
        return jsonify({"task": task_service.get_task(g.current_user, task_id).to_dict()})
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.patch("/<int:task_id>")
@require_auth
@require_permission("EDIT_TASKS")
def update_task_route(task_id: int):
    data = request.get_json(silent=True) or {}
    deadline, error = _parse_deadline(data)
    if error:
        return error

    try:
        task = task_service.update_task(
            actor=g.current_user,
            task_id=task_id,
            title=data.get("title"),
            description=data["description"] if "description" in data else ...,
            status=data.get("status"),
            is_completed=data.get("is_completed"),
            priority=data.get("priority"),
            deadline=deadline,
            assignee_ids=data.get("assignee_ids"),
        )
        return jsonify({"task": task.to_dict()})
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.delete("/<int:task_id>")
@require_auth
@require_permission("DELETE_TASKS")
def delete_task_route(task_id: int):
    try:
        task_service.delete_task(actor=g.current_user, task_id=task_id)
        return jsonify({"message": "Deleted"})
    except TASK_ERRORS as e:
        return _task_error_response(e)


# -- Checklist --


@tasks_bp.post("/<int:task_id>/checklist")
@require_auth
@require_permission("EDIT_TASKS")
def add_checklist_item_route(task_id: int):
    data = request.get_json(silent=True) or {}
    try:
        item = task_service.add_checklist_item(actor=g.current_user, task_id=task_id, text=data.get("text"))
        return jsonify({"item": item.to_dict()}), 201
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.patch("/checklist/<int:item_id>")
@require_auth
@require_permission("EDIT_TASKS")
def update_checklist_item_route(item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        item = task_service.update_checklist_item(
            actor=g.current_user,
            item_id=item_id,
            text=data.get("text"),
            is_done=data.get("is_done"),
        )
        return jsonify({"item": item.to_dict()})
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.delete("/checklist/<int:item_id>")
@require_auth
@require_permission("EDIT_TASKS")
def delete_checklist_item_route(item_id: int):
    try:
        task_service.delete_checklist_item(actor=g.current_user, item_id=item_id)
        return jsonify({"message": "Deleted"})
    except TASK_ERRORS as e:
        return _task_error_response(e)


# -- Subtasks --


@tasks_bp.post("/<int:task_id>/subtasks")
@require_auth
@require_permission("EDIT_TASKS")
def add_subtask_route(task_id: int):
    data = request.get_json(silent=True) or {}
    try:
        subtask = task_service.add_subtask(actor=g.current_user, task_id=task_id, title=data.get("title"))
        return jsonify({"subtask": subtask.to_dict()}), 201
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.patch("/subtasks/<int:subtask_id>")
@require_auth
@require_permission("EDIT_TASKS")
def update_subtask_route(subtask_id: int):
    data = request.get_json(silent=True) or {}
    try:
        subtask = task_service.update_subtask(
            actor=g.current_user,
            subtask_id=subtask_id,
            title=data.get("title"),
            is_done=data.get("is_done"),
        )
        return jsonify({"subtask": subtask.to_dict()})
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.delete("/subtasks/<int:subtask_id>")
@require_auth
@require_permission("EDIT_TASKS")
def delete_subtask_route(subtask_id: int):
    try:
        task_service.delete_subtask(actor=g.current_user, subtask_id=subtask_id)
        return jsonify({"message": "Deleted"})
    except TASK_ERRORS as e:
        return _task_error_response(e)


# -- Notes --


@tasks_bp.get("/<int:task_id>/notes")
@require_auth
@require_permission("VIEW_TASKS")
def list_notes_route(task_id: int):
    try:
        notes = task_service.list_notes(g.current_user, task_id)
        return jsonify({"notes": [n.to_dict() for n in notes]})
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.post("/<int:task_id>/notes")
@require_auth
@require_permission("EDIT_TASKS")
def add_note_route(task_id: int):
    data = request.get_json(silent=True) or {}
    try:
        note = task_service.add_note(actor=g.current_user, task_id=task_id, content=data.get("content"))
        return jsonify({"note": note.to_dict()}), 201
    except TASK_ERRORS as e:
        return _task_error_response(e)


@tasks_bp.delete("/notes/<int:note_id>")
@require_auth
@require_permission("EDIT_TASKS")
def delete_note_route(note_id: int):
    try:
        task_service.delete_note(actor=g.current_user, note_id=note_id)
        return jsonify({"message": "Deleted"})
    except TASK_ERRORS as e:
        return _task_error_response(e)
