# Overview: Flask API routes for team operations; members, hierarchy, manager assignment and settings.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import team_service
from ..services.project_service import TenantAccessError
from ..services.team_service import TeamError, TeamPermissionError


team_bp = Blueprint("team", __name__, url_prefix="/api/team")


def _team_error_response(e: Exception):
    if isinstance(e, TenantAccessError):
        return jsonify({"error": str(e)}), 404
    if isinstance(e, TeamPermissionError):
        return jsonify({"error": str(e)}), 403
    return jsonify({"error": str(e)}), 400


@team_bp.get("/members")
@require_auth
@require_permission("VIEW_TEAM")
def list_members_route():
    members = team_service.list_members(g.current_user)
    return jsonify({"members": [m.to_dict() for m in members]})


@team_bp.get("/hierarchy")
@require_auth
@require_permission("VIEW_TEAM")
def hierarchy_route():
    return jsonify({"hierarchy": team_service.get_hierarchy(g.project_id)})


@team_bp.patch("/assign-manager")
@require_auth
@require_permission("ASSIGN_MANAGERS")
def assign_manager_route():
    data = request.get_json(silent=True) or {}
    employee_id = data.get("employee_id")
    if not isinstance(employee_id, int):
        return jsonify({"error": "employee_id is required"}), 400

    manager_id = data.get("manager_id")
    if manager_id is not None and not isinstance(manager_id, int):
        return jsonify({"error": "manager_id must be an integer or null"}), 400

    try:
        employee = team_service.assign_manager(
            actor=g.current_user,
            employee_id=employee_id,
            manager_id=manager_id,
        )
        return jsonify({"user": employee.to_dict()})
    except (TenantAccessError, TeamPermissionError, TeamError) as e:
        return _team_error_response(e)


@team_bp.patch("/work-settings")
@require_auth
@require_permission("MANAGE_TEAM_SETTINGS")
def work_settings_route():
    data = request.get_json(silent=True) or {}
    user_id = data.get("user_id", g.current_user.id)
    if not isinstance(user_id, int):
        return jsonify({"error": "user_id must be an integer"}), 400

    try:
        user = team_service.update_work_settings(
            actor=g.current_user,
            user_id=user_id,
            daily_target=data.get("daily_target"),
            work_days=data.get("work_days", []),
        )
        return jsonify({"user": user.to_dict()})
    except (TenantAccessError, TeamPermissionError, TeamError) as e:
        return _team_error_response(e)


@team_bp.patch("/role")
@require_auth
@require_permission("MANAGE_ROLES")
def change_role_route():
    data = request.get_json(silent=True) or {}
    user_id = data.get("user_id")
    if not isinstance(user_id, int):
        return jsonify({"error": "user_id is required"}), 400

    try:
        user = team_service.change_role(
            actor=g.current_user,
            user_id=user_id,
            role=data.get("role"),
        )
        return jsonify({"user": user.to_dict()})
    except (TenantAccessError, TeamPermissionError, TeamError) as e:
        return _team_error_response(e)
