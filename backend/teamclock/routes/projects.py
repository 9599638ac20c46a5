# Overview: Flask API routes for project (workspace) operations; create, join and inspect.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_project, require_permission
from ..services import project_service
from ..services.project_service import ProjectError


projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@projects_bp.post("")
@require_auth
def create_project_route():
    data = request.get_json(silent=True) or {}
    try:
        project = project_service.create_project(
            user_id=g.current_user.id,
            name=data.get("name"),
            timezone=data.get("timezone"),
        )
        return jsonify({"project": project.to_dict(), "role": g.current_user.role}), 201
    except ProjectError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create project")
        return jsonify({"error": "Internal server error"}), 500


@projects_bp.post("/join")
@require_auth
def join_project_route():
    data = request.get_json(silent=True) or {}
    try:
        project = project_service.join_project(
            user_id=g.current_user.id,
            join_code=data.get("join_code"),
        )
        project_data = project.to_dict()
        # Only admins see the join code
        project_data.pop("join_code", None)
        return jsonify({"project": project_data, "role": g.current_user.role})
    except ProjectError as e:
        return jsonify({"error": str(e)}), 400


@projects_bp.get("/current")
@require_auth
@require_project
def current_project_route():
    project = project_service.get_project(g.project_id)
    data = project.to_dict()
    if g.current_user.role != "ADMIN":
        data.pop("join_code", None)
    return jsonify({"project": data})


@projects_bp.patch("/current")
@require_auth
@require_permission("MANAGE_PROJECT")
def update_project_route():
    data = request.get_json(silent=True) or {}
    try:
        project = project_service.update_project(
            project_id=g.project_id,
            name=data.get("name"),
            timezone=data.get("timezone"),
        )
        if data.get("rotate_join_code"):
            project = project_service.rotate_join_code(g.project_id)
        return jsonify({"project": project.to_dict()})
    except ProjectError as e:
        return jsonify({"error": str(e)}), 400
