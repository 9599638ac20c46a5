# Overview: Service-layer operations for projects (tenants); creation, joining and tenant scoping helpers.

"""
Project (Tenant) Service

WHY: A project is the tenant boundary. Every request acting on another user
must first prove that user belongs to the caller's project.

SECURITY INVARIANTS:
1. Every permissioned request has g.project_id set
2. User IDs from client input are validated against g.project_id
3. Cross-project attempts are logged as security events
"""

import secrets
import string

from flask import current_app, has_request_context, request
from ..extensions import db
from ..models import Project, User, ROLE_ADMIN, ROLE_EMPLOYEE
from .permission_service import log_security_event
from .session_service import refresh_project_context
from teamclock.time_utils import get_zone


JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_LENGTH = 8


class ProjectError(ValueError):
    """Raised for invalid project operations."""
    pass


class TenantAccessError(Exception):
    """Raised when cross-project access is attempted."""
    pass


def generate_join_code() -> str:
    while True:
        code = "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(JOIN_CODE_LENGTH))
        if not db.session.query(Project).filter_by(join_code=code).first():
            return code


def _validate_timezone(name: str | None) -> str:
    name = (name or "").strip() or current_app.config.get("DEFAULT_TIMEZONE", "UTC")
    if get_zone(name).key != name:
        raise ProjectError(f"Unknown timezone: {name}")
    return name


def create_project(*, user_id: int, name: str, timezone: str | None = None) -> Project:
    """
    Create a project and make the creator its ADMIN.

    A user belongs to one project at a time; creating a new one moves the
    creator out of the previous project and clears its manager link. The
    last ADMIN of the previous project must promote someone else first.
    """
    name = (name or "").strip()
    if not name:
        raise ProjectError("name is required")

    user = db.session.get(User, user_id)
    if not user:
        raise ProjectError("User not found")
    _require_replaceable_admin(user)

    project = Project(
        name=name,
        join_code=generate_join_code(),
        timezone=_validate_timezone(timezone),
        is_active=True,
        created_by_user_id=user.id,
    )
    db.session.add(project)
    db.session.flush()

    _detach_reports(user)
    user.project_id = project.id
    user.role = ROLE_ADMIN
    user.manager_id = None

    db.session.commit()
    refresh_project_context(user.id)

    current_app.logger.info("Project %s created by user %s", project.id, user.id)
    return project


def join_project(*, user_id: int, join_code: str) -> Project:
    """Join a project by its code as an EMPLOYEE with no manager."""
    code = (join_code or "").strip().upper()
    if not code:
        raise ProjectError("join_code is required")

    project = db.session.query(Project).filter_by(join_code=code, is_active=True).first()
    if not project:
        raise ProjectError("Invalid join code")

    user = db.session.get(User, user_id)
    if not user:
        raise ProjectError("User not found")

    if user.project_id == project.id:
        raise ProjectError("Already a member of this project")
    _require_replaceable_admin(user)

    _detach_reports(user)
    user.project_id = project.id
    user.role = ROLE_EMPLOYEE
    user.manager_id = None

    db.session.commit()
    refresh_project_context(user.id)

    current_app.logger.info("User %s joined project %s", user.id, project.id)
    return project


def update_project(*, project_id: int, name: str | None = None, timezone: str | None = None) -> Project:
    project = get_project(project_id)
    if name is not None:
        if not name.strip():
            raise ProjectError("name cannot be empty")
        project.name = name.strip()
    if timezone is not None:
        project.timezone = _validate_timezone(timezone)
    db.session.commit()
    return project


def rotate_join_code(project_id: int) -> Project:
    project = get_project(project_id)
    project.join_code = generate_join_code()
    db.session.commit()
    return project


def _require_replaceable_admin(user: User) -> None:
    """The last active ADMIN of a project cannot move to another one."""
    if user.project_id is None or user.role != ROLE_ADMIN:
        return
    admins = (
        db.session.query(User)
        .filter_by(project_id=user.project_id, role=ROLE_ADMIN, is_active=True)
        .count()
    )
    if admins <= 1:
        raise ProjectError("A project must keep at least one ADMIN")


def _detach_reports(user: User) -> None:
    """Users leaving a project stop managing anyone in it."""
    for report in list(user.direct_reports):
        report.manager_id = None


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if not project:
        raise ProjectError("Project not found")
    return project


def get_project_zone(project_id: int | None):
    """ZoneInfo used for day bucketing in the project's reports."""
    project = db.session.get(Project, project_id) if project_id else None
    if project:
        return get_zone(project.timezone)
    return get_zone(current_app.config.get("DEFAULT_TIMEZONE", "UTC"))


def get_project_users(project_id: int, *, include_inactive: bool = False) -> list[User]:
    query = db.session.query(User).filter_by(project_id=project_id)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(User.name.asc()).all()


def require_user_in_project(user_id: int, project_id: int, *, actor_id: int | None = None) -> User:
    """
    Validate that a user belongs to the specified project.

    SECURITY: Core tenant isolation check. Raises TenantAccessError and logs
    a CROSS_PROJECT_ACCESS_DENIED event when the user is elsewhere.
    """
    user = db.session.get(User, user_id) if user_id else None
    if not user:
        raise TenantAccessError("User not found")

    if user.project_id != project_id:
        log_security_event(
            user_id=actor_id,
            event_type="CROSS_PROJECT_ACCESS_DENIED",
            success=False,
            resource=request.path if has_request_context() else None,
            action="ACCESS_USER",
            reason=f"User {user_id} is not in project {project_id}",
            ip_address=request.remote_addr if has_request_context() else None,
            project_id=project_id,
        )
        raise TenantAccessError("User not found")

    return user
