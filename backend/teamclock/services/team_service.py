# Overview: Service-layer operations for team management; hierarchy assignment, roles and work settings.

"""
Team Service

WHY: Managers and admins shape the reporting structure and the schedule
(daily target, work days) that the balance calculator measures against.

SECURITY: Every operation takes the acting user and re-checks project
membership and hierarchy rights, independent of the route's permission
decorator.
"""

from __future__ import annotations

from numbers import Real

from flask import current_app
from ..extensions import db
from ..models import User, ROLES, ROLE_ADMIN, ROLE_EMPLOYEE
from .hierarchy_service import (
    build_hierarchy_tree,
    can_manage_user,
    filter_visible_users,
    manager_lookup,
    would_create_cycle,
)
from .permission_service import log_security_event
from .project_service import get_project_users, require_user_in_project


MAX_DAILY_TARGET_HOURS = 24.0


class TeamError(ValueError):
    """Raised for invalid team operations."""
    pass


class TeamPermissionError(Exception):
    """Raised when the actor may not manage the target user."""
    pass


class HierarchyError(TeamError):
    """Raised when a manager assignment would corrupt the reporting chain."""
    pass


def list_members(actor: User) -> list[User]:
    """Project members the actor is allowed to see."""
    return filter_visible_users(get_project_users(actor.project_id), actor)


def get_hierarchy(project_id: int) -> list[dict]:
    return build_hierarchy_tree(get_project_users(project_id))


def _require_manageable(actor: User, target: User, users: list[User]) -> None:
    if not can_manage_user(actor, target, manager_lookup(users)):
        raise TeamPermissionError("You don't have permission to manage this user")


def assign_manager(*, actor: User, employee_id: int, manager_id: int | None) -> User:
    """
    Set (or clear, with manager_id=None) the manager of employee_id.

    Rules:
    - Both users must be in the actor's project
    - The actor must be able to manage the employee
    - ADMINs have no manager; EMPLOYEEs cannot manage anyone
    - The assignment must not create a circular reporting chain
    """
    employee = require_user_in_project(employee_id, actor.project_id, actor_id=actor.id)
    users = get_project_users(actor.project_id, include_inactive=True)
    _require_manageable(actor, employee, users)

    if manager_id is not None:
        manager = require_user_in_project(manager_id, actor.project_id, actor_id=actor.id)

        if employee.role == ROLE_ADMIN:
            raise HierarchyError("Cannot assign manager to ADMIN role")
        if manager.role == ROLE_EMPLOYEE:
            raise HierarchyError("EMPLOYEE cannot be a manager")

        if would_create_cycle(employee.id, manager.id, manager_lookup(users)):
            log_security_event(
                user_id=actor.id,
                event_type="HIERARCHY_CYCLE_REJECTED",
                success=False,
                action="ASSIGN_MANAGER",
                reason=f"Assigning {manager.id} as manager of {employee.id} would create a cycle",
                project_id=actor.project_id,
            )
            current_app.logger.warning(
                "Rejected circular manager assignment: employee=%s manager=%s", employee.id, manager.id
            )
            raise HierarchyError("This assignment would create a circular reference")

    employee.manager_id = manager_id
    db.session.commit()
    return employee


def _validate_daily_target(value) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TeamError("Invalid daily target")
    value = float(value)
    if value < 0 or value > MAX_DAILY_TARGET_HOURS:
        raise TeamError("Invalid daily target")
    return value


def _validate_work_days(value) -> list[int]:
    if not isinstance(value, list) or not all(
        isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6 for d in value
    ):
        raise TeamError("Invalid work days")
    return sorted(set(value))


def update_work_settings(*, actor: User, user_id: int, daily_target, work_days) -> User:
    """
    Change a user's ScheduleConfig.

    Users may edit their own settings; editing someone else requires being
    able to manage them. daily_target is hours (None = no target) and
    work_days are ints with 0=Sunday .. 6=Saturday.
    """
    target = require_user_in_project(user_id, actor.project_id, actor_id=actor.id)
    if target.id != actor.id:
        users = get_project_users(actor.project_id, include_inactive=True)
        _require_manageable(actor, target, users)

    target.daily_target = _validate_daily_target(daily_target)
    target.work_days = _validate_work_days(work_days)
    db.session.commit()
    return target


def change_role(*, actor: User, user_id: int, role: str) -> User:
    """
    Change a member's project role (ADMIN only).

    Demoting to EMPLOYEE detaches the user's direct reports; promoting to
    ADMIN clears the user's own manager.
    """
    if actor.role != ROLE_ADMIN:
        raise TeamPermissionError("Only ADMIN can change roles")
    if role not in ROLES:
        raise TeamError(f"role must be one of {', '.join(ROLES)}")

    target = require_user_in_project(user_id, actor.project_id, actor_id=actor.id)

    if target.id == actor.id and role != ROLE_ADMIN:
        admins = [u for u in get_project_users(actor.project_id) if u.role == ROLE_ADMIN]
        if len(admins) <= 1:
            raise TeamError("A project must keep at least one ADMIN")

    if role == ROLE_EMPLOYEE:
        for report in list(target.direct_reports):
            report.manager_id = None
    if role == ROLE_ADMIN:
        target.manager_id = None

    target.role = role
    db.session.commit()
    return target
