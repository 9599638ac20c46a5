# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Checking and Security Event Logging

WHY: Enforce role-based access control and keep an audit trail of denials.

DESIGN PRINCIPLES:
- Fail closed: Deny by default, a role must explicitly carry a permission
- Log denials only: Permission grants are not logged
- Roles are fixed per project (ADMIN, MANAGER, EMPLOYEE); the role -> code
  mapping lives in teamclock.permissions.roles
"""

from datetime import timedelta

from ..extensions import db
from ..models import User, SecurityEvent
from ..permissions import DEFAULT_ROLE_PERMISSIONS
from teamclock.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    project_id: int | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail with tenant context.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - CROSS_PROJECT_ACCESS_DENIED
    - HIERARCHY_CYCLE_REJECTED
    - PROJECT_CONTEXT_MISSING
    """
    event = SecurityEvent(
        user_id=user_id,
        project_id=project_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def get_role_permissions(role: str | None) -> set[str]:
    return set(DEFAULT_ROLE_PERMISSIONS.get(role or "", []))


def get_user_permissions(user_id: int) -> set[str]:
    """
    Get all permission codes for a user.

    Users outside a project have no permissions: every permissioned route is
    project-scoped.
    """
    user = db.session.get(User, user_id)
    if not user or not user.is_active or not user.project_id:
        return set()
    return get_role_permissions(user.role)


def user_has_permission(user_id: int, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user_id)


def require_permission(
    user_id: int,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    project_id: int | None = None,
) -> None:
    """
    Require user to have permission, raise PermissionDeniedError if not.

    Denials are written to security_events with the project context.
    """
    if not user_has_permission(user_id, permission_code):
        log_security_event(
            user_id=user_id,
            event_type="PERMISSION_DENIED",
            success=False,
            resource=resource,
            action=permission_code,
            reason=f"Missing permission: {permission_code}",
            ip_address=ip_address,
            user_agent=user_agent,
            project_id=project_id,
        )
        raise PermissionDeniedError(f"Permission denied: {permission_code}")


def cleanup_security_events(retention_days: int = 90) -> int:
    """Delete security events older than the retention window."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(SecurityEvent.occurred_at < cutoff).delete()
    db.session.commit()
    return deleted
