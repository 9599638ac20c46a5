# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    TIMEKEEPING_PERMISSIONS,
    REPORT_PERMISSIONS,
    TEAM_PERMISSIONS,
    PROJECT_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "TIMEKEEPING_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "TEAM_PERMISSIONS",
    "PROJECT_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
]
