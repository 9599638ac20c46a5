# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- TIMEKEEPING --

TIMEKEEPING_PERMISSIONS = [
    (
        "TRACK_TIME",
        "Track Time",
        "Start, pause, resume and stop the timer; add manual entries",
        PermissionCategory.TIMEKEEPING,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_OWN_REPORTS",
        "View Own Reports",
        "View own balance, monthly report and calendar totals",
        PermissionCategory.REPORTS,
    ),
    (
        "VIEW_TEAM_REPORTS",
        "View Team Reports",
        "View reports of users below you in the hierarchy",
        PermissionCategory.REPORTS,
    ),
]


# -- TEAM --

TEAM_PERMISSIONS = [
    (
        "VIEW_TEAM",
        "View Team",
        "List visible project members and the hierarchy",
        PermissionCategory.TEAM,
    ),
    (
        "MANAGE_TEAM_SETTINGS",
        "Manage Team Settings",
        "Edit daily target and work days of managed users",
        PermissionCategory.TEAM,
    ),
    (
        "ASSIGN_MANAGERS",
        "Assign Managers",
        "Assign or remove the manager of managed users",
        PermissionCategory.TEAM,
    ),
    (
        "MANAGE_ROLES",
        "Manage Roles",
        "Change project roles (ADMIN, MANAGER, EMPLOYEE)",
        PermissionCategory.TEAM,
    ),
]


# -- PROJECT --

PROJECT_PERMISSIONS = [
    (
        "MANAGE_PROJECT",
        "Manage Project",
        "Rename the project, change its timezone, rotate the join code",
        PermissionCategory.PROJECT,
    ),
]


# -- TASKS --

TASK_PERMISSIONS = [
    (
        "VIEW_TASKS",
        "View Tasks",
        "List and open tasks assigned to you or to users you manage",
        PermissionCategory.TASKS,
    ),
    (
        "EDIT_TASKS",
        "Edit Tasks",
        "Create tasks, update them, tick checklist items and subtasks, add notes",
        PermissionCategory.TASKS,
    ),
    (
        "DELETE_TASKS",
        "Delete Tasks",
        "Delete tasks whose assignees you all manage",
        PermissionCategory.TASKS,
    ),
]


PERMISSION_DEFINITIONS = (
    TIMEKEEPING_PERMISSIONS
    + REPORT_PERMISSIONS
    + TEAM_PERMISSIONS
    + PROJECT_PERMISSIONS
    + TASK_PERMISSIONS
)
