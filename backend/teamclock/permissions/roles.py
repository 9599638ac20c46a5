# Overview: Default permission sets per project role.

_EMPLOYEE = [
    "TRACK_TIME",
    "VIEW_OWN_REPORTS",
    "VIEW_TEAM",
    "VIEW_TASKS",
    "EDIT_TASKS",
]

_MANAGER = _EMPLOYEE + [
    "VIEW_TEAM_REPORTS",
    "MANAGE_TEAM_SETTINGS",
    "ASSIGN_MANAGERS",
    "DELETE_TASKS",
]

_ADMIN = _MANAGER + [
    "MANAGE_ROLES",
    "MANAGE_PROJECT",
]

DEFAULT_ROLE_PERMISSIONS = {
    "ADMIN": _ADMIN,
    "MANAGER": _MANAGER,
    "EMPLOYEE": _EMPLOYEE,
}
