# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    TIMEKEEPING = "TIMEKEEPING"
    REPORTS = "REPORTS"
    TEAM = "TEAM"
    PROJECT = "PROJECT"
    TASKS = "TASKS"
