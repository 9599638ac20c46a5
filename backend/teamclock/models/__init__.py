from .tenancy import Project
from .auth import User, SessionToken, ROLES, ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE
from .security import SecurityEvent
from .timekeeping import WorkSession, WorkBreak, BREAK_REASON_MANUAL, BREAK_REASON_LEFT_AREA
from .tasks import (
    Task, ChecklistItem, SubTask, TaskNote, task_assignees,
    TASK_STATUSES, TASK_STATUS_TODO, TASK_STATUS_DONE, TASK_PRIORITIES,
)

__all__ = [
    'Project',
    'User', 'SessionToken', 'ROLES', 'ROLE_ADMIN', 'ROLE_MANAGER', 'ROLE_EMPLOYEE',
    'SecurityEvent',
    'WorkSession', 'WorkBreak', 'BREAK_REASON_MANUAL', 'BREAK_REASON_LEFT_AREA',
    'Task', 'ChecklistItem', 'SubTask', 'TaskNote', 'task_assignees',
    'TASK_STATUSES', 'TASK_STATUS_TODO', 'TASK_STATUS_DONE', 'TASK_PRIORITIES',
]
