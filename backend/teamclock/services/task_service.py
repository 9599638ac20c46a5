# Overview: Service-layer operations for tasks; assignment rules, checklists, subtasks and notes.

"""
Task Service

WHY: Tasks are the project's to-do list. Who may assign, open, edit and
delete a task follows the same reporting chain as team management.

RULES:
- ADMIN assigns to any active member; MANAGER to self and its reports;
  EMPLOYEE only to self
- A task is visible (and editable) to ADMIN, its creator, its assignees and
  managers of any assignee
- Deleting needs ADMIN, or a MANAGER who manages every assignee
- Tasks of other projects, and tasks the actor cannot see, are "not found"
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app, has_request_context, request
from ..extensions import db
from ..models import (
    User,
    Task,
    ChecklistItem,
    SubTask,
    TaskNote,
    ROLE_ADMIN,
    ROLE_MANAGER,
    TASK_STATUSES,
    TASK_STATUS_DONE,
    TASK_STATUS_TODO,
    TASK_PRIORITIES,
)
from .hierarchy_service import get_descendant_ids, manager_lookup
from .permission_service import log_security_event
from .project_service import get_project_users, require_user_in_project
from teamclock.time_utils import utcnow


MAX_TITLE_LENGTH = 255
MAX_LINE_LENGTH = 500


class TaskError(ValueError):
    """Raised for invalid task operations."""
    pass


class TaskNotFoundError(TaskError):
    """Raised when a task (or one of its lines) is missing or not visible."""
    pass


class TaskPermissionError(Exception):
    """Raised when the actor may not perform the operation on the task."""
    pass


def _managed_ids(actor: User, users: list[User]) -> set[int]:
    if actor.role != ROLE_MANAGER:
        return set()
    return set(get_descendant_ids(actor.id, manager_lookup(users)))


def assignable_user_ids(actor: User, users: list[User]) -> set[int]:
    if actor.role == ROLE_ADMIN:
        return {u.id for u in users if u.is_active}
    return {actor.id} | _managed_ids(actor, users)


def can_access_task(actor: User, task: Task, managed: set[int]) -> bool:
    if actor.role == ROLE_ADMIN or task.created_by_user_id == actor.id:
        return True
    assignees = set(task.assignee_ids)
    return actor.id in assignees or bool(assignees & managed)


def can_delete_task(actor: User, task: Task, managed: set[int]) -> bool:
    if actor.role == ROLE_ADMIN:
        return True
    if actor.role != ROLE_MANAGER:
        return False
    return set(task.assignee_ids) <= managed | {actor.id}


def _get_task(actor: User, task_id: int, users: list[User] | None = None) -> Task:
    task = db.session.get(Task, task_id)
    if not task:
        raise TaskNotFoundError("Task not found")

    if task.project_id != actor.project_id:
        log_security_event(
            user_id=actor.id,
            event_type="CROSS_PROJECT_ACCESS_DENIED",
            success=False,
            resource=request.path if has_request_context() else None,
            action="ACCESS_TASK",
            reason=f"Task {task_id} is not in project {actor.project_id}",
            project_id=actor.project_id,
        )
        raise TaskNotFoundError("Task not found")

    if users is None:
        users = get_project_users(actor.project_id, include_inactive=True)
    if not can_access_task(actor, task, _managed_ids(actor, users)):
        raise TaskNotFoundError("Task not found")
    return task


def _validate_title(value, field: str = "title", max_length: int = MAX_TITLE_LENGTH) -> str:
    if not isinstance(value, str) or not value.strip():
        raise TaskError(f"{field} is required")
    value = value.strip()
    if len(value) > max_length:
        raise TaskError(f"{field} must be at most {max_length} characters")
    return value


def _validate_priority(value) -> str:
    priority = (value or "").upper().strip() if isinstance(value, str) else value
    if priority not in TASK_PRIORITIES:
        raise TaskError(f"priority must be one of {', '.join(TASK_PRIORITIES)}")
    return priority


def _resolve_assignees(actor: User, assignee_ids, users: list[User]) -> list[User]:
    if not isinstance(assignee_ids, list) or not all(
        isinstance(i, int) and not isinstance(i, bool) for i in assignee_ids
    ):
        raise TaskError("assignee_ids must be a list of user ids")

    allowed = assignable_user_ids(actor, users)
    assignees = []
    for user_id in dict.fromkeys(assignee_ids):
        user = require_user_in_project(user_id, actor.project_id, actor_id=actor.id)
        if user_id not in allowed:
            if actor.role in (ROLE_ADMIN, ROLE_MANAGER):
                raise TaskPermissionError("Cannot assign tasks to users outside your hierarchy")
            raise TaskPermissionError("You can only assign tasks to yourself")
        assignees.append(user)
    return assignees


def _set_status(task: Task, status: str) -> None:
    if status not in TASK_STATUSES:
        raise TaskError(f"status must be one of {', '.join(TASK_STATUSES)}")
    if status == TASK_STATUS_DONE and task.status != TASK_STATUS_DONE:
        task.completed_at = utcnow()
    elif status != TASK_STATUS_DONE:
        task.completed_at = None
    task.status = status


def list_tasks(actor: User, *, status: str | None = None, assignee_id: int | None = None) -> list[Task]:
    """Project tasks the actor can see, newest first."""
    query = db.session.query(Task).filter_by(project_id=actor.project_id)
    if status:
        if status not in TASK_STATUSES:
            raise TaskError(f"status must be one of {', '.join(TASK_STATUSES)}")
        query = query.filter_by(status=status)

    tasks = query.order_by(Task.created_at.desc(), Task.id.desc()).all()
    managed = _managed_ids(actor, get_project_users(actor.project_id, include_inactive=True))
    visible = [t for t in tasks if can_access_task(actor, t, managed)]

    if assignee_id is not None:
        visible = [t for t in visible if assignee_id in t.assignee_ids]
    return visible


def get_task(actor: User, task_id: int) -> Task:
    return _get_task(actor, task_id)


def create_task(
    *,
    actor: User,
    title,
    description: str | None = None,
    priority=None,
    deadline: datetime | None = None,
    assignee_ids=None,
) -> Task:
    """Create a task. Without assignee_ids the task is assigned to the actor."""
    users = get_project_users(actor.project_id, include_inactive=True)
    assignees = _resolve_assignees(actor, [actor.id] if assignee_ids is None else assignee_ids, users)

    task = Task(
        project_id=actor.project_id,
        created_by_user_id=actor.id,
        title=_validate_title(title),
        description=description,
        status=TASK_STATUS_TODO,
        priority=_validate_priority(priority or "MEDIUM"),
        deadline=deadline,
    )
    task.assignees = assignees
    db.session.add(task)
    db.session.commit()

    current_app.logger.info("Task created: task=%s project=%s by user=%s", task.id, task.project_id, actor.id)
    return task


def update_task(
    *,
    actor: User,
    task_id: int,
    title=None,
    description=...,
    status=None,
    is_completed=None,
    priority=None,
    deadline=...,
    assignee_ids=None,
) -> Task:
    """
    Edit a task the actor can access.

    description and deadline use ... as "not provided" so None clears them.
    is_completed is a shortcut for status DONE/TODO when status is omitted.
    """
    users = get_project_users(actor.project_id, include_inactive=True)
    task = _get_task(actor, task_id, users)

    if title is not None:
        task.title = _validate_title(title)
    if description is not ...:
        task.description = description
    if priority is not None:
        task.priority = _validate_priority(priority)
    if deadline is not ...:
        task.deadline = deadline

    if status is None and is_completed is not None:
        if not isinstance(is_completed, bool):
            raise TaskError("is_completed must be a boolean")
        status = TASK_STATUS_DONE if is_completed else TASK_STATUS_TODO
    if status is not None:
        _set_status(task, status)

    if assignee_ids is not None:
        task.assignees = _resolve_assignees(actor, assignee_ids, users)

    db.session.commit()
    return task


def delete_task(*, actor: User, task_id: int) -> None:
    users = get_project_users(actor.project_id, include_inactive=True)
    task = _get_task(actor, task_id, users)
    if not can_delete_task(actor, task, _managed_ids(actor, users)):
        raise TaskPermissionError("Task involves users outside your management")

    db.session.delete(task)
    db.session.commit()
    current_app.logger.info("Task deleted: task=%s by user=%s", task_id, actor.id)


# -- Checklist items and subtasks --


def _get_line(model, actor: User, line_id: int, label: str):
    line = db.session.get(model, line_id)
    if not line:
        raise TaskNotFoundError(f"{label} not found")
    _get_task(actor, line.task_id)
    return line


def _update_line(line, text_field: str, *, text=None, is_done=None, max_length: int) -> None:
    if text is not None:
        setattr(line, text_field, _validate_title(text, text_field, max_length))
    if is_done is not None:
        if not isinstance(is_done, bool):
            raise TaskError("is_done must be a boolean")
        line.is_done = is_done
    db.session.commit()


def add_checklist_item(*, actor: User, task_id: int, text) -> ChecklistItem:
    task = _get_task(actor, task_id)
    item = ChecklistItem(task_id=task.id, text=_validate_title(text, "text", MAX_LINE_LENGTH), is_done=False)
    db.session.add(item)
    db.session.commit()
    return item


def update_checklist_item(*, actor: User, item_id: int, text=None, is_done=None) -> ChecklistItem:
    item = _get_line(ChecklistItem, actor, item_id, "Checklist item")
    _update_line(item, "text", text=text, is_done=is_done, max_length=MAX_LINE_LENGTH)
    return item


def delete_checklist_item(*, actor: User, item_id: int) -> None:
    item = _get_line(ChecklistItem, actor, item_id, "Checklist item")
    db.session.delete(item)
    db.session.commit()


def add_subtask(*, actor: User, task_id: int, title) -> SubTask:
    task = _get_task(actor, task_id)
    subtask = SubTask(task_id=task.id, title=_validate_title(title), is_done=False)
    db.session.add(subtask)
    db.session.commit()
    return subtask


def update_subtask(*, actor: User, subtask_id: int, title=None, is_done=None) -> SubTask:
    subtask = _get_line(SubTask, actor, subtask_id, "Subtask")
    _update_line(subtask, "title", text=title, is_done=is_done, max_length=MAX_TITLE_LENGTH)
    return subtask


def delete_subtask(*, actor: User, subtask_id: int) -> None:
    subtask = _get_line(SubTask, actor, subtask_id, "Subtask")
    db.session.delete(subtask)
    db.session.commit()


# -- Notes --


def list_notes(actor: User, task_id: int) -> list[TaskNote]:
    return list(_get_task(actor, task_id).notes)


def add_note(*, actor: User, task_id: int, content) -> TaskNote:
    task = _get_task(actor, task_id)
    if not isinstance(content, str) or not content.strip():
        raise TaskError("content is required")

    note = TaskNote(task_id=task.id, user_id=actor.id, content=content.strip())
    db.session.add(note)
    db.session.commit()
    return note


def delete_note(*, actor: User, note_id: int) -> None:
    note = _get_line(TaskNote, actor, note_id, "Note")
    if note.user_id != actor.id:
        raise TaskPermissionError("You can only delete your own notes")
    db.session.delete(note)
    db.session.commit()
