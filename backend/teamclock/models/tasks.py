from __future__ import annotations

from datetime import timezone

from ..extensions import db
from teamclock.time_utils import to_utc_z, utcnow


TASK_STATUS_TODO = "TODO"
TASK_STATUS_IN_PROGRESS = "IN_PROGRESS"
TASK_STATUS_DONE = "DONE"
TASK_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_IN_PROGRESS, TASK_STATUS_DONE)

TASK_PRIORITIES = ("LOW", "MEDIUM", "HIGH", "URGENT")


task_assignees = db.Table(
    "task_assignees",
    db.Column("task_id", db.Integer, db.ForeignKey("tasks.id"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id"), primary_key=True),
)


class Task(db.Model):
    """
    Work item inside a project, assigned to one or more members.

    Checklist items and subtasks are both done/not-done lines on the task:
    checklist items are short acceptance steps, subtasks are named pieces of
    work. Notes are the task's comment thread.
    """
    __tablename__ = "tasks"
    __table_args__ = (
        db.Index("ix_tasks_project_status", "project_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default=TASK_STATUS_TODO)  # TODO, IN_PROGRESS, DONE
    priority = db.Column(db.String(16), nullable=False, default="MEDIUM")  # LOW, MEDIUM, HIGH, URGENT

    deadline = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    assignees = db.relationship("User", secondary=task_assignees, lazy="selectin", order_by="User.id")
    checklist_items = db.relationship(
        "ChecklistItem",
        back_populates="task",
        order_by="ChecklistItem.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    subtasks = db.relationship(
        "SubTask",
        back_populates="task",
        order_by="SubTask.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    notes = db.relationship(
        "TaskNote",
        back_populates="task",
        order_by="TaskNote.id.desc()",
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def assignee_ids(self) -> list[int]:
        return [u.id for u in self.assignees]

    def is_overdue(self, now=None) -> bool:
        if self.deadline is None or self.status == TASK_STATUS_DONE:
            return False
        deadline = self.deadline
        if deadline.tzinfo is not None:
            deadline = deadline.astimezone(timezone.utc).replace(tzinfo=None)
        return deadline < (now or utcnow())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "created_by_user_id": self.created_by_user_id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "is_completed": self.status == TASK_STATUS_DONE,
            "priority": self.priority,
            "deadline": to_utc_z(self.deadline) if self.deadline else None,
            "is_overdue": self.is_overdue(),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "assignees": [{"id": u.id, "name": u.name} for u in self.assignees],
            "checklist": [item.to_dict() for item in self.checklist_items],
            "subtasks": [item.to_dict() for item in self.subtasks],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ChecklistItem(db.Model):
    __tablename__ = "task_checklist_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id"), nullable=False, index=True)
    text = db.Column(db.String(500), nullable=False)
    is_done = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    task = db.relationship("Task", back_populates="checklist_items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "text": self.text,
            "is_done": self.is_done,
            "created_at": to_utc_z(self.created_at),
        }


class SubTask(db.Model):
    __tablename__ = "task_subtasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id"), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    is_done = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    task = db.relationship("Task", back_populates="subtasks")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "title": self.title,
            "is_done": self.is_done,
            "created_at": to_utc_z(self.created_at),
        }


class TaskNote(db.Model):
    """Comment on a task. Only the author may delete it."""
    __tablename__ = "task_notes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    task_id = db.Column(db.Integer, db.ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    task = db.relationship("Task", back_populates="notes")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "user": {"id": self.user.id, "name": self.user.name} if self.user else None,
            "content": self.content,
            "created_at": to_utc_z(self.created_at),
        }
