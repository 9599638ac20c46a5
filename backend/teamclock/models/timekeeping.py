from __future__ import annotations

from ..extensions import db
from teamclock.time_utils import to_utc_z, utcnow


class WorkSession(db.Model):
    """
    One continuous attendance interval (clock-in to clock-out).

    LIFECYCLE:
    - Open: end_at is NULL, the timer is running
    - Closed: end_at set by stop, or given on manual entry

    INVARIANT: at most one open session per user. Enforced by
    timekeeping_service, not by the schema.
    """
    __tablename__ = "work_sessions"
    __table_args__ = (
        db.Index("ix_work_sessions_user_start", "user_id", "start_at"),
        db.Index("ix_work_sessions_user_open", "user_id", "end_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)

    start_at = db.Column(db.DateTime(timezone=True), nullable=False)
    end_at = db.Column(db.DateTime(timezone=True), nullable=True)

    description = db.Column(db.Text, nullable=True)

    # Manual entries are typed in after the fact; timer entries come from start/stop
    is_manual = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("work_sessions", lazy=True))
    project = db.relationship("Project", backref=db.backref("work_sessions", lazy=True))
    breaks = db.relationship(
        "WorkBreak",
        back_populates="session",
        order_by="WorkBreak.start_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_open(self) -> bool:
        return self.end_at is None

    def to_dict(self, include_breaks: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "project_id": self.project_id,
            "start_at": to_utc_z(self.start_at),
            "end_at": to_utc_z(self.end_at) if self.end_at else None,
            "description": self.description,
            "is_manual": self.is_manual,
            "is_open": self.is_open,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_breaks:
            data["breaks"] = [b.to_dict() for b in self.breaks]
        return data


BREAK_REASON_MANUAL = "manual"
BREAK_REASON_LEFT_AREA = "left_work_area"


class WorkBreak(db.Model):
    """
    Break periods within a work session, excluded from worked time.

    At most one open break (end_at NULL) per open session.
    """
    __tablename__ = "work_breaks"
    __table_args__ = (
        db.Index("ix_work_breaks_session", "session_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey("work_sessions.id"), nullable=False)

    start_at = db.Column(db.DateTime(timezone=True), nullable=False)
    end_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # manual (pause button) or left_work_area (location monitoring)
    reason = db.Column(db.String(32), nullable=False, default=BREAK_REASON_MANUAL)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    session = db.relationship("WorkSession", back_populates="breaks")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "start_at": to_utc_z(self.start_at),
            "end_at": to_utc_z(self.end_at) if self.end_at else None,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
