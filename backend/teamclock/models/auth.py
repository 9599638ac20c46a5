from __future__ import annotations

from ..extensions import db
from teamclock.time_utils import to_utc_z, utcnow


ROLE_ADMIN = "ADMIN"
ROLE_MANAGER = "MANAGER"
ROLE_EMPLOYEE = "EMPLOYEE"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_EMPLOYEE)


class User(db.Model):
    """
    User accounts for authentication, attribution and scheduling.

    MULTI-TENANT: A user belongs to at most one project (project_id is null
    until the user creates or joins one). Role is project-scoped.

    HIERARCHY: manager_id points at the user's direct manager in the same
    project. Assignments are validated against circular references before
    they are written (see hierarchy_service).

    SCHEDULE: daily_target (hours) and work_days (0=Sunday .. 6=Saturday)
    form the ScheduleConfig consumed by the balance calculator.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_project_id", "project_id"),
        db.Index("ix_users_manager_id", "manager_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=True)

    name = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    # ADMIN, MANAGER, EMPLOYEE
    role = db.Column(db.String(16), nullable=False, default=ROLE_EMPLOYEE)

    manager_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    # Null target means "no target" (treated as 0 hours)
    daily_target = db.Column(db.Float, nullable=True, default=8.0)
    work_days = db.Column(db.JSON, nullable=False, default=lambda: [0, 1, 2, 3, 4])

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    project = db.relationship("Project", foreign_keys=[project_id], backref=db.backref("users", lazy=True))
    manager = db.relationship("User", remote_side=[id], backref=db.backref("direct_reports", lazy=True))

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "manager_id": self.manager_id,
            "daily_target": self.daily_target,
            "work_days": list(self.work_days or []),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


class SessionToken(db.Model):
    """
    Secure session token management with tenant context.

    MULTI-TENANT: Session tokens carry the project_id the user belonged to at
    login. Creating or joining a project re-issues the token context.

    SECURITY NOTES:
    - Tokens stored hashed in database (SHA-256)
    - 24-hour absolute timeout
    - 2-hour idle timeout
    - Revocable on logout or suspicious activity
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # Null until the user belongs to a project
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=True, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    user = db.relationship("User", backref=db.backref("session_tokens", lazy=True))
    project = db.relationship("Project", backref=db.backref("session_tokens", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "project_id": self.project_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
