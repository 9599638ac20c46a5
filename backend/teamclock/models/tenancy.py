from __future__ import annotations

from ..extensions import db
from teamclock.time_utils import to_utc_z


class Project(db.Model):
    """
    Multi-tenant root: every workspace is a Project.

    WHY: Teams share one database. Users, time entries and settings belong to
    exactly one project and no data may cross project boundaries.

    DESIGN:
    - Users join a project with its join_code
    - All queries must be scoped by project_id
    - timezone drives calendar-day bucketing for every report in the project
    """
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    join_code = db.Column(db.String(16), nullable=False, unique=True, index=True)

    # IANA zone name, e.g. "Asia/Jerusalem"
    timezone = db.Column(db.String(64), nullable=False, default="UTC")

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    # Creator user id (no FK; users.project_id already points here)
    created_by_user_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "join_code": self.join_code,
            "timezone": self.timezone,
            "is_active": self.is_active,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
