# Overview: Service-layer operations for timekeeping; encapsulates business logic and database work.

"""
Timekeeping Service (Timer-Based)

WHY: Users start a timer to open a work session, pause/resume it with
breaks, and stop it to close the session. Sessions can also be typed in
after the fact as manual entries.

INVARIANTS (enforced here, relied on by the balance calculator):
- At most one open session per user
- At most one open break per open session
- Stopping a session closes its open break first
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from ..extensions import db
from ..models import WorkSession, WorkBreak, BREAK_REASON_MANUAL, BREAK_REASON_LEFT_AREA
from .balance_service import BreakInterval, SessionInterval
from teamclock.time_utils import utcnow, to_local


BREAK_REASONS = {BREAK_REASON_MANUAL, BREAK_REASON_LEFT_AREA}
MAX_LIST_LIMIT = 500


class TimekeepingError(ValueError):
    """Raised for invalid timekeeping operations."""
    pass


class EntryNotFoundError(TimekeepingError):
    """Raised when a session does not exist or belongs to someone else."""
    pass


def _get_open_session(user_id: int) -> WorkSession | None:
    return db.session.query(WorkSession).filter_by(user_id=user_id, end_at=None).first()


def _get_open_break(session: WorkSession) -> WorkBreak | None:
    return db.session.query(WorkBreak).filter_by(session_id=session.id, end_at=None).first()


def _require_open_session(user_id: int) -> WorkSession:
    session = _get_open_session(user_id)
    if not session:
        raise TimekeepingError("No active timer found")
    return session


def _get_owned_entry(user_id: int, entry_id: int) -> WorkSession:
    entry = db.session.get(WorkSession, entry_id)
    if not entry or entry.user_id != user_id:
        raise EntryNotFoundError("Time entry not found")
    return entry


def start_timer(*, user_id: int, project_id: int, description: str | None = None) -> WorkSession:
    if _get_open_session(user_id):
        raise TimekeepingError("Timer already running")

    session = WorkSession(
        user_id=user_id,
        project_id=project_id,
        start_at=utcnow(),
        description=description,
        is_manual=False,
    )
    db.session.add(session)
    db.session.commit()

    current_app.logger.info("Timer started: user=%s session=%s", user_id, session.id)
    return session


def stop_timer(*, user_id: int) -> WorkSession:
    session = _require_open_session(user_id)
    now = utcnow()

    open_break = _get_open_break(session)
    if open_break:
        open_break.end_at = now

    session.end_at = now
    db.session.commit()

    current_app.logger.info("Timer stopped: user=%s session=%s", user_id, session.id)
    return session


def pause_timer(*, user_id: int) -> WorkBreak:
    session = _require_open_session(user_id)

    if _get_open_break(session):
        raise TimekeepingError("Timer already paused")

    brk = WorkBreak(session_id=session.id, start_at=utcnow(), reason=BREAK_REASON_MANUAL)
    db.session.add(brk)
    db.session.commit()
    return brk


def resume_timer(*, user_id: int) -> WorkBreak:
    session = _require_open_session(user_id)

    brk = _get_open_break(session)
    if not brk:
        raise TimekeepingError("Timer is not paused")

    brk.end_at = utcnow()
    db.session.commit()
    return brk


def start_auto_break(*, user_id: int, reason: str = BREAK_REASON_LEFT_AREA) -> tuple[WorkBreak, bool]:
    """
    Start a break on behalf of location monitoring.

    Idempotent: if a break is already open it is returned unchanged.
    Returns (break, created).
    """
    if reason not in BREAK_REASONS:
        raise TimekeepingError(f"reason must be one of {', '.join(sorted(BREAK_REASONS))}")

    session = _get_open_session(user_id)
    if not session:
        raise TimekeepingError("No active work session")

    existing = _get_open_break(session)
    if existing:
        return existing, False

    brk = WorkBreak(session_id=session.id, start_at=utcnow(), reason=reason)
    db.session.add(brk)
    db.session.commit()
    return brk, True


def end_auto_break(*, user_id: int) -> WorkBreak:
    session = _get_open_session(user_id)
    if not session:
        raise TimekeepingError("No active work session")

    brk = _get_open_break(session)
    if not brk:
        raise TimekeepingError("No active break")

    brk.end_at = utcnow()
    db.session.commit()
    return brk


def create_manual_entry(
    *,
    user_id: int,
    project_id: int,
    start_at: datetime,
    end_at: datetime,
    description: str | None = None,
) -> WorkSession:
    if start_at is None or end_at is None:
        raise TimekeepingError("start and end are required")
    if end_at <= start_at:
        raise TimekeepingError("end must be after start")
    if end_at > utcnow():
        raise TimekeepingError("Manual entries cannot end in the future")

    session = WorkSession(
        user_id=user_id,
        project_id=project_id,
        start_at=start_at,
        end_at=end_at,
        description=description,
        is_manual=True,
    )
    db.session.add(session)
    db.session.commit()

    current_app.logger.info("Manual entry created: user=%s session=%s", user_id, session.id)
    return session


def update_entry(
    *,
    user_id: int,
    entry_id: int,
    description=...,
    start_at: datetime | None = None,
    end_at: datetime | None = None,
) -> WorkSession:
    """
    Edit one of the user's sessions.

    description uses ... as "not provided" so callers can clear it with None.
    The end of a running session is set by stopping the timer, not here.
    """
    entry = _get_owned_entry(user_id, entry_id)

    if end_at is not None and entry.is_open:
        raise TimekeepingError("Stop the timer to set an end time")
    if end_at is not None and end_at > utcnow():
        raise TimekeepingError("Entries cannot end in the future")

    new_start = start_at or entry.start_at
    new_end = end_at or entry.end_at
    if new_end is not None and new_end <= new_start:
        raise TimekeepingError("end must be after start")
    if entry.is_open and new_start > utcnow():
        raise TimekeepingError("start cannot be in the future")

    entry.start_at = new_start
    entry.end_at = new_end
    if description is not ...:
        entry.description = description

    db.session.commit()
    return entry


def delete_entry(*, user_id: int, entry_id: int) -> None:
    entry = _get_owned_entry(user_id, entry_id)
    db.session.delete(entry)
    db.session.commit()
    current_app.logger.info("Time entry deleted: user=%s session=%s", user_id, entry_id)


def get_current_status(user_id: int) -> dict:
    session = _get_open_session(user_id)
    if not session:
        return {"status": "CLOCKED_OUT", "entry": None, "on_break": False}

    open_break = _get_open_break(session)

    return {
        "status": "ON_BREAK" if open_break else "CLOCKED_IN",
        "entry": session.to_dict(),
        "on_break": bool(open_break),
    }


def list_entries(user_id: int, limit: int = 50) -> list[WorkSession]:
    limit = max(1, min(int(limit or 50), MAX_LIST_LIMIT))
    return (
        db.session.query(WorkSession)
        .filter_by(user_id=user_id)
        .order_by(WorkSession.start_at.desc())
        .limit(limit)
        .all()
    )


def build_snapshot(sessions: list[WorkSession], tz) -> list[SessionInterval]:
    """Convert stored sessions to calculator input in the zone tz."""
    return [
        SessionInterval(
            start=to_local(s.start_at, tz),
            end=to_local(s.end_at, tz),
            breaks=tuple(
                BreakInterval(start=to_local(b.start_at, tz), end=to_local(b.end_at, tz))
                for b in s.breaks
            ),
            is_manual=bool(s.is_manual),
            description=s.description,
            session_id=s.id,
        )
        for s in sessions
    ]
