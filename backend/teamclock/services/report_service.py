# Overview: Service-layer operations for reporting; dashboard balance, monthly report and CSV export, calendar totals.

"""
Reporting Service

WHY: The dashboard widget, the monthly report (and its CSV export) and the
calendar view are presentations of one computation. Each loads a snapshot of the
user's sessions, converts it to the project's timezone and hands it to
balance_service.calculate_balance; nothing here does its own arithmetic
on durations.
"""

from __future__ import annotations

import calendar
import csv
import io
from datetime import date, datetime, timedelta

from ..extensions import db
from ..models import User, WorkSession
from .balance_service import BalanceResult, DayBalance, ScheduleConfig, calculate_balance, summarize
from .hierarchy_service import filter_visible_users
from .permission_service import get_role_permissions
from .project_service import get_project_users, get_project_zone, require_user_in_project
from .timekeeping_service import build_snapshot
from teamclock.time_utils import local_day_bounds_utc, to_local, utcnow


MAX_CALENDAR_RANGE_DAYS = 366

# Local day bounds shift by up to a day when converted to UTC
FIRST_REPORTABLE_DAY = date.min + timedelta(days=1)
LAST_REPORTABLE_DAY = date.max - timedelta(days=1)

STATUS_MET = "MET"
STATUS_MISSED = "MISSED"
STATUS_OFF = "OFF"
STATUS_PENDING = "PENDING"

CSV_HEADERS = (
    "Date", "Day", "Employee", "Start Time", "End Time",
    "Worked (Hrs)", "Break (Hrs)", "Target (Hrs)", "Balance (Hrs)",
    "Status", "Is Manual", "Notes",
)


class ReportError(ValueError):
    """Raised when report parameters are invalid."""
    pass


class ReportAccessError(Exception):
    """Raised when the actor may not view the requested user's reports."""
    pass


def resolve_report_subject(actor: User, user_id: int | None) -> User:
    """
    Return the user whose report is requested.

    Anyone may read their own reports. Reading someone else's requires
    VIEW_TEAM_REPORTS and the target being visible in the actor's hierarchy.
    """
    if not user_id or user_id == actor.id:
        return actor

    target = require_user_in_project(user_id, actor.project_id, actor_id=actor.id)

    if "VIEW_TEAM_REPORTS" not in get_role_permissions(actor.role):
        raise ReportAccessError("You can only view your own reports")

    visible = filter_visible_users(get_project_users(actor.project_id, include_inactive=True), actor)
    if target.id not in {u.id for u in visible}:
        raise ReportAccessError("You don't have access to this user's reports")
    return target


def schedule_for(user: User) -> ScheduleConfig:
    return ScheduleConfig.from_settings(user.daily_target, user.work_days)


def load_snapshot(user: User, tz, start_day: date | None = None, end_day: date | None = None):
    """
    Sessions starting inside the local [start_day, end_day] plus any open
    session, converted to naive local time in tz.
    """
    query = db.session.query(WorkSession).filter(WorkSession.user_id == user.id)

    conditions = []
    if start_day is not None:
        conditions.append(WorkSession.start_at >= local_day_bounds_utc(start_day, tz)[0])
    if end_day is not None:
        conditions.append(WorkSession.start_at < local_day_bounds_utc(end_day, tz)[1])
    if conditions:
        query = query.filter(db.or_(db.and_(*conditions), WorkSession.end_at.is_(None)))

    return build_snapshot(query.order_by(WorkSession.start_at.asc()).all(), tz)


def _require_reportable(day: date) -> None:
    if not FIRST_REPORTABLE_DAY <= day <= LAST_REPORTABLE_DAY:
        raise ReportError("Date out of range")


def _compute(user: User, start_day: date | None, end_day: date | None, now: datetime | None):
    tz = get_project_zone(user.project_id)
    local_now = to_local(now or utcnow(), tz)
    sessions = load_snapshot(user, tz, start_day, end_day)
    result = calculate_balance(
        sessions,
        schedule_for(user),
        now=local_now,
        start_date=start_day,
        end_date=end_day,
    )
    return result, tz, local_now


def dashboard_balance(user: User, now: datetime | None = None) -> dict:
    """
    Running balance since the account was created, including today.

    now is UTC-naive (defaults to the server clock).
    """
    tz = get_project_zone(user.project_id)
    today = to_local(now or utcnow(), tz).date()
    start_day = min(to_local(user.created_at or utcnow(), tz).date(), today)

    result, _, _ = _compute(user, start_day, today, now)
    summary = result.summary

    return {
        "user_id": user.id,
        "total_worked_hours": summary.worked_hours,
        "total_target_hours": summary.target_hours,
        "balance": summary.balance_hours,
        "days_worked": summary.work_day_count,
        "days_with_sessions": summary.days_with_sessions,
        "today_worked": result.today_worked_hours,
        "currently_active": result.currently_active,
        "daily_target": user.daily_target,
        "work_days": list(user.work_days or []),
        "range_start": start_day.isoformat(),
        "range_end": today.isoformat(),
    }


def day_status(day: DayBalance, today: date) -> str:
    if not day.is_work_day:
        return STATUS_OFF
    if day.day > today:
        return STATUS_PENDING
    if day.worked_hours >= day.target_hours:
        return STATUS_MET
    return STATUS_MISSED


def _month_bounds(year, month) -> tuple[date, date]:
    if not 1 <= month <= 12 or not 1970 <= year <= 9999:
        raise ReportError("Invalid year or month")

    start_day = date(year, month, 1)
    end_day = date(year, month, calendar.monthrange(year, month)[1])
    _require_reportable(end_day)
    return start_day, end_day


def monthly_report(user: User, year: int, month: int, now: datetime | None = None) -> dict:
    """
    Per-day rows for one calendar month plus two summaries: the full month
    ("summary", future work days included in the target) and "to_date"
    (days up to today only).
    """
    start_day, end_day = _month_bounds(year, month)
    result, _, local_now = _compute(user, start_day, end_day, now)
    today = local_now.date()

    days = []
    for day in result.days.values():
        row = day.to_dict()
        row["status"] = day_status(day, today)
        days.append(row)

    to_date = summarize(d for d in result.days.values() if d.day <= today)

    return {
        "user_id": user.id,
        "year": year,
        "month": month,
        "days": days,
        "summary": result.summary.to_dict(),
        "to_date": to_date.to_dict(),
        "today_worked": result.today_worked_hours,
        "currently_active": result.currently_active,
    }


def calendar_totals(user: User, start_day: date, end_day: date, now: datetime | None = None) -> dict:
    """Worked totals per date for calendar overlays."""
    if start_day is None or end_day is None:
        raise ReportError("start and end are required")
    if end_day < start_day:
        raise ReportError("end must not be before start")
    _require_reportable(start_day)
    _require_reportable(end_day)
    if (end_day - start_day).days >= MAX_CALENDAR_RANGE_DAYS:
        raise ReportError(f"Range cannot exceed {MAX_CALENDAR_RANGE_DAYS} days")

    result, _, _ = _compute(user, start_day, end_day, now)

    return {
        "user_id": user.id,
        "start": start_day.isoformat(),
        "end": end_day.isoformat(),
        "days": [
            {
                "date": d.day.isoformat(),
                "worked_hours": d.worked_hours,
                "target_hours": d.target_hours,
                "balance_hours": d.balance_hours,
                "is_work_day": d.is_work_day,
                "has_open_session": d.has_open_session,
            }
            for d in result.days.values()
        ],
        "summary": result.summary.to_dict(),
    }


def day_details(user: User, day: date, now: datetime | None = None) -> dict:
    """Sessions (with breaks) that started on the local date, and its balance."""
    if day is None:
        raise ReportError("date is required")
    _require_reportable(day)

    result, tz, _ = _compute(user, day, day, now)
    start_utc, end_utc = local_day_bounds_utc(day, tz)
    entries = (
        db.session.query(WorkSession)
        .filter(
            WorkSession.user_id == user.id,
            WorkSession.start_at >= start_utc,
            WorkSession.start_at < end_utc,
        )
        .order_by(WorkSession.start_at.asc())
        .all()
    )

    balance = result.day(day)
    return {
        "user_id": user.id,
        "date": day.isoformat(),
        "entries": [e.to_dict() for e in entries],
        "balance": balance.to_dict() if balance else None,
    }


def get_result(user: User, start_day: date | None, end_day: date | None, now: datetime | None = None) -> BalanceResult:
    """Raw calculator output for a user over an optional local date range."""
    result, _, _ = _compute(user, start_day, end_day, now)
    return result


def monthly_csv(user: User, year: int, month: int, now: datetime | None = None) -> str:
    """
    The monthly report as CSV, one row per calendar day.

    Times are local HH:MM, hours are rounded to two decimals and Notes joins
    the descriptions of the sessions that started that day.
    """
    start_day, end_day = _month_bounds(year, month)
    result, tz, local_now = _compute(user, start_day, end_day, now)
    today = local_now.date()

    entries = (
        db.session.query(WorkSession)
        .filter(
            WorkSession.user_id == user.id,
            WorkSession.start_at >= local_day_bounds_utc(start_day, tz)[0],
            WorkSession.start_at < local_day_bounds_utc(end_day, tz)[1],
        )
        .order_by(WorkSession.start_at.asc())
        .all()
    )
    notes: dict[date, list[str]] = {}
    for entry in entries:
        if entry.description:
            notes.setdefault(to_local(entry.start_at, tz).date(), []).append(entry.description)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADERS)

    employee = user.name or user.email
    for day in result.days.values():
        writer.writerow([
            day.day.isoformat(),
            day.day_name,
            employee,
            day.first_start.strftime("%H:%M") if day.first_start else "",
            day.last_end.strftime("%H:%M") if day.last_end and not day.has_open_session else "",
            f"{day.worked_hours:.2f}",
            f"{day.break_hours:.2f}",
            f"{day.target_hours:.2f}",
            f"{day.balance_hours:.2f}",
            day_status(day, today),
            "Yes" if day.has_manual_entries else "No",
            "; ".join(notes.get(day.day, [])),
        ])
    return buffer.getvalue()
