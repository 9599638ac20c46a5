# Overview: Attendance balance calculator; derives worked, break, target and balance hours per day.

"""
Attendance Balance Calculator

WHY: Dashboard widgets, monthly reports and calendar annotations all need the
same figures (worked hours, targets, extra/missing hours). They all read the
one date -> DayBalance mapping produced here.

PURE: No database access and no clock reads. Callers pass an immutable
snapshot of one user's sessions, the user's schedule and an explicit `now`.
Timestamps must already be in the timezone used for day bucketing
(see report_service.load_snapshot).

POLICIES:
- Open sessions and open breaks are measured up to `now`
- A session's whole net duration is credited to the date it started on
  (no splitting at midnight)
- Anomalies are clamped to zero at the smallest scope: a break is cut to its
  session's bounds, a session never nets below zero
- Overlapping sessions are summed as given
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator


SECONDS_PER_HOUR = 3600.0

# Index matches the stored work_days convention: 0=Sunday .. 6=Saturday
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def sunday_based_weekday(day: date) -> int:
    """Weekday with Sunday=0, the convention used by User.work_days."""
    return (day.weekday() + 1) % 7


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Every calendar date in [start, end]; nothing when start > end."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def _hours(delta: timedelta) -> float:
    return delta.total_seconds() / SECONDS_PER_HOUR


@dataclass(frozen=True)
class BreakInterval:
    start: datetime
    end: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class SessionInterval:
    """Calculator-side view of a WorkSession and its breaks."""
    start: datetime
    end: datetime | None = None
    breaks: tuple[BreakInterval, ...] = ()
    is_manual: bool = False
    description: str | None = None
    session_id: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass(frozen=True)
class ScheduleConfig:
    """Daily target hours applied on the active weekdays (Sunday=0)."""
    daily_target_hours: float = 0.0
    work_days: frozenset[int] = frozenset()

    @classmethod
    def from_settings(cls, daily_target: float | None, work_days: Iterable[int] | None) -> "ScheduleConfig":
        days = frozenset(
            d for d in (work_days or [])
            if isinstance(d, int) and not isinstance(d, bool) and 0 <= d <= 6
        )
        return cls(daily_target_hours=float(daily_target or 0.0), work_days=days)

    def is_work_day(self, day: date) -> bool:
        return sunday_based_weekday(day) in self.work_days

    def target_for(self, day: date) -> float:
        return self.daily_target_hours if self.is_work_day(day) else 0.0


@dataclass
class DayBalance:
    day: date
    is_work_day: bool = False
    target_hours: float = 0.0
    worked_hours: float = 0.0
    break_hours: float = 0.0
    session_count: int = 0
    has_manual_entries: bool = False
    has_open_session: bool = False
    first_start: datetime | None = None
    last_end: datetime | None = None

    @property
    def balance_hours(self) -> float:
        return self.worked_hours - self.target_hours

    @property
    def day_name(self) -> str:
        return WEEKDAY_NAMES[sunday_based_weekday(self.day)]

    def add_session(self, session: SessionInterval, net_hours: float, break_hours: float) -> None:
        self.worked_hours += net_hours
        self.break_hours += break_hours
        self.session_count += 1
        self.has_manual_entries = self.has_manual_entries or session.is_manual
        if self.first_start is None or session.start < self.first_start:
            self.first_start = session.start
        if session.is_open:
            self.has_open_session = True
        elif self.last_end is None or session.end > self.last_end:
            self.last_end = session.end

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "day_name": self.day_name,
            "is_work_day": self.is_work_day,
            "target_hours": self.target_hours,
            "worked_hours": self.worked_hours,
            "break_hours": self.break_hours,
            "balance_hours": self.balance_hours,
            "session_count": self.session_count,
            "has_manual_entries": self.has_manual_entries,
            "has_open_session": self.has_open_session,
            "first_start": self.first_start.isoformat() if self.first_start else None,
            # A running session has no end yet
            "last_end": self.last_end.isoformat() if self.last_end and not self.has_open_session else None,
        }


@dataclass(frozen=True)
class BalanceSummary:
    worked_hours: float = 0.0
    break_hours: float = 0.0
    target_hours: float = 0.0
    work_day_count: int = 0
    days_with_sessions: int = 0

    @property
    def balance_hours(self) -> float:
        return self.worked_hours - self.target_hours

    def to_dict(self) -> dict:
        return {
            "worked_hours": self.worked_hours,
            "break_hours": self.break_hours,
            "target_hours": self.target_hours,
            "balance_hours": self.balance_hours,
            "work_day_count": self.work_day_count,
            "days_with_sessions": self.days_with_sessions,
        }


@dataclass(frozen=True)
class BalanceResult:
    days: dict[date, DayBalance]
    summary: BalanceSummary
    today_worked_hours: float
    currently_active: bool
    now: datetime
    range_start: date | None = None
    range_end: date | None = None

    def day(self, day: date) -> DayBalance | None:
        return self.days.get(day)

    def to_dict(self) -> dict:
        return {
            "days": [d.to_dict() for d in self.days.values()],
            "summary": self.summary.to_dict(),
            "today_worked_hours": self.today_worked_hours,
            "currently_active": self.currently_active,
            "now": self.now.isoformat(),
            "range_start": self.range_start.isoformat() if self.range_start else None,
            "range_end": self.range_end.isoformat() if self.range_end else None,
        }


def measure_break(brk: BreakInterval, session_start: datetime, session_end: datetime, now: datetime) -> float:
    """Break hours inside [session_start, session_end]; an open break runs to now."""
    start = max(brk.start, session_start)
    end = min(brk.end if brk.end is not None else now, session_end)
    if end <= start:
        return 0.0
    return _hours(end - start)


def measure_session(session: SessionInterval, now: datetime) -> tuple[float, float]:
    """
    Return (net worked hours, break hours) for one session.

    An open session ends at `now`. A session whose end precedes its start
    counts as zero. Net never drops below zero.
    """
    effective_end = session.end if session.end is not None else now
    if effective_end <= session.start:
        return 0.0, 0.0

    gross = _hours(effective_end - session.start)
    break_hours = sum(
        measure_break(brk, session.start, effective_end, now) for brk in session.breaks
    )
    # Overlapping breaks can still add up past the session length
    break_hours = min(break_hours, gross)
    return max(gross - break_hours, 0.0), break_hours


def summarize(days: Iterable[DayBalance]) -> BalanceSummary:
    worked = 0.0
    breaks = 0.0
    target = 0.0
    work_day_count = 0
    with_sessions = 0
    for day in days:
        worked += day.worked_hours
        breaks += day.break_hours
        target += day.target_hours
        if day.is_work_day:
            work_day_count += 1
        if day.session_count:
            with_sessions += 1
    return BalanceSummary(
        worked_hours=worked,
        break_hours=breaks,
        target_hours=target,
        work_day_count=work_day_count,
        days_with_sessions=with_sessions,
    )


def calculate_balance(
    sessions: Iterable[SessionInterval],
    schedule: ScheduleConfig,
    *,
    now: datetime,
    start_date: date | None = None,
    end_date: date | None = None,
) -> BalanceResult:
    """
    Compute per-day balances and the range summary for one user.

    Without a range, the mapping covers every date that has a session.
    With a range, it covers every date in [start_date, end_date] (sessions
    starting outside the range are left out). If only one bound is given,
    the other defaults to the earliest session date or to now's date.
    """
    sessions = list(sessions)
    today = now.date()

    has_range = start_date is not None or end_date is not None
    if has_range:
        if start_date is None:
            starts = [s.start.date() for s in sessions]
            start_date = min(starts) if starts else end_date
        if end_date is None:
            end_date = max(today, start_date)

    days: dict[date, DayBalance] = {}

    def _day(day: date) -> DayBalance:
        entry = days.get(day)
        if entry is None:
            entry = DayBalance(
                day=day,
                is_work_day=schedule.is_work_day(day),
                target_hours=schedule.target_for(day),
            )
            days[day] = entry
        return entry

    if has_range:
        for day in iter_dates(start_date, end_date):
            _day(day)

    today_worked = 0.0
    currently_active = False

    for session in sessions:
        net, break_hours = measure_session(session, now)
        day = session.start.date()

        if session.is_open:
            currently_active = True
        if day == today:
            today_worked += net

        if has_range and not (start_date <= day <= end_date):
            continue
        _day(day).add_session(session, net, break_hours)

    ordered = dict(sorted(days.items()))

    return BalanceResult(
        days=ordered,
        summary=summarize(ordered.values()),
        today_worked_hours=today_worked,
        currently_active=currently_active,
        now=now,
        range_start=start_date if has_range else None,
        range_end=end_date if has_range else None,
    )
