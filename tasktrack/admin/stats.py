"""
Aggregation Engine — read-only dashboard statistics over the task store.

Computed on demand for every call: no caching, no incremental counters.
Week windows are whole days in the reference time zone:

    last week      [today - 7d,  today)
    previous week  [today - 14d, today - 7d)

Today itself belongs to neither window.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from tasktrack.db.models import STATUS_COMPLETED, STATUS_PENDING, Task, User
from tasktrack.engine.clock import Clock

TREND_INCREASE = "increase"
TREND_DECREASE = "decrease"
TREND_NO_CHANGE = "no-change"


@dataclass(frozen=True)
class WeekComparison:
    trend: str
    difference: int
    # None when there is no previous-week baseline to divide by
    percent: Optional[float]
    baseline: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend": self.trend,
            "difference": self.difference,
            "percent": self.percent,
            "baseline": self.baseline,
        }


def compare_weeks(last_week: int, previous_week: int) -> WeekComparison:
    """
    Classify the week-over-week change in task creation.

    percent = |last - previous| / previous * 100, rounded to the unit, only
    when previous > 0. An empty previous week with activity this week is an
    increase with ``baseline`` False and no percent; two empty weeks are no
    change, also without a baseline.
    """
    difference = last_week - previous_week
    if previous_week == 0:
        if last_week > 0:
            return WeekComparison(TREND_INCREASE, difference, None, baseline=False)
        return WeekComparison(TREND_NO_CHANGE, 0, None, baseline=False)

    percent = round(abs(difference) / previous_week * 100)
    if difference > 0:
        return WeekComparison(TREND_INCREASE, difference, percent)
    if difference < 0:
        return WeekComparison(TREND_DECREASE, difference, percent)
    return WeekComparison(TREND_NO_CHANGE, 0, 0)


def completion_rate(completed: int, total: int) -> int:
    """Whole-number completion percentage; 0 when there are no tasks."""
    if total <= 0:
        return 0
    return round(completed / total * 100)


def _count_created(session: Session, start, end) -> int:
    return (
        session.query(func.count(Task.id))
        .filter(Task.created_at >= start, Task.created_at < end)
        .scalar()
        or 0
    )


def dashboard_stats(session: Session, clock: Clock) -> Dict[str, Any]:
    """Totals, weekly creation counts, average per user and status distribution."""
    total_tasks = session.query(func.count(Task.id)).scalar() or 0
    total_users = session.query(func.count(User.id)).scalar() or 0

    today = clock.start_of_today()
    seven_days_ago = clock.days_ago(7)
    fourteen_days_ago = clock.days_ago(14)

    tasks_last_week = _count_created(session, seven_days_ago, today)
    tasks_previous_week = _count_created(session, fourteen_days_ago, seven_days_ago)

    average = round(tasks_last_week / total_users, 2) if total_users > 0 else 0

    rows = (
        session.query(Task.status, func.count(Task.id))
        .group_by(Task.status)
        .order_by(Task.status)
        .all()
    )
    distribution = [{"status": status, "count": count} for status, count in rows if count > 0]

    return {
        "totalTasks": total_tasks,
        "totalUsers": total_users,
        "tasksLastWeek": tasks_last_week,
        "tasksPreviousWeek": tasks_previous_week,
        "averageTasksPerUser": average,
        "statusDistribution": distribution,
        "weekComparison": compare_weeks(tasks_last_week, tasks_previous_week).to_dict(),
    }


def per_user_stats(session: Session) -> List[Dict[str, Any]]:
    """
    Task counts for every user that has at least one task assigned.

    Users without assigned tasks do not appear. completionRate is derived
    from the raw counts on read.
    """
    completed = func.sum(case((Task.status == STATUS_COMPLETED, 1), else_=0))
    pending = func.sum(case((Task.status == STATUS_PENDING, 1), else_=0))
    rows = (
        session.query(
            Task.assigned_to,
            User.name,
            User.email,
            func.count(Task.id),
            completed,
            pending,
        )
        .join(User, User.id == Task.assigned_to)
        .group_by(Task.assigned_to, User.name, User.email)
        .order_by(Task.assigned_to)
        .all()
    )
    return [
        {
            "userId": user_id,
            "userName": name,
            "userEmail": email,
            "totalTasks": total,
            "completedTasks": int(done or 0),
            "pendingTasks": int(waiting or 0),
            "completionRate": completion_rate(int(done or 0), total),
        }
        for user_id, name, email, total, done, waiting in rows
    ]
