"""
Task Store — persistence and composable filtered enumeration.

Orderings:
    created_desc    default listing, newest first
    priority_desc   today view, high → medium → low
    completed_desc  archive view, most recently completed first
    due_asc         overdue view, oldest due date first
Each ordering ends with an id tie-break so results are stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import case
from sqlalchemy.orm import Query, Session

from tasktrack.db.base import casefold, ensure_utc
from tasktrack.db.models import ID_MAX, STATUS_COMPLETED, Task
from tasktrack.engine.errors import TaskTrackNotFoundError
from tasktrack.users.store import user_ref

ORDER_CREATED_DESC = "created_desc"
ORDER_PRIORITY_DESC = "priority_desc"
ORDER_COMPLETED_DESC = "completed_desc"
ORDER_DUE_ASC = "due_asc"

_PRIORITY_RANK = case(
    (Task.priority == "high", 3),
    (Task.priority == "medium", 2),
    else_=1,
)

_ORDERINGS = {
    ORDER_CREATED_DESC: (Task.created_at.desc(), Task.id.desc()),
    ORDER_PRIORITY_DESC: (_PRIORITY_RANK.desc(), Task.id.asc()),
    ORDER_COMPLETED_DESC: (Task.completed_at.desc(), Task.id.desc()),
    ORDER_DUE_ASC: (Task.due_date.asc(), Task.id.asc()),
}


@dataclass
class TaskFilter:
    """Composable predicate set for list queries. None means "no constraint"."""

    assigned_to: Optional[int] = None
    status: Optional[str] = None
    search: Optional[str] = None
    due_from: Optional[date] = None
    due_before: Optional[date] = None
    exclude_completed: bool = False
    order: str = ORDER_CREATED_DESC

    def apply(self, query: Query) -> Query:
        if self.assigned_to is not None:
            query = query.filter(Task.assigned_to == self.assigned_to)
        if self.status:
            query = query.filter(Task.status == self.status)
        if self.search:
            query = query.filter(
                casefold(Task.title).contains(self.search.casefold(), autoescape=True)
            )
        if self.due_from is not None:
            query = query.filter(Task.due_date >= self.due_from)
        if self.due_before is not None:
            query = query.filter(Task.due_date < self.due_before)
        if self.exclude_completed:
            query = query.filter(Task.status != STATUS_COMPLETED)
        return query.order_by(*_ORDERINGS[self.order])


def _iso(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value).isoformat()
    return value.isoformat()


def serialize_task(task: Task) -> Dict[str, Any]:
    """Resolved task payload with the assignee and creator joined in."""
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "dueDate": _iso(task.due_date),
        "category": task.category,
        "priority": task.priority,
        "status": task.status,
        "assignedTo": user_ref(task.assignee),
        "createdBy": user_ref(task.creator),
        "completedAt": _iso(task.completed_at),
        "createdAt": _iso(task.created_at),
        "updatedAt": _iso(task.updated_at),
    }


class TaskStore:
    def __init__(self, session: Session):
        self._session = session

    def list_tasks(self, task_filter: Optional[TaskFilter] = None) -> List[Task]:
        task_filter = task_filter or TaskFilter()
        return task_filter.apply(self._session.query(Task)).all()

    def get_by_id(self, task_id: int) -> Task:
        """
        Raises:
            TaskTrackNotFoundError: If no task has *task_id*.
        """
        task = self._session.get(Task, task_id) if 0 < task_id <= ID_MAX else None
        if task is None:
            raise TaskTrackNotFoundError(
                "Task not found", resource="task", resource_id=task_id,
            )
        return task

    def add(self, task: Task) -> Task:
        self._session.add(task)
        return self.save(task)

    def save(self, task: Task) -> Task:
        """Flush pending changes and reload so joined users are current."""
        self._session.flush()
        self._session.refresh(task)
        return task

    def delete(self, task: Task) -> None:
        self._session.delete(task)
        self._session.flush()
