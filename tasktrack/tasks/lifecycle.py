"""
Task Lifecycle — creation defaults, partial updates and status transitions.

completed_at is derived from status:
    * → completed (from non-completed)  sets completed_at = now
    completed → completed               keeps completed_at
    completed → anything else           clears completed_at
Any status may move to any other status.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Any, List, Mapping, Optional

from tasktrack.db.models import STATUS_COMPLETED, Task
from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.validation import validate_payload
from tasktrack.tasks.policy import Operation, authorize
from tasktrack.tasks.schemas import (
    ASSIGNED_TO_KEYS,
    TASK_MESSAGES,
    TaskCreate,
    TaskUpdate,
)

# Fields copied verbatim from a patch when supplied
_PLAIN_FIELDS = ("title", "description", "due_date", "category", "priority")


@dataclass
class UpdateResult:
    task: Task
    fields_changed: List[str] = field(default_factory=list)
    status_transition: Optional[str] = None


def validate_create(
    payload: Mapping[str, Any],
    today: date,
    tz: Optional[tzinfo] = None,
) -> TaskCreate:
    """Validate a create payload; ``dueDate`` may not precede *today* in *tz*."""
    return validate_payload(
        TaskCreate, payload, TASK_MESSAGES, context={"today": today, "tz": tz},
    )


def validate_update(
    payload: Mapping[str, Any],
    actor: ExecutionContext,
    task: Task,
    tz: Optional[tzinfo] = None,
) -> TaskUpdate:
    """
    Validate a partial update.

    ``assignedTo`` is dropped before validation when the actor may not
    reassign, so a non-admin's value is neither applied nor reported.
    """
    if isinstance(payload, Mapping) and not authorize(actor, task, Operation.REASSIGN).allowed:
        payload = {k: v for k, v in payload.items() if k not in ASSIGNED_TO_KEYS}
    return validate_payload(TaskUpdate, payload, TASK_MESSAGES, context={"tz": tz})


def build_task(data: TaskCreate, actor: ExecutionContext, now: datetime) -> Task:
    """
    New Task from a validated payload.

    assigned_to defaults to the actor; created_by is always the actor.
    """
    task = Task(
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        category=data.category,
        priority=data.priority,
        status=data.status,
        assigned_to=data.assigned_to if data.assigned_to is not None else actor.user_id,
        created_by=actor.user_id,
        completed_at=now if data.status == STATUS_COMPLETED else None,
        created_at=now,
        updated_at=now,
    )
    return task


def transition_status(task: Task, new_status: str, now: datetime) -> Optional[str]:
    """
    Move *task* to *new_status*, maintaining completed_at.

    Returns:
        "old->new" when the status changed, else None.
    """
    old_status = task.status
    if new_status == STATUS_COMPLETED:
        if old_status != STATUS_COMPLETED or task.completed_at is None:
            task.completed_at = now
    else:
        task.completed_at = None
    task.status = new_status
    if old_status == new_status:
        return None
    return f"{old_status}->{new_status}"


def apply_update(
    task: Task,
    patch: TaskUpdate,
    actor: ExecutionContext,
    now: datetime,
) -> UpdateResult:
    """Apply the supplied fields of *patch* to *task* in place."""
    result = UpdateResult(task=task)

    for name in _PLAIN_FIELDS:
        if not patch.supplied(name):
            continue
        value = getattr(patch, name)
        if getattr(task, name) != value:
            setattr(task, name, value)
            result.fields_changed.append(name)

    if patch.supplied("status") and patch.status is not None:
        previous_completed_at = task.completed_at
        result.status_transition = transition_status(task, patch.status, now)
        if result.status_transition:
            result.fields_changed.append("status")
        if task.completed_at != previous_completed_at:
            result.fields_changed.append("completed_at")

    if (
        patch.supplied("assigned_to")
        and patch.assigned_to is not None
        and authorize(actor, task, Operation.REASSIGN).allowed
        and patch.assigned_to != task.assigned_to
    ):
        task.assigned_to = patch.assigned_to
        result.fields_changed.append("assigned_to")

    return result
