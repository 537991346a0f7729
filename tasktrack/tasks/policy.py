"""
Task Access Policy — the single authorization rule for every task operation.

Matrix:

    operation   admin   user
    ─────────   ─────   ──────────────────────────────────────────
    read-many   all     rows where assigned_to == actor
    read-one    allow   allow iff task.assigned_to == actor
    update      allow   allow iff task.assigned_to == actor
    delete      allow   allow iff task.assigned_to == actor
    create      allow   allow unless assigned_to names another user
    reassign    allow   deny (callers drop the field, no error)

Decisions are pure functions of the actor's current role and the current
task snapshot; nothing is cached between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.errors import TaskTrackSecurityError
from tasktrack.engine.logging import AsyncLogQueue, emit, log_security_event

logger = logging.getLogger("tasktrack.tasks.policy")


class Operation(str, Enum):
    READ_MANY = "read-many"
    READ_ONE = "read-one"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REASSIGN = "reassign"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    # read-many only: restrict rows to this assignee (None = unscoped)
    scope: Optional[int] = None


ALLOW = Decision(allowed=True)


def authorize(
    actor: ExecutionContext,
    task: Any,
    operation: Operation,
    assigned_to: Optional[int] = None,
) -> Decision:
    """
    Decide whether *actor* may perform *operation* on *task*.

    Args:
        actor: The authenticated actor.
        task: Current task snapshot (anything with ``assigned_to``); None for
            read-many and create.
        operation: The requested operation.
        assigned_to: For create, the requested assignee (None = self).
    """
    operation = Operation(operation)

    if operation is Operation.READ_MANY:
        return ALLOW if actor.is_admin else Decision(allowed=True, scope=actor.user_id)

    if actor.is_admin:
        return ALLOW

    if operation is Operation.CREATE:
        if assigned_to is not None and assigned_to != actor.user_id:
            return Decision(False, "Only admins can assign tasks to other users")
        return ALLOW

    if operation is Operation.REASSIGN:
        return Decision(False, "Only admins can reassign tasks")

    if task is None or task.assigned_to != actor.user_id:
        return Decision(False, "Access denied")
    return ALLOW


def enforce(
    actor: ExecutionContext,
    task: Any,
    operation: Operation,
    assigned_to: Optional[int] = None,
    log_queue: Optional[AsyncLogQueue] = None,
) -> Decision:
    """
    authorize() or raise.

    Raises:
        TaskTrackSecurityError: When the decision is a deny.
    """
    decision = authorize(actor, task, operation, assigned_to=assigned_to)
    if decision.allowed:
        return decision

    task_id = getattr(task, "id", None)
    op = Operation(operation).value
    logger.warning(
        "Denied %s on task %s for user %s (%s)", op, task_id, actor.user_id, decision.reason,
    )
    emit(log_queue, log_security_event(
        "access_denied",
        operation=op,
        user_id=actor.user_id,
        role=actor.role,
        execution_id=actor.execution_id,
        task_id=task_id,
        reason=decision.reason,
    ))
    raise TaskTrackSecurityError(
        decision.reason or "Access denied",
        user_id=actor.user_id,
        execution_id=actor.execution_id,
        role=actor.role,
        operation=op,
    )


def scope_for(actor: ExecutionContext) -> Optional[int]:
    """Row filter for list queries: the assignee id, or None for admins."""
    return authorize(actor, None, Operation.READ_MANY).scope
