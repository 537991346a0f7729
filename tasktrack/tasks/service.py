"""
Task Service — every task operation runs actor → policy → lifecycle → store.

One instance per request; holds no state beyond the request's session.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session

from tasktrack.db.models import STATUS_COMPLETED, TASK_STATUSES, Task
from tasktrack.engine.clock import Clock
from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.errors import TaskTrackValidationError
from tasktrack.engine.logging import AsyncLogQueue, emit, log_task_operation
from tasktrack.tasks import lifecycle
from tasktrack.tasks.policy import Operation, enforce, scope_for
from tasktrack.tasks.store import (
    ORDER_COMPLETED_DESC,
    ORDER_CREATED_DESC,
    ORDER_DUE_ASC,
    ORDER_PRIORITY_DESC,
    TaskFilter,
    TaskStore,
)
from tasktrack.users.store import UserStore

logger = logging.getLogger("tasktrack.tasks.service")


class TaskService:
    def __init__(
        self,
        session: Session,
        clock: Optional[Clock] = None,
        log_queue: Optional[AsyncLogQueue] = None,
    ):
        self._store = TaskStore(session)
        self._users = UserStore(session)
        self._clock = clock or Clock()
        self._log_queue = log_queue

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def list_tasks(
        self,
        actor: ExecutionContext,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Task]:
        """Default listing, newest first, optionally by status and title search."""
        if status and status not in TASK_STATUSES:
            raise TaskTrackValidationError(errors={"status": "Invalid status"})
        return self._store.list_tasks(TaskFilter(
            assigned_to=scope_for(actor),
            status=status or None,
            search=search.strip() if search and search.strip() else None,
            order=ORDER_CREATED_DESC,
        ))

    def today(self, actor: ExecutionContext) -> List[Task]:
        """Tasks due today in the reference zone, high priority first."""
        today = self._clock.today()
        return self._store.list_tasks(TaskFilter(
            assigned_to=scope_for(actor),
            due_from=today,
            due_before=today + timedelta(days=1),
            order=ORDER_PRIORITY_DESC,
        ))

    def completed(self, actor: ExecutionContext) -> List[Task]:
        """Archive view, most recently completed first."""
        return self._store.list_tasks(TaskFilter(
            assigned_to=scope_for(actor),
            status=STATUS_COMPLETED,
            order=ORDER_COMPLETED_DESC,
        ))

    def overdue(self, actor: ExecutionContext) -> List[Task]:
        """Unfinished tasks due before today, oldest due date first."""
        return self._store.list_tasks(TaskFilter(
            assigned_to=scope_for(actor),
            due_before=self._clock.today(),
            exclude_completed=True,
            order=ORDER_DUE_ASC,
        ))

    def list_all(self) -> List[Task]:
        """Unscoped listing for the admin console."""
        return self._store.list_tasks(TaskFilter(order=ORDER_CREATED_DESC))

    def get_task(self, actor: ExecutionContext, task_id: int) -> Task:
        task = self._store.get_by_id(task_id)
        enforce(actor, task, Operation.READ_ONE, log_queue=self._log_queue)
        return task

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def create_task(self, actor: ExecutionContext, payload: Mapping[str, Any]) -> Task:
        data = lifecycle.validate_create(payload, today=self._clock.today(), tz=self._clock.tz)
        enforce(
            actor, None, Operation.CREATE,
            assigned_to=data.assigned_to,
            log_queue=self._log_queue,
        )
        if data.assigned_to is not None:
            self._require_user(data.assigned_to)

        task = self._store.add(lifecycle.build_task(data, actor, now=self._clock.now()))
        logger.info("Task %s created by user %s", task.id, actor.user_id)
        emit(self._log_queue, log_task_operation(
            "create", actor.execution_id, actor.user_id, task_id=task.id,
        ))
        return task

    def update_task(
        self,
        actor: ExecutionContext,
        task_id: int,
        payload: Mapping[str, Any],
    ) -> Task:
        task = self._store.get_by_id(task_id)
        enforce(actor, task, Operation.UPDATE, log_queue=self._log_queue)

        patch = lifecycle.validate_update(payload, actor, task, tz=self._clock.tz)
        if patch.supplied("assigned_to") and patch.assigned_to is not None:
            self._require_user(patch.assigned_to)

        result = lifecycle.apply_update(task, patch, actor, now=self._clock.now())
        task = self._store.save(result.task)
        logger.info(
            "Task %s updated by user %s: %s", task.id, actor.user_id, result.fields_changed,
        )
        emit(self._log_queue, log_task_operation(
            "update", actor.execution_id, actor.user_id,
            task_id=task.id,
            fields_changed=result.fields_changed,
            status_transition=result.status_transition,
        ))
        return task

    def delete_task(self, actor: ExecutionContext, task_id: int) -> None:
        task = self._store.get_by_id(task_id)
        enforce(actor, task, Operation.DELETE, log_queue=self._log_queue)
        self._store.delete(task)
        logger.info("Task %s deleted by user %s", task_id, actor.user_id)
        emit(self._log_queue, log_task_operation(
            "delete", actor.execution_id, actor.user_id, task_id=task_id,
        ))

    def _require_user(self, user_id: int) -> None:
        if not self._users.exists(user_id):
            raise TaskTrackValidationError(errors={"assignedTo": "Assigned user not found"})
