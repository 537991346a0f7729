"""Admin console service — user/task listings and dashboard statistics."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from tasktrack.admin.stats import dashboard_stats, per_user_stats
from tasktrack.engine.clock import Clock
from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.errors import TaskTrackSecurityError
from tasktrack.tasks.service import TaskService
from tasktrack.tasks.store import serialize_task
from tasktrack.users.store import UserStore, serialize_user


def require_admin(actor: ExecutionContext, operation: str) -> None:
    """
    Raises:
        TaskTrackSecurityError: If *actor* is not an admin.
    """
    if not actor.is_admin:
        raise TaskTrackSecurityError(
            "Not authorized as an admin",
            user_id=actor.user_id,
            execution_id=actor.execution_id,
            role=actor.role,
            operation=operation,
        )


class AdminService:
    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self._session = session
        self._clock = clock or Clock()

    def stats(self, actor: ExecutionContext) -> Dict[str, Any]:
        require_admin(actor, "admin.stats")
        return dashboard_stats(self._session, self._clock)

    def users(self, actor: ExecutionContext) -> List[Dict[str, Any]]:
        require_admin(actor, "admin.users")
        return [serialize_user(u) for u in UserStore(self._session).list_all()]

    def tasks(self, actor: ExecutionContext) -> List[Dict[str, Any]]:
        require_admin(actor, "admin.tasks")
        service = TaskService(self._session, clock=self._clock)
        return [serialize_task(t) for t in service.list_all()]

    def user_stats(self, actor: ExecutionContext) -> List[Dict[str, Any]]:
        require_admin(actor, "admin.user_stats")
        return per_user_stats(self._session)
