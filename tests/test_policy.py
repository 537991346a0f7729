"""Unit tests for tasktrack.tasks.policy — the task access matrix."""

from types import SimpleNamespace

import pytest

from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.errors import TaskTrackSecurityError
from tasktrack.engine.logging import AsyncLogQueue, FileLogger
from tasktrack.tasks.policy import Operation, authorize, enforce, scope_for

USER = ExecutionContext(user_id=1, name="Alice", email="alice@example.com", role="user")
OTHER = ExecutionContext(user_id=2, name="Bob", email="bob@example.com", role="user")
ADMIN = ExecutionContext(user_id=3, name="Admin", email="admin@example.com", role="admin")

OWN_TASK = SimpleNamespace(id=10, assigned_to=1)
FOREIGN_TASK = SimpleNamespace(id=11, assigned_to=2)

SINGLE_TASK_OPS = [Operation.READ_ONE, Operation.UPDATE, Operation.DELETE]


class TestReadMany:

    def test_user_is_scoped_to_self(self):
        decision = authorize(USER, None, Operation.READ_MANY)
        assert decision.allowed
        assert decision.scope == 1
        assert scope_for(USER) == 1

    def test_admin_is_unscoped(self):
        assert authorize(ADMIN, None, Operation.READ_MANY).scope is None
        assert scope_for(ADMIN) is None


class TestSingleTask:

    @pytest.mark.parametrize("operation", SINGLE_TASK_OPS)
    def test_owner_allowed(self, operation):
        assert authorize(USER, OWN_TASK, operation).allowed

    @pytest.mark.parametrize("operation", SINGLE_TASK_OPS)
    def test_non_owner_denied(self, operation):
        decision = authorize(USER, FOREIGN_TASK, operation)
        assert not decision.allowed
        assert decision.reason == "Access denied"

    @pytest.mark.parametrize("operation", SINGLE_TASK_OPS)
    def test_admin_allowed_on_any_task(self, operation):
        assert authorize(ADMIN, FOREIGN_TASK, operation).allowed

    def test_decision_follows_current_snapshot(self):
        task = SimpleNamespace(id=12, assigned_to=1)
        assert authorize(USER, task, Operation.UPDATE).allowed
        task.assigned_to = 2
        assert not authorize(USER, task, Operation.UPDATE).allowed

    def test_string_operation_accepted(self):
        assert authorize(USER, OWN_TASK, "read-one").allowed


class TestCreateAndReassign:

    def test_user_creates_for_self(self):
        assert authorize(USER, None, Operation.CREATE).allowed
        assert authorize(USER, None, Operation.CREATE, assigned_to=1).allowed

    def test_user_cannot_create_for_others(self):
        decision = authorize(USER, None, Operation.CREATE, assigned_to=2)
        assert not decision.allowed

    def test_admin_creates_for_anyone(self):
        assert authorize(ADMIN, None, Operation.CREATE, assigned_to=2).allowed

    def test_only_admin_reassigns(self):
        assert not authorize(USER, OWN_TASK, Operation.REASSIGN).allowed
        assert authorize(ADMIN, OWN_TASK, Operation.REASSIGN).allowed


class TestEnforce:

    def test_allowed_returns_decision(self):
        assert enforce(USER, OWN_TASK, Operation.READ_ONE).allowed

    def test_denied_raises(self):
        with pytest.raises(TaskTrackSecurityError) as exc:
            enforce(OTHER, OWN_TASK, Operation.DELETE)
        assert exc.value.status_code == 403
        assert exc.value.operation == "delete"
        assert exc.value.role == "user"

    def test_denied_is_audited(self, tmp_path):
        queue = AsyncLogQueue(FileLogger(log_dir=str(tmp_path / "logs")))
        with pytest.raises(TaskTrackSecurityError):
            enforce(OTHER, OWN_TASK, Operation.UPDATE, log_queue=queue)
        assert queue.pending_count == 1
