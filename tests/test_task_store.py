"""Unit tests for tasktrack.tasks.store — filters, orderings, serialisation."""

from datetime import date, timedelta

import pytest

from tasktrack.engine.errors import TaskTrackNotFoundError
from tasktrack.tasks.store import (
    ORDER_COMPLETED_DESC,
    ORDER_DUE_ASC,
    ORDER_PRIORITY_DESC,
    TaskFilter,
    TaskStore,
    serialize_task,
)

from conftest import FIXED_NOW, TODAY


@pytest.fixture
def store(session):
    return TaskStore(session)


def _titles(tasks):
    return [t.title for t in tasks]


class TestFilters:

    def test_default_order_newest_first(self, store, make_task, alice):
        make_task(alice, title="old", created_at=FIXED_NOW - timedelta(hours=2))
        make_task(alice, title="new", created_at=FIXED_NOW)
        make_task(alice, title="middle", created_at=FIXED_NOW - timedelta(hours=1))
        assert _titles(store.list_tasks()) == ["new", "middle", "old"]

    def test_assignee_scope(self, store, make_task, alice, bob):
        make_task(alice, title="mine")
        make_task(bob, title="theirs")
        assert _titles(store.list_tasks(TaskFilter(assigned_to=alice.id))) == ["mine"]

    def test_status(self, store, make_task, alice):
        make_task(alice, title="open")
        make_task(alice, title="done", status="completed")
        assert _titles(store.list_tasks(TaskFilter(status="completed"))) == ["done"]

    def test_search_is_case_insensitive(self, store, make_task, alice):
        make_task(alice, title="Buy Groceries")
        make_task(alice, title="Call mom")
        assert _titles(store.list_tasks(TaskFilter(search="groc"))) == ["Buy Groceries"]

    def test_search_folds_non_ascii_case(self, store, make_task, alice):
        make_task(alice, title="ÜBER rent")
        make_task(alice, title="Große Wäsche")
        make_task(alice, title="Call mom")
        assert _titles(store.list_tasks(TaskFilter(search="über"))) == ["ÜBER rent"]
        assert _titles(store.list_tasks(TaskFilter(search="GROSSE"))) == ["Große Wäsche"]

    def test_search_wildcards_are_literal(self, store, make_task, alice):
        make_task(alice, title="100% done")
        make_task(alice, title="1000 things")
        assert _titles(store.list_tasks(TaskFilter(search="0%"))) == ["100% done"]

    def test_due_range(self, store, make_task, alice):
        make_task(alice, title="yesterday", due_date=TODAY - timedelta(days=1))
        make_task(alice, title="today", due_date=TODAY)
        make_task(alice, title="tomorrow", due_date=TODAY + timedelta(days=1))
        f = TaskFilter(due_from=TODAY, due_before=TODAY + timedelta(days=1))
        assert _titles(store.list_tasks(f)) == ["today"]

    def test_exclude_completed(self, store, make_task, alice):
        make_task(alice, title="open")
        make_task(alice, title="done", status="completed")
        assert _titles(store.list_tasks(TaskFilter(exclude_completed=True))) == ["open"]


class TestOrderings:

    def test_priority_high_first_stable(self, store, make_task, alice):
        make_task(alice, title="low", priority="low")
        make_task(alice, title="high-1", priority="high")
        make_task(alice, title="medium", priority="medium")
        make_task(alice, title="high-2", priority="high")
        tasks = store.list_tasks(TaskFilter(order=ORDER_PRIORITY_DESC))
        assert _titles(tasks) == ["high-1", "high-2", "medium", "low"]

    def test_completed_most_recent_first(self, store, make_task, alice):
        make_task(alice, title="first", status="completed",
                  completed_at=FIXED_NOW - timedelta(days=3))
        make_task(alice, title="latest", status="completed", completed_at=FIXED_NOW)
        tasks = store.list_tasks(TaskFilter(status="completed", order=ORDER_COMPLETED_DESC))
        assert _titles(tasks) == ["latest", "first"]

    def test_due_oldest_first(self, store, make_task, alice):
        make_task(alice, title="b", due_date=TODAY - timedelta(days=1))
        make_task(alice, title="a", due_date=TODAY - timedelta(days=5))
        assert _titles(store.list_tasks(TaskFilter(order=ORDER_DUE_ASC))) == ["a", "b"]


class TestCrud:

    def test_get_by_id(self, store, make_task, alice):
        task = make_task(alice)
        assert store.get_by_id(task.id) is task

    def test_get_missing(self, store):
        with pytest.raises(TaskTrackNotFoundError, match="Task not found"):
            store.get_by_id(404)

    @pytest.mark.parametrize("task_id", [0, -1, 10**20])
    def test_get_out_of_range(self, store, task_id):
        with pytest.raises(TaskTrackNotFoundError):
            store.get_by_id(task_id)

    def test_delete(self, store, make_task, alice):
        task = make_task(alice)
        store.delete(task)
        with pytest.raises(TaskTrackNotFoundError):
            store.get_by_id(task.id)


class TestSerialize:

    def test_resolved_users(self, make_task, alice, admin):
        task = make_task(alice, created_by=admin.id, description="Monthly")
        data = serialize_task(task)
        assert data["assignedTo"] == {"id": alice.id, "name": "Alice", "email": "alice@example.com"}
        assert data["createdBy"]["id"] == admin.id
        assert data["dueDate"] == TODAY.isoformat()
        assert data["completedAt"] is None
        assert data["createdAt"].startswith("2026-03-10T15:00:00")
        assert data["createdAt"].endswith("+00:00")

    def test_completed_at(self, make_task, alice):
        data = serialize_task(make_task(alice, status="completed"))
        assert data["completedAt"].startswith("2026-03-10T15:00:00")
