"""
TaskTrack Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List

import pytest

from tasktrack.db.models import STATUS_COMPLETED, Task, User
from tasktrack.db.session import init_db, session_scope
from tasktrack.engine.clock import Clock
from tasktrack.engine.config import LoggingConfig, SecurityConfig, TaskTrackConfig
from tasktrack.engine.context import context_for_user
from tasktrack.engine.notifications import NotificationResult, render_template
from tasktrack.engine.security import hash_password
from tasktrack.users.store import UserStore

# Tuesday afternoon, UTC
FIXED_NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)
TODAY = date(2026, 3, 10)

PASSWORD = "Secret123"
# Computed once; bcrypt at the minimum cost keeps the suite fast
PASSWORD_HASH = hash_password(PASSWORD, rounds=4)


class RecordingNotifier:
    """Notifier double that keeps every message it was asked to send."""

    transport = "memory"

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []

    def send(self, to: str, template: str, **params: Any) -> NotificationResult:
        rendered = render_template(template, **params)
        self.sent.append({"to": to, "template": template, **rendered})
        return NotificationResult(delivered=True, transport=self.transport)


# ---------------------------------------------------------------------------
# Environment setup — never touch a real database or log directory
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Reset the cached config and env overrides between tests."""
    import tasktrack.engine.config as cfg_mod

    cfg_mod._config = None
    monkeypatch.delenv("TASKTRACK_SECRET_KEY", raising=False)
    monkeypatch.delenv("TASKTRACK_DATABASE_URL", raising=False)
    monkeypatch.delenv("TASKTRACK_CONFIG", raising=False)


@pytest.fixture
def clock():
    return Clock(tz=timezone.utc, now_fn=lambda: FIXED_NOW)


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database per test."""
    return init_db("sqlite://", create_tables=True)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_user(session):
    def _make(name: str, email: str, role: str = "user") -> User:
        return UserStore(session).add(name, email, PASSWORD_HASH, role=role)
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("Alice", "alice@example.com")


@pytest.fixture
def bob(make_user):
    return make_user("Bob", "bob@example.com")


@pytest.fixture
def admin(make_user):
    return make_user("Admin", "admin@example.com", role="admin")


@pytest.fixture
def alice_ctx(alice):
    return context_for_user(alice)


@pytest.fixture
def bob_ctx(bob):
    return context_for_user(bob)


@pytest.fixture
def admin_ctx(admin):
    return context_for_user(admin)


@pytest.fixture
def make_task(session):
    """Insert a task row directly, bypassing validation."""
    def _make(owner: User, **fields: Any) -> Task:
        values = {
            "title": "Sample task",
            "due_date": TODAY,
            "category": "Home",
            "priority": "medium",
            "status": "pending",
            "assigned_to": owner.id,
            "created_by": owner.id,
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        }
        values.update(fields)
        if values["status"] == STATUS_COMPLETED:
            values.setdefault("completed_at", FIXED_NOW)
        task = Task(**values)
        session.add(task)
        session.flush()
        return task
    return _make


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

@pytest.fixture
def app_config():
    return TaskTrackConfig(
        security=SecurityConfig(secret_key="test-secret", bcrypt_rounds=4),
        logging=LoggingConfig(enabled=False),
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(app_config, session_factory, notifier, clock):
    from tasktrack.api.app import create_app

    return create_app(
        config=app_config,
        session_factory=session_factory,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as c:
        yield c


@pytest.fixture
def accounts(session_factory):
    """Committed users for HTTP tests: {"alice": id, "bob": id, "admin": id}."""
    with session_scope(session_factory) as s:
        store = UserStore(s)
        return {
            "alice": store.add("Alice", "alice@example.com", PASSWORD_HASH).id,
            "bob": store.add("Bob", "bob@example.com", PASSWORD_HASH).id,
            "admin": store.add("Admin", "admin@example.com", PASSWORD_HASH, role="admin").id,
        }


@pytest.fixture
def auth_headers(app, accounts):
    """``auth_headers("alice")`` → Authorization header for that account."""
    def _headers(who: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {app.state.tokens.issue(accounts[who])}"}
    return _headers
