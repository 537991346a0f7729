"""
TaskTrack — Multi-user task management service.

Users sign up, authenticate with a bearer token and manage the tasks assigned
to them; administrators see every task plus dashboard statistics.

Packages:
    engine   — config, errors, structured logging, auth, notifications
    db       — SQLAlchemy base, session management, models
    tasks    — access policy, lifecycle, store, service
    admin    — aggregation engine
    api      — FastAPI application
"""

__version__ = "1.0.0"
__all__ = ["engine", "db", "tasks", "admin", "api"]
