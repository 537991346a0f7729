"""
TaskTrack Models — SQLAlchemy tables.

1. users — accounts with a flat user/admin role
2. tasks — work items assigned to a user
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from tasktrack.db.base import Base, TimestampMixin

TASK_CATEGORIES = ("Home", "Personal", "Office", "Other")
TASK_PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("pending", "in-progress", "completed")

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

# Largest value an Integer primary key holds on every supported backend
ID_MAX = 2**31 - 1


def _in_list(column: str, values: tuple) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


# ---------------------------------------------------------------------------
# 1. Users
# ---------------------------------------------------------------------------

class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(10), default="user", nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


# ---------------------------------------------------------------------------
# 2. Tasks
# ---------------------------------------------------------------------------

class Task(Base, TimestampMixin):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(Date, nullable=False)
    category = Column(String(20), nullable=False)
    priority = Column(String(10), default="medium", nullable=False)
    status = Column(String(20), default=STATUS_PENDING, nullable=False)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    assignee = relationship("User", foreign_keys=[assigned_to], lazy="joined")
    creator = relationship("User", foreign_keys=[created_by], lazy="joined")

    __table_args__ = (
        CheckConstraint(_in_list("category", TASK_CATEGORIES), name="ck_tasks_category"),
        CheckConstraint(_in_list("priority", TASK_PRIORITIES), name="ck_tasks_priority"),
        CheckConstraint(_in_list("status", TASK_STATUSES), name="ck_tasks_status"),
        Index("idx_tasks_assigned_status", "assigned_to", "status"),
        Index("idx_tasks_due_date", "due_date"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title='{self.title}', status='{self.status}')>"
