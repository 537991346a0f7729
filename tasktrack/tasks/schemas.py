"""
Task constraint sets.

TaskConstraints holds every field rule once. TaskCreate declares the
required shape with creation defaults; TaskUpdate is the same schema with all
fields optional, so a field only changes when the client sends it. Field
names on the wire are camelCase (``dueDate``, ``assignedTo``).
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from tasktrack.db.models import ID_MAX
from tasktrack.engine.validation import FieldMessages, constraint

Category = Literal["Home", "Personal", "Office", "Other"]
Priority = Literal["low", "medium", "high"]
Status = Literal["pending", "in-progress", "completed"]

TITLE_MIN = 3
TITLE_MAX = 200
DESCRIPTION_MAX = 1000

TASK_MESSAGES = {
    "title": FieldMessages("Title is required", "Title must be a string"),
    "description": FieldMessages("Description is required", "Description must be a string"),
    "dueDate": FieldMessages("Due date is required", "Due date must be a valid date"),
    "category": FieldMessages("Category is required", "Invalid category"),
    "priority": FieldMessages("Priority is required", "Invalid priority"),
    "status": FieldMessages("Status is required", "Invalid status"),
    "assignedTo": FieldMessages("Assigned user is required", "Invalid user ID"),
}

_NOT_NULL_MESSAGES = {
    "category": "Invalid category",
    "priority": "Invalid priority",
    "status": "Invalid status",
}


def _day_in_zone(value: datetime, tz: Optional[tzinfo]) -> date:
    if value.tzinfo is not None and tz is not None:
        value = value.astimezone(tz)
    return value.date()


def parse_due_date(value: Any, tz: Optional[tzinfo] = None) -> date:
    """
    Accept a date, a datetime, ``YYYY-MM-DD`` or an ISO-8601 timestamp.

    A timestamp carrying an offset is read as a calendar day in *tz* (the
    reference zone) when given; naive timestamps keep their own date.
    """
    if value is None or value == "":
        raise constraint("due_date_required", "Due date is required")
    if isinstance(value, datetime):
        return _day_in_zone(value, tz)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return _day_in_zone(datetime.fromisoformat(text.replace("Z", "+00:00")), tz)
        except ValueError:
            pass
    raise constraint("due_date_invalid", "Due date must be a valid date")


class TaskConstraints(BaseModel):
    """Field rules shared by the create and update schemas."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("title", mode="before", check_fields=False)
    @classmethod
    def _check_title(cls, value: Any) -> str:
        if value is None:
            raise constraint("title_required", "Title is required")
        if not isinstance(value, str):
            raise constraint("title_type", "Title must be a string")
        value = value.strip()
        if not value:
            raise constraint("title_required", "Title is required")
        if len(value) < TITLE_MIN:
            raise constraint("title_length", f"Title must be at least {TITLE_MIN} characters")
        if len(value) > TITLE_MAX:
            raise constraint("title_length", f"Title must not exceed {TITLE_MAX} characters")
        return value

    @field_validator("description", mode="before", check_fields=False)
    @classmethod
    def _check_description(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise constraint("description_type", "Description must be a string")
        value = value.strip()
        if not value:
            return None
        if len(value) > DESCRIPTION_MAX:
            raise constraint(
                "description_length",
                f"Description must not exceed {DESCRIPTION_MAX} characters",
            )
        return value

    @field_validator("due_date", mode="before", check_fields=False)
    @classmethod
    def _check_due_date(cls, value: Any, info: ValidationInfo) -> date:
        return parse_due_date(value, (info.context or {}).get("tz"))

    @field_validator("category", "priority", "status", mode="before", check_fields=False)
    @classmethod
    def _not_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise constraint("not_null", _NOT_NULL_MESSAGES[info.field_name])
        return value

    @field_validator("assigned_to", mode="before", check_fields=False)
    @classmethod
    def _check_assigned_to(cls, value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise constraint("user_id", "Invalid user ID")
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        if not isinstance(value, int) or not 0 < value <= ID_MAX:
            raise constraint("user_id", "Invalid user ID")
        return value


class TaskCreate(TaskConstraints):
    title: str
    description: Optional[str] = None
    due_date: date = Field(alias="dueDate")
    category: Category
    priority: Priority = "medium"
    status: Status = "pending"
    assigned_to: Optional[int] = Field(default=None, alias="assignedTo")

    @field_validator("due_date")
    @classmethod
    def _not_in_past(cls, value: date, info: ValidationInfo) -> date:
        today = (info.context or {}).get("today") or date.today()
        if value < today:
            raise constraint("due_date_past", "Due date cannot be in the past")
        return value


class TaskUpdate(TaskConstraints):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    assigned_to: Optional[int] = Field(default=None, alias="assignedTo")

    def supplied(self, field: str) -> bool:
        """Whether the client sent *field* (python name) in the payload."""
        return field in self.model_fields_set


ASSIGNED_TO_KEYS = ("assignedTo", "assigned_to")
