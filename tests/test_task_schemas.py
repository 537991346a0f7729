"""Unit tests for tasktrack.tasks.schemas and engine.validation."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from tasktrack.engine.errors import TaskTrackValidationError
from tasktrack.engine.validation import validate_payload
from tasktrack.tasks.lifecycle import validate_create
from tasktrack.tasks.schemas import TASK_MESSAGES, TaskUpdate, parse_due_date

TODAY = date(2026, 3, 10)


def _errors(payload, model=None):
    with pytest.raises(TaskTrackValidationError) as exc:
        if model is None:
            validate_create(payload, today=TODAY)
        else:
            validate_payload(model, payload, TASK_MESSAGES)
    return exc.value.errors


class TestCreateSchema:

    def test_defaults(self):
        data = validate_create(
            {"title": "Pay rent", "dueDate": "2026-03-12", "category": "Home"},
            today=TODAY,
        )
        assert data.title == "Pay rent"
        assert data.due_date == date(2026, 3, 12)
        assert data.priority == "medium"
        assert data.status == "pending"
        assert data.description is None
        assert data.assigned_to is None

    def test_title_is_trimmed(self):
        data = validate_create(
            {"title": "  Buy milk  ", "dueDate": "2026-03-10", "category": "Home"},
            today=TODAY,
        )
        assert data.title == "Buy milk"

    def test_all_violations_collected(self):
        errors = _errors({"title": "ab", "dueDate": "not-a-date", "priority": "urgent"})
        assert errors == {
            "title": "Title must be at least 3 characters",
            "dueDate": "Due date must be a valid date",
            "category": "Category is required",
            "priority": "Invalid priority",
        }

    def test_missing_title(self):
        assert _errors({"dueDate": "2026-03-12", "category": "Home"})["title"] == "Title is required"

    def test_whitespace_title(self):
        errors = _errors({"title": "   ", "dueDate": "2026-03-12", "category": "Home"})
        assert errors["title"] == "Title is required"

    def test_title_too_long(self):
        errors = _errors({"title": "x" * 201, "dueDate": "2026-03-12", "category": "Home"})
        assert errors["title"] == "Title must not exceed 200 characters"

    def test_description_too_long(self):
        errors = _errors({
            "title": "Write report", "description": "d" * 1001,
            "dueDate": "2026-03-12", "category": "Office",
        })
        assert errors["description"] == "Description must not exceed 1000 characters"

    def test_empty_description_is_absent(self):
        data = validate_create(
            {"title": "Write report", "description": "", "dueDate": "2026-03-12",
             "category": "Office"},
            today=TODAY,
        )
        assert data.description is None

    def test_due_date_today_allowed(self):
        data = validate_create(
            {"title": "Today task", "dueDate": "2026-03-10", "category": "Home"},
            today=TODAY,
        )
        assert data.due_date == TODAY

    def test_due_date_in_past(self):
        errors = _errors({"title": "Late", "dueDate": "2026-03-09", "category": "Home"})
        assert errors["dueDate"] == "Due date cannot be in the past"

    def test_invalid_category(self):
        errors = _errors({"title": "Chores", "dueDate": "2026-03-12", "category": "Garden"})
        assert errors["category"] == "Invalid category"

    def test_invalid_status(self):
        errors = _errors({
            "title": "Chores", "dueDate": "2026-03-12", "category": "Home", "status": "done",
        })
        assert errors["status"] == "Invalid status"

    @pytest.mark.parametrize("value, expected", [("7", 7), (7, 7), ("", None), (None, None)])
    def test_assigned_to_accepted(self, value, expected):
        data = validate_create(
            {"title": "Chores", "dueDate": "2026-03-12", "category": "Home", "assignedTo": value},
            today=TODAY,
        )
        assert data.assigned_to == expected

    @pytest.mark.parametrize("value", ["abc", -1, 0, True, 1.5, 10**20, "100000000000000000000"])
    def test_assigned_to_rejected(self, value):
        errors = _errors({
            "title": "Chores", "dueDate": "2026-03-12", "category": "Home", "assignedTo": value,
        })
        assert errors["assignedTo"] == "Invalid user ID"

    def test_non_object_body(self):
        assert _errors(["not", "an", "object"]) == {"body": "Request body must be a JSON object"}


class TestUpdateSchema:

    def test_only_supplied_fields(self):
        patch = validate_payload(TaskUpdate, {"status": "completed"}, TASK_MESSAGES)
        assert patch.supplied("status")
        assert not patch.supplied("title")
        assert not patch.supplied("due_date")

    def test_due_date_alias(self):
        patch = validate_payload(TaskUpdate, {"dueDate": "2026-04-01"}, TASK_MESSAGES)
        assert patch.supplied("due_date")
        assert patch.due_date == date(2026, 4, 1)

    def test_past_due_date_allowed_on_update(self):
        patch = validate_payload(TaskUpdate, {"dueDate": "2020-01-01"}, TASK_MESSAGES)
        assert patch.due_date == date(2020, 1, 1)

    def test_shares_field_rules(self):
        errors = _errors({"title": "", "priority": "urgent"}, model=TaskUpdate)
        assert errors == {"title": "Title is required", "priority": "Invalid priority"}

    def test_explicit_null_status_rejected(self):
        assert _errors({"status": None}, model=TaskUpdate) == {"status": "Invalid status"}

    def test_empty_description_clears(self):
        patch = validate_payload(TaskUpdate, {"description": ""}, TASK_MESSAGES)
        assert patch.supplied("description")
        assert patch.description is None


class TestParseDueDate:

    @pytest.mark.parametrize("value", [
        "2026-03-12",
        "2026-03-12T00:00:00Z",
        "2026-03-12T18:30:00+02:00",
        date(2026, 3, 12),
    ])
    def test_accepted(self, value):
        assert parse_due_date(value) == date(2026, 3, 12)

    def test_offset_timestamp_read_in_reference_zone(self):
        value = "2026-03-11T22:30:00-05:00"
        assert parse_due_date(value) == date(2026, 3, 11)
        assert parse_due_date(value, timezone.utc) == date(2026, 3, 12)
        assert parse_due_date(value, ZoneInfo("Asia/Tokyo")) == date(2026, 3, 12)

    def test_naive_timestamp_keeps_its_date(self):
        assert parse_due_date(datetime(2026, 3, 12, 23, 0), ZoneInfo("Asia/Tokyo")) == date(2026, 3, 12)

    def test_create_uses_reference_zone_for_past_check(self):
        # 01:00 UTC on the 10th is already the 10th in Tokyo
        payload = {"title": "Chores", "dueDate": "2026-03-09T20:00:00-05:00", "category": "Home"}
        data = validate_create(payload, today=TODAY, tz=ZoneInfo("Asia/Tokyo"))
        assert data.due_date == TODAY
