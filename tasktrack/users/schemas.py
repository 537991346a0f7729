"""Constraint sets for signup and login payloads."""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from tasktrack.engine.validation import FieldMessages, constraint

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).+$")

SIGNUP_MESSAGES = {
    "name": FieldMessages("Name is required", "Name must be a string"),
    "email": FieldMessages("Email is required", "Valid email is required"),
    "password": FieldMessages("Password is required", "Password must be a string"),
    "role": FieldMessages("Role is required", "Invalid role"),
}

LOGIN_MESSAGES = {
    "email": SIGNUP_MESSAGES["email"],
    "password": SIGNUP_MESSAGES["password"],
}


def _normalize_email(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise constraint("email_required", "Email is required")
    value = value.strip().lower()
    if not EMAIL_RE.match(value):
        raise constraint("email_invalid", "Valid email is required")
    return value


class SignupRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    email: str
    password: str
    role: Literal["user", "admin"] = "user"

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise constraint("name_required", "Name is required")
        value = value.strip()
        if len(value) < 2:
            raise constraint("name_length", "Name must be at least 2 characters")
        if len(value) > 100:
            raise constraint("name_length", "Name must not exceed 100 characters")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        return _normalize_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _check_password(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise constraint("password_required", "Password is required")
        if len(value) < 6:
            raise constraint("password_length", "Password must be at least 6 characters")
        if len(value) > 100:
            raise constraint("password_length", "Password must not exceed 100 characters")
        if not PASSWORD_RE.match(value):
            raise constraint(
                "password_strength",
                "Password must contain at least one uppercase letter, "
                "one lowercase letter, and one number",
            )
        return value


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        return _normalize_email(value)

    @field_validator("password", mode="before")
    @classmethod
    def _check_password(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise constraint("password_required", "Password is required")
        return value
