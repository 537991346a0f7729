"""
TaskTrack Error Hierarchy — Structured exceptions mapped to HTTP responses.

All errors carry an optional execution_id for end-to-end tracing and
serialize to JSON for the structured audit logs.

Hierarchy:
    TaskTrackError                 — unexpected fault (500)
    ├── TaskTrackValidationError   — field-level input errors (400)
    ├── TaskTrackSessionError      — missing/invalid credential (401)
    ├── TaskTrackSecurityError     — role/ownership violation (403)
    ├── TaskTrackNotFoundError     — resource does not exist (404)
    ├── TaskTrackConfigError       — invalid tasktrack.yaml
    └── TaskTrackIntegrationError  — notification transport failed
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class TaskTrackError(Exception):
    """
    Base error for all TaskTrack failures.
    Structured for logging — all context serializable to JSON.
    """

    status_code: int = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.execution_id: Optional[str] = context.get("execution_id")
        self.user_id: Optional[Any] = context.get("user_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "execution_id": self.execution_id,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("execution_id", "user_id")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.user_id is not None:
            parts.append(f"user_id={self.user_id}")
        if self.execution_id:
            parts.append(f"execution_id={self.execution_id}")
        return " | ".join(parts)


class TaskTrackValidationError(TaskTrackError):
    """
    Input validation failed. Carries every violation found in one pass as a
    mapping of field name to human-readable message.
    """

    status_code = 400

    def __init__(self, message: str = "Validation failed", **context: Any):
        self.errors: Dict[str, str] = dict(context.get("errors") or {})
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["errors"] = self.errors
        return d


class TaskTrackSessionError(TaskTrackError):
    """Missing, expired or invalid bearer credential."""

    status_code = 401


class TaskTrackSecurityError(TaskTrackError):
    """
    Access denied. Includes the actor's role and the operation that was
    refused.
    """

    status_code = 403

    def __init__(self, message: str = "Access denied", **context: Any):
        self.role: Optional[str] = context.get("role")
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["role"] = self.role
        d["operation"] = self.operation
        return d


class TaskTrackNotFoundError(TaskTrackError):
    """Requested resource does not exist."""

    status_code = 404

    def __init__(self, message: str, **context: Any):
        self.resource: Optional[str] = context.get("resource")
        self.resource_id: Optional[Any] = context.get("resource_id")
        super().__init__(message, **context)


class TaskTrackConfigError(TaskTrackError):
    """Configuration error — invalid tasktrack.yaml."""
    pass


class TaskTrackIntegrationError(TaskTrackError):
    """Notification transport failed."""

    def __init__(self, message: str, **context: Any):
        self.status_code_received: Optional[int] = context.get("status_code")
        super().__init__(message, **context)


def http_status_for(exc: BaseException) -> int:
    """Map an exception to the HTTP status the API boundary should return."""
    if isinstance(exc, TaskTrackError):
        return exc.status_code
    return 500
