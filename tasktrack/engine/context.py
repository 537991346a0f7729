"""
TaskTrack Execution Context — the authenticated actor behind a request.

Built by the bearer-token dependency from the *current* user row on every
request, so role changes in the store are never masked by a stale token.
Passed explicitly into every service call; nothing here is shared between
requests.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass(frozen=True)
class ExecutionContext:
    """Per-request actor: identity, role and a trace id for the audit logs."""

    user_id: int
    name: str
    email: str
    role: str
    execution_id: str = field(default_factory=lambda: f"exec_{uuid.uuid4().hex[:12]}")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "execution_id": self.execution_id,
        }


def context_for_user(user: Any, execution_id: Optional[str] = None) -> ExecutionContext:
    """Build an ExecutionContext from a User row."""
    ctx = ExecutionContext(
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
    )
    if execution_id:
        return replace(ctx, execution_id=execution_id)
    return ctx
