"""User lookups and persistence."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tasktrack.db.base import ensure_utc
from tasktrack.db.models import ID_MAX, User


def serialize_user(user: User) -> Dict[str, Any]:
    """Public view of a user. Never includes the password hash."""
    created_at = ensure_utc(user.created_at)
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "createdAt": created_at.isoformat() if created_at else None,
    }


def user_ref(user: Optional[User]) -> Optional[Dict[str, Any]]:
    """Denormalised reference embedded in task payloads."""
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "email": user.email}


class UserStore:
    def __init__(self, session: Session):
        self._session = session

    def get(self, user_id: int) -> Optional[User]:
        if not 0 < user_id <= ID_MAX:
            return None
        return self._session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return (
            self._session.query(User)
            .filter(func.lower(User.email) == email.strip().lower())
            .first()
        )

    def exists(self, user_id: int) -> bool:
        return self.get(user_id) is not None

    def add(self, name: str, email: str, password_hash: str, role: str = "user") -> User:
        user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            role=role,
        )
        self._session.add(user)
        self._session.flush()
        return user

    def list_all(self) -> List[User]:
        return self._session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()
