"""
Request dependencies — database sessions, the authenticated actor and the
services built from application state.
"""

from __future__ import annotations

from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from tasktrack.admin.service import require_admin
from tasktrack.db.session import session_scope
from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.notifications import Notifier, NullNotifier
from tasktrack.engine.security import AuthService

_bearer = HTTPBearer(auto_error=False)


def get_session(request: Request) -> Generator[Session, None, None]:
    """One transaction per request: commit on success, roll back on error."""
    with session_scope(request.app.state.session_factory) as session:
        yield session


def get_notifier(request: Request) -> Notifier:
    return getattr(request.app.state, "notifier", None) or NullNotifier()


def get_auth_service(
    request: Request,
    session: Session = Depends(get_session),
) -> AuthService:
    config = request.app.state.config
    return AuthService(
        session,
        tokens=request.app.state.tokens,
        notifier=get_notifier(request),
        bcrypt_rounds=config.security.bcrypt_rounds,
        allow_admin_signup=config.security.allow_admin_signup,
        log_queue=request.app.state.log_queue,
    )


def get_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    auth: AuthService = Depends(get_auth_service),
) -> ExecutionContext:
    """
    Resolve ``Authorization: Bearer <token>`` to the current actor.

    The user row is re-read on every request; the actor's id is recorded on
    ``request.state`` for the request log.
    """
    token = credentials.credentials if credentials else None
    actor = auth.authenticate(token, execution_id=getattr(request.state, "execution_id", None))
    request.state.user_id = actor.user_id
    return actor


def get_admin(actor: ExecutionContext = Depends(get_actor)) -> ExecutionContext:
    require_admin(actor, "admin")
    return actor
