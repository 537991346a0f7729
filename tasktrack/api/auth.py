"""Auth routes — signup, login and the caller's own profile."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from tasktrack.api.deps import get_actor, get_auth_service
from tasktrack.engine.context import ExecutionContext
from tasktrack.engine.security import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", status_code=201)
def signup(
    payload: Any = Body(None),
    auth: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return auth.signup(payload)


@router.post("/login")
def login(
    payload: Any = Body(None),
    auth: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return auth.login(payload)


@router.get("/profile")
def profile(
    actor: ExecutionContext = Depends(get_actor),
    auth: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    return auth.profile(actor)
