"""Admin console routes. Every route requires an admin actor."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from tasktrack.admin.service import AdminService
from tasktrack.api.deps import get_admin, get_session
from tasktrack.engine.context import ExecutionContext

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(
    request: Request,
    session: Session = Depends(get_session),
) -> AdminService:
    return AdminService(session, clock=request.app.state.clock)


@router.get("/stats")
def stats(
    actor: ExecutionContext = Depends(get_admin),
    service: AdminService = Depends(get_admin_service),
) -> Dict[str, Any]:
    return service.stats(actor)


@router.get("/users")
def users(
    actor: ExecutionContext = Depends(get_admin),
    service: AdminService = Depends(get_admin_service),
) -> List[Dict[str, Any]]:
    return service.users(actor)


@router.get("/tasks")
def tasks(
    actor: ExecutionContext = Depends(get_admin),
    service: AdminService = Depends(get_admin_service),
) -> List[Dict[str, Any]]:
    return service.tasks(actor)


@router.get("/user-stats")
def user_stats(
    actor: ExecutionContext = Depends(get_admin),
    service: AdminService = Depends(get_admin_service),
) -> List[Dict[str, Any]]:
    return service.user_stats(actor)
