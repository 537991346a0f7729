"""
Task routes.

The fixed view paths (/today, /completed, /overdue) are declared before
/{task_id} so they are never captured as an id.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from tasktrack.api.deps import get_actor, get_session
from tasktrack.engine.context import ExecutionContext
from tasktrack.tasks.service import TaskService
from tasktrack.tasks.store import serialize_task

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(
    request: Request,
    session: Session = Depends(get_session),
) -> TaskService:
    return TaskService(
        session,
        clock=request.app.state.clock,
        log_queue=request.app.state.log_queue,
    )


@router.get("")
def list_tasks(
    status: Optional[str] = None,
    search: Optional[str] = None,
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> List[Dict[str, Any]]:
    return [serialize_task(t) for t in service.list_tasks(actor, status=status, search=search)]


@router.get("/today")
def today_tasks(
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> List[Dict[str, Any]]:
    return [serialize_task(t) for t in service.today(actor)]


@router.get("/completed")
def completed_tasks(
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> List[Dict[str, Any]]:
    return [serialize_task(t) for t in service.completed(actor)]


@router.get("/overdue")
def overdue_tasks(
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> List[Dict[str, Any]]:
    return [serialize_task(t) for t in service.overdue(actor)]


@router.get("/{task_id}")
def get_task(
    task_id: int,
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    return serialize_task(service.get_task(actor, task_id))


@router.post("", status_code=201)
def create_task(
    payload: Any = Body(None),
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    return serialize_task(service.create_task(actor, payload))


@router.put("/{task_id}")
def update_task(
    task_id: int,
    payload: Any = Body(None),
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    return serialize_task(service.update_task(actor, task_id, payload))


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    actor: ExecutionContext = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    service.delete_task(actor, task_id)
    return {"message": "Task deleted successfully", "id": task_id}
