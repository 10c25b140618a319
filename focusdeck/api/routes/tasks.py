from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...service import FocusService, TriggerBusy
from ..deps import get_service
from ..schemas import ClearTasksRequest, DecomposeOut, TaskCreateRequest, TaskListOut
from ..views import task_list_out, task_out

router = APIRouter(prefix="/api/v1", tags=["tasks"])


@router.get("/tasks", response_model=TaskListOut)
def list_tasks(service: FocusService = Depends(get_service)) -> TaskListOut:
    return task_list_out(service)


@router.post("/tasks", response_model=TaskListOut)
def add_task(payload: TaskCreateRequest, service: FocusService = Depends(get_service)) -> TaskListOut:
    created = service.add_task(payload.text)
    return task_list_out(service, changed=created is not None)


@router.post("/tasks/clear", response_model=TaskListOut)
def clear_tasks(payload: ClearTasksRequest, service: FocusService = Depends(get_service)) -> TaskListOut:
    if not payload.confirm:
        raise HTTPException(status_code=400, detail="clearing all tasks requires confirm=true")
    service.clear_tasks()
    return task_list_out(service)


@router.post("/tasks/{task_id}/toggle", response_model=TaskListOut)
def toggle_task(task_id: int, service: FocusService = Depends(get_service)) -> TaskListOut:
    return task_list_out(service, changed=service.toggle_task(task_id))


@router.delete("/tasks/{task_id}", response_model=TaskListOut)
def delete_task(task_id: int, service: FocusService = Depends(get_service)) -> TaskListOut:
    return task_list_out(service, changed=service.remove_task(task_id))


@router.post("/tasks/{task_id}/decompose", response_model=DecomposeOut)
def decompose_task(task_id: int, service: FocusService = Depends(get_service)) -> DecomposeOut:
    try:
        created = service.decompose_task(task_id)
    except TriggerBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    listing = task_list_out(service)
    return DecomposeOut(
        available=bool(created),
        created=[task_out(task) for task in created],
        items=listing.items,
    )
