from __future__ import annotations

from ..modes import format_countdown
from ..service import FocusService
from ..session import SessionSnapshot
from ..tasks import Task
from .schemas import ModeOut, RecommendationOut, SessionOut, TaskListOut, TaskOut


def session_out(service: FocusService, snap: SessionSnapshot | None = None) -> SessionOut:
    snap = snap or service.snapshot()
    rec = service.recommendation()
    spec = snap.mode.spec
    return SessionOut(
        mode=ModeOut(
            id=snap.mode.name,
            label=spec.label,
            description=spec.description,
            duration_sec=spec.duration_sec,
        ),
        state=snap.state.value,
        remaining_sec=snap.remaining_sec,
        display=format_countdown(snap.remaining_sec),
        credit=snap.credit,
        history=[mode.name for mode in snap.history],
        coach_response=snap.coach_response,
        is_loading=service.is_loading,
        recommendation=RecommendationOut(
            text=rec.text,
            suggested_mode=rec.suggested_mode.name if rec.suggested_mode else None,
        ),
    )


def task_out(task: Task) -> TaskOut:
    return TaskOut(id=task.id, text=task.text, completed=task.completed)


def task_list_out(service: FocusService, changed: bool = True) -> TaskListOut:
    items = [task_out(task) for task in service.task_items()]
    return TaskListOut(items=items, total=len(items), changed=changed)
