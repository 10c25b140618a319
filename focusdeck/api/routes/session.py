from __future__ import annotations

import json
import queue
from typing import Iterator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ...modes import Mode
from ...service import FocusService
from ..deps import get_service
from ..schemas import CompletionOut, SessionOut, SwitchModeRequest
from ..views import session_out

router = APIRouter(prefix="/api/v1", tags=["session"])


@router.get("/session", response_model=SessionOut)
def get_session(service: FocusService = Depends(get_service)) -> SessionOut:
    return session_out(service)


@router.post("/session/mode", response_model=SessionOut)
def switch_mode(payload: SwitchModeRequest, service: FocusService = Depends(get_service)) -> SessionOut:
    return session_out(service, service.switch_mode(Mode[payload.mode]))


@router.post("/session/start", response_model=SessionOut)
def start_session(service: FocusService = Depends(get_service)) -> SessionOut:
    return session_out(service, service.start_session())


@router.post("/session/confirm", response_model=SessionOut)
def confirm_preflight(service: FocusService = Depends(get_service)) -> SessionOut:
    return session_out(service, service.confirm_preflight())


@router.post("/session/pause", response_model=SessionOut)
def pause_session(service: FocusService = Depends(get_service)) -> SessionOut:
    return session_out(service, service.pause())


@router.post("/session/reset", response_model=SessionOut)
def reset_session(service: FocusService = Depends(get_service)) -> SessionOut:
    return session_out(service, service.reset())


@router.post("/session/skip", response_model=CompletionOut)
def skip_session(service: FocusService = Depends(get_service)) -> CompletionOut:
    completion = service.skip()
    return CompletionOut(
        mode=completion.mode.name,
        credit_awarded=completion.credit_awarded,
        session=session_out(service),
    )


@router.get("/session/stream")
def session_stream(service: FocusService = Depends(get_service)) -> StreamingResponse:
    subscriber = service.subscribe()

    def event_iter() -> Iterator[str]:
        try:
            while True:
                try:
                    event = subscriber.get(timeout=10)
                    yield f"data: {json.dumps(event, ensure_ascii=False, default=str)}\n\n"
                except queue.Empty:
                    yield ": keepalive\n\n"
        finally:
            service.unsubscribe(subscriber)

    return StreamingResponse(event_iter(), media_type="text/event-stream")
