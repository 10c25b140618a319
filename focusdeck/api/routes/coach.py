from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...service import FocusService, TriggerBusy
from ..deps import get_service
from ..schemas import CoachOut

router = APIRouter(prefix="/api/v1", tags=["coach"])


@router.post("/coach", response_model=CoachOut)
def request_coaching(service: FocusService = Depends(get_service)) -> CoachOut:
    try:
        result = service.request_coaching()
    except TriggerBusy as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return CoachOut(available=result.text is not None, text=result.text, attached=result.attached)
