from __future__ import annotations

import platform
from pathlib import Path

from fastapi import APIRouter, Request

from ... import __version__
from ..schemas import MetaOut

router = APIRouter(prefix="/api/v1", tags=["system"])


@router.get("/meta", response_model=MetaOut)
def meta(request: Request) -> MetaOut:
    settings = request.app.state.settings
    return MetaOut(
        app="FocusDeck",
        version=__version__,
        db_path=str(Path(settings.db_path)),
        model=settings.model,
        coach_configured=bool(settings.api_key),
        platform=platform.platform(),
    )
