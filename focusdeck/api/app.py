from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI

from .. import __version__
from ..config import Settings
from ..service import FocusService
from .routes.coach import router as coach_router
from .routes.health import router as health_router
from .routes.meta import router as meta_router
from .routes.session import router as session_router
from .routes.tasks import router as tasks_router


def create_app(
    db_path: Path | None = None,
    settings: Settings | None = None,
    service: FocusService | None = None,
) -> FastAPI:
    resolved = settings or Settings.from_env(db_path=db_path)
    focus_service = service or FocusService.from_settings(resolved)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        focus_service.shutdown()

    app = FastAPI(title="FocusDeck API", version=__version__, lifespan=lifespan)
    app.state.settings = resolved
    app.state.service = focus_service

    app.include_router(health_router)
    app.include_router(meta_router)
    app.include_router(session_router)
    app.include_router(tasks_router)
    app.include_router(coach_router)
    return app


def create_default_app() -> FastAPI:
    return create_app()
