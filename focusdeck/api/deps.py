from __future__ import annotations

from fastapi import Request

from ..service import FocusService


def get_service(request: Request) -> FocusService:
    return request.app.state.service
