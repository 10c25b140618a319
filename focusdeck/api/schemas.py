from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ModeName = Literal["FOCUS", "SHORT_BREAK", "LONG_BREAK"]


class ModeOut(BaseModel):
    id: ModeName
    label: str
    description: str
    duration_sec: int


class RecommendationOut(BaseModel):
    text: str
    suggested_mode: ModeName | None = None


class SessionOut(BaseModel):
    mode: ModeOut
    state: Literal["idle", "preflight", "running", "paused"]
    remaining_sec: int
    display: str
    credit: int
    history: list[ModeName]
    coach_response: str | None = None
    is_loading: bool
    recommendation: RecommendationOut


class CompletionOut(BaseModel):
    mode: ModeName
    credit_awarded: int
    session: SessionOut


class SwitchModeRequest(BaseModel):
    mode: ModeName


class TaskOut(BaseModel):
    id: int
    text: str
    completed: bool


class TaskCreateRequest(BaseModel):
    text: str = ""


class TaskListOut(BaseModel):
    items: list[TaskOut]
    total: int
    changed: bool = True


class ClearTasksRequest(BaseModel):
    confirm: bool = False


class DecomposeOut(BaseModel):
    available: bool
    created: list[TaskOut] = Field(default_factory=list)
    items: list[TaskOut]


class CoachOut(BaseModel):
    available: bool
    text: str | None = None
    attached: bool = False


class HealthOut(BaseModel):
    status: str = Field(default="ok")


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    model: str
    coach_configured: bool
    platform: str
