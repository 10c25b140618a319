from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from .modes import Mode


class SessionState(Enum):
    IDLE = "idle"
    PREFLIGHT = "preflight"
    RUNNING = "running"
    PAUSED = "paused"


@dataclass(frozen=True)
class Completion:
    mode: Mode
    credit_awarded: int


@dataclass(frozen=True)
class SessionSnapshot:
    mode: Mode
    state: SessionState
    remaining_sec: int
    credit: int
    history: tuple[Mode, ...]
    coach_response: str | None
    context: int = field(default=0)

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.RUNNING


ProgressCallback = Callable[[str, dict[str, object]], None]


class SessionMachine:
    """
    Countdown state machine for one focus/rest cycle.

    Owns the reward ledger (credit + history) but never persists it; the
    orchestrator snapshots it after each mutation.
    """

    def __init__(
        self,
        credit: int = 0,
        history: Iterable[Mode] = (),
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self.mode = Mode.FOCUS
        self.state = SessionState.IDLE
        self.remaining_sec = self.mode.duration_sec
        self.credit = max(0, int(credit))
        self.history: list[Mode] = list(history)
        self.coach_response: str | None = None
        self.context = 0
        self.progress_callback = progress_callback

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.RUNNING

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            mode=self.mode,
            state=self.state,
            remaining_sec=self.remaining_sec,
            credit=self.credit,
            history=tuple(self.history),
            coach_response=self.coach_response,
            context=self.context,
        )

    # ----- Transitions -----
    def switch_mode(self, mode: Mode) -> None:
        self.mode = mode
        self._to_idle()
        self._clear_coach()
        self._emit("mode_switched", mode=mode.name, remaining_sec=self.remaining_sec)

    def start_session(self) -> SessionState:
        if self.state is SessionState.RUNNING:
            self.state = SessionState.PAUSED
            self._emit("paused", mode=self.mode.name, remaining_sec=self.remaining_sec)
        elif self.state is SessionState.PREFLIGHT:
            pass
        elif self.mode is Mode.FOCUS:
            # focus sessions always pass the pre-flight gate, including on resume
            self.state = SessionState.PREFLIGHT
            self._emit("preflight", mode=self.mode.name, remaining_sec=self.remaining_sec)
        else:
            self._run()
        return self.state

    def confirm_preflight(self) -> SessionState:
        if self.state is SessionState.PREFLIGHT:
            self._run()
        return self.state

    def pause(self) -> SessionState:
        if self.state is SessionState.RUNNING:
            self.state = SessionState.PAUSED
            self._emit("paused", mode=self.mode.name, remaining_sec=self.remaining_sec)
        return self.state

    def tick(self) -> Completion | None:
        if self.state is not SessionState.RUNNING:
            return None
        if self.remaining_sec > 0:
            self.remaining_sec -= 1
        self._emit("tick", mode=self.mode.name, remaining_sec=self.remaining_sec)
        if self.remaining_sec <= 0:
            return self.complete()
        return None

    def skip(self) -> Completion:
        return self.complete()

    def reset(self) -> None:
        self._to_idle()
        self._clear_coach()
        self._emit("reset", mode=self.mode.name, remaining_sec=self.remaining_sec)

    def complete(self) -> Completion:
        mode = self.mode
        earned = mode.spec.credit
        self.credit += earned
        self.history.append(mode)
        self._to_idle()
        self._clear_coach()
        self._emit("completed", mode=mode.name, credit_awarded=earned, credit=self.credit)
        return Completion(mode=mode, credit_awarded=earned)

    # ----- Coach response -----
    def attach_coach_response(self, text: str, context: int) -> bool:
        if context != self.context:
            return False
        self.coach_response = text
        self._emit("coach", text=text)
        return True

    # ----- Internals -----
    def _run(self) -> None:
        self.state = SessionState.RUNNING
        self._emit("started", mode=self.mode.name, remaining_sec=self.remaining_sec)

    def _to_idle(self) -> None:
        self.state = SessionState.IDLE
        self.remaining_sec = self.mode.duration_sec

    def _clear_coach(self) -> None:
        self.coach_response = None
        self.context += 1

    def _emit(self, event: str, **payload: object) -> None:
        if self.progress_callback is None:
            return
        self.progress_callback(event, payload)
