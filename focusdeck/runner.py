from __future__ import annotations

from dataclasses import dataclass
import sys
from typing import Callable, TextIO

from .clock import Clock
from .modes import Mode, format_countdown
from .service import FocusService
from .session import Completion, SessionState
from .ticker import Ticker

PREFLIGHT_TEXT = "Pre-flight check: mute notifications. Clear space. Define the single objective."


@dataclass(frozen=True)
class RunResult:
    interrupted: bool
    completion: Completion | None
    cancelled: bool = False


class SessionRunner:
    """Drives one session in the foreground, rendering a countdown line."""

    def __init__(
        self,
        service: FocusService,
        clock: Clock,
        confirm: Callable[[], bool],
        stream: TextIO | None = None,
    ) -> None:
        self.service = service
        self.clock = clock
        self.confirm = confirm
        self.stream = stream or sys.stdout
        self._completion: Completion | None = None

    def run(self, mode: Mode) -> RunResult:
        self._completion = None
        self.service.switch_mode(mode)
        snap = self.service.start_session()

        if snap.state is SessionState.PREFLIGHT:
            self.stream.write(PREFLIGHT_TEXT + "\n")
            self.stream.flush()
            if not self.confirm():
                self.service.reset()
                self.stream.write("Engagement cancelled.\n")
                self.stream.flush()
                return RunResult(False, None, cancelled=True)
            snap = self.service.confirm_preflight()

        self.stream.write(f"{mode.label}: {format_countdown(snap.remaining_sec)}\n")
        self.stream.flush()

        ticker = Ticker(self._on_tick, clock=self.clock)
        ticker.arm()
        try:
            while ticker.pump(self.clock.monotonic()):
                self._render(mode, self.service.snapshot().remaining_sec)
                self.clock.sleep(ticker.seconds_until_next(self.clock.monotonic()))
        except KeyboardInterrupt:
            self.service.pause()
            self._clear_line()
            remaining = self.service.snapshot().remaining_sec
            self.stream.write(f"Paused with {format_countdown(remaining)} left.\n")
            self.stream.flush()
            return RunResult(True, None)

        self._clear_line()
        completion = self._completion
        if completion is not None:
            self.stream.write(
                f"{completion.mode.label} complete: +{completion.credit_awarded} credit "
                f"(total {self.service.snapshot().credit}).\n"
            )
            self.stream.flush()
        return RunResult(completion is None, completion)

    def _on_tick(self, _: Ticker) -> bool:
        completion = self.service.tick()
        if completion is not None:
            self._completion = completion
            return False
        return self.service.snapshot().state is SessionState.RUNNING

    def _render(self, mode: Mode, remaining_sec: int) -> None:
        self.stream.write(f"\r{mode.label} remaining {format_countdown(remaining_sec)}")
        self.stream.flush()

    def _clear_line(self) -> None:
        self.stream.write("\r" + (" " * 60) + "\r")
        self.stream.flush()
