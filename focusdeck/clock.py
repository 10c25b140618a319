from __future__ import annotations

from datetime import datetime, timedelta, timezone
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def monotonic(self) -> float:
        ...

    def sleep(self, seconds: float) -> None:
        ...


class RealClock:
    def now(self) -> datetime:
        return datetime.now().astimezone()

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(max(0.0, seconds))


class FakeClock:
    def __init__(
        self,
        start: datetime | None = None,
        interrupt_on_sleep_call: int | None = None,
    ) -> None:
        base = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        self._start = base
        self._current = base
        self._interrupt_on_sleep_call = interrupt_on_sleep_call
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        return self._current

    def monotonic(self) -> float:
        return (self._current - self._start).total_seconds()

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if (
            self._interrupt_on_sleep_call is not None
            and len(self.sleeps) >= self._interrupt_on_sleep_call
        ):
            raise KeyboardInterrupt
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=max(0.0, seconds))
