from __future__ import annotations

import logging
import math
from threading import Event, Thread
from typing import Callable

from .clock import Clock, RealClock

logger = logging.getLogger(__name__)

# Returns False once the countdown no longer wants ticks.
TickHandler = Callable[["Ticker"], bool]


class Ticker:
    """
    One-second tick source anchored to the monotonic clock.

    Ticks are counted from the anchor rather than accumulated per sleep, so
    a process that was suspended catches up on the ticks it missed.
    """

    def __init__(
        self,
        on_tick: TickHandler,
        clock: Clock | None = None,
        interval_sec: float = 1.0,
    ) -> None:
        self.on_tick = on_tick
        self.clock = clock or RealClock()
        self.interval_sec = interval_sec
        self._stop = Event()
        self._thread: Thread | None = None
        self._anchor = 0.0
        self._fired = 0

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def arm(self) -> None:
        self._anchor = self.clock.monotonic()
        self._fired = 0

    def start(self) -> None:
        self.arm()
        self._thread = Thread(target=self._loop, name="focusdeck-ticker", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        # never joins: the tick handler may be the one cancelling
        self._stop.set()

    def due_ticks(self, now: float) -> int:
        elapsed = now - self._anchor
        return max(0, math.floor(elapsed / self.interval_sec) - self._fired)

    def seconds_until_next(self, now: float) -> float:
        next_deadline = self._anchor + (self._fired + 1) * self.interval_sec
        return max(0.0, next_deadline - now)

    def pump(self, now: float) -> bool:
        for _ in range(self.due_ticks(now)):
            if self.cancelled:
                return False
            self._fired += 1
            if not self.on_tick(self):
                self.cancel()
                return False
        return not self.cancelled

    def _loop(self) -> None:
        while not self._stop.wait(self.seconds_until_next(self.clock.monotonic())):
            try:
                if not self.pump(self.clock.monotonic()):
                    break
            except Exception:
                logger.exception("tick handler failed; stopping ticker")
                self.cancel()
                break
