from __future__ import annotations

import unittest

from focusdeck.clock import FakeClock
from focusdeck.ticker import Ticker


class TestTicker(unittest.TestCase):
    def test_ticks_are_counted_from_anchor(self) -> None:
        clock = FakeClock()
        fired: list[int] = []
        ticker = Ticker(lambda _: fired.append(1) or True, clock=clock)
        ticker.arm()

        clock.advance(0.4)
        self.assertTrue(ticker.pump(clock.monotonic()))
        self.assertEqual(len(fired), 0)
        self.assertAlmostEqual(ticker.seconds_until_next(clock.monotonic()), 0.6)

        clock.advance(0.7)
        ticker.pump(clock.monotonic())
        self.assertEqual(len(fired), 1)
        self.assertAlmostEqual(ticker.seconds_until_next(clock.monotonic()), 0.9)

    def test_catches_up_after_suspension(self) -> None:
        clock = FakeClock()
        fired: list[int] = []
        ticker = Ticker(lambda _: fired.append(1) or True, clock=clock)
        ticker.arm()

        clock.advance(42.5)
        ticker.pump(clock.monotonic())
        self.assertEqual(len(fired), 42)
        self.assertEqual(ticker.due_ticks(clock.monotonic()), 0)

    def test_handler_returning_false_stops_ticks(self) -> None:
        clock = FakeClock()
        fired: list[int] = []

        def handler(_: Ticker) -> bool:
            fired.append(1)
            return len(fired) < 3

        ticker = Ticker(handler, clock=clock)
        ticker.arm()
        clock.advance(10)
        self.assertFalse(ticker.pump(clock.monotonic()))
        self.assertEqual(len(fired), 3)
        self.assertTrue(ticker.cancelled)

    def test_cancelled_ticker_never_fires(self) -> None:
        clock = FakeClock()
        fired: list[int] = []
        ticker = Ticker(lambda _: fired.append(1) or True, clock=clock)
        ticker.arm()
        ticker.cancel()
        clock.advance(5)
        self.assertFalse(ticker.pump(clock.monotonic()))
        self.assertEqual(fired, [])


if __name__ == "__main__":
    unittest.main()
