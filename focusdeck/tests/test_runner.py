from __future__ import annotations

import io
import unittest

import httpx

from focusdeck.clock import FakeClock
from focusdeck.db import FocusStore
from focusdeck.modes import Mode
from focusdeck.runner import SessionRunner
from focusdeck.service import FocusService
from focusdeck.session import SessionState
from focusdeck.tests.test_helpers import local_tmp_dir, make_client


def _service(tmp, clock: FakeClock) -> FocusService:
    client = make_client(lambda _: httpx.Response(503), clock=clock)
    return FocusService(FocusStore(tmp / "focusdeck.sqlite"), client, clock=clock, auto_tick=False)


class TestSessionRunner(unittest.TestCase):
    def test_focus_run_completes_after_confirmation(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock()
            service = _service(tmp, clock)
            output = io.StringIO()
            runner = SessionRunner(service, clock, confirm=lambda: True, stream=output)

            result = runner.run(Mode.FOCUS)

            self.assertFalse(result.interrupted)
            assert result.completion is not None
            self.assertEqual(result.completion.credit_awarded, 25)
            self.assertEqual(clock.monotonic(), 1500.0)
            snap = service.snapshot()
            self.assertEqual(snap.credit, 25)
            self.assertEqual(snap.history, (Mode.FOCUS,))
            self.assertIs(snap.state, SessionState.IDLE)
            self.assertEqual(snap.remaining_sec, 1500)
            self.assertIn("Pre-flight check", output.getvalue())
            self.assertIn("+25 credit", output.getvalue())

    def test_declined_preflight_records_nothing(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock()
            service = _service(tmp, clock)
            runner = SessionRunner(service, clock, confirm=lambda: False, stream=io.StringIO())

            result = runner.run(Mode.FOCUS)

            self.assertTrue(result.cancelled)
            self.assertFalse(result.interrupted)
            self.assertIs(service.snapshot().state, SessionState.IDLE)
            self.assertEqual(service.snapshot().credit, 0)
            self.assertEqual(clock.sleeps, [])

    def test_break_skips_preflight(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock()
            service = _service(tmp, clock)
            asked: list[int] = []

            def confirm() -> bool:
                asked.append(1)
                return True

            result = SessionRunner(service, clock, confirm=confirm, stream=io.StringIO()).run(Mode.SHORT_BREAK)

            self.assertEqual(asked, [])
            self.assertEqual(result.completion.credit_awarded, 5)  # type: ignore[union-attr]

    def test_ctrl_c_pauses_session(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(interrupt_on_sleep_call=4)
            service = _service(tmp, clock)
            output = io.StringIO()

            result = SessionRunner(service, clock, confirm=lambda: True, stream=output).run(Mode.LONG_BREAK)

            self.assertTrue(result.interrupted)
            snap = service.snapshot()
            self.assertIs(snap.state, SessionState.PAUSED)
            self.assertEqual(snap.remaining_sec, 897)
            self.assertEqual(snap.credit, 0)
            self.assertIn("Paused with 14:57 left.", output.getvalue())


if __name__ == "__main__":
    unittest.main()
