from __future__ import annotations

import contextlib
import io
import os
import re
import unittest
from unittest import mock

from focusdeck.cli import main
from focusdeck.tests.test_helpers import local_tmp_dir


def _run(*argv: str) -> tuple[int, str]:
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        code = main(list(argv))
    return code, out.getvalue()


@mock.patch.dict(os.environ, {"FOCUSDECK_API_KEY": "", "GEMINI_API_KEY": ""})
class TestCLI(unittest.TestCase):
    def test_bad_mode_exits_with_usage_error(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["mode", "nap"])
        self.assertEqual(ctx.exception.code, 2)

    def test_mode_describes_duration(self) -> None:
        code, out = _run("mode", "long-break")
        self.assertEqual(code, 0)
        self.assertIn("LONG_BREAK: Deep Reset, 15:00", out)

    def test_tasks_add_and_list(self) -> None:
        with local_tmp_dir() as tmp:
            db = str(tmp / "focusdeck.sqlite")
            code, out = _run("--db", db, "tasks", "add", "write", "report")
            self.assertEqual(code, 0)
            match = re.search(r"Added \[(\d+)\] write report", out)
            assert match is not None
            task_id = match.group(1)

            _run("--db", db, "tasks", "done", task_id)
            code, out = _run("--db", db, "tasks", "list")
            self.assertEqual(code, 0)
            self.assertIn(f"[x] {task_id}: write report", out)

    def test_clear_needs_confirmation(self) -> None:
        with local_tmp_dir() as tmp:
            db = str(tmp / "focusdeck.sqlite")
            _run("--db", db, "tasks", "add", "keep me")

            with mock.patch("builtins.input", return_value="n"):
                code, out = _run("--db", db, "tasks", "clear")
            self.assertEqual(code, 1)
            self.assertIn("Cancelled.", out)

            code, out = _run("--db", db, "tasks", "clear", "--yes")
            self.assertEqual(code, 0)
            self.assertIn("Removed 1 task(s).", out)

    def test_skip_then_status(self) -> None:
        with local_tmp_dir() as tmp:
            db = str(tmp / "focusdeck.sqlite")
            code, out = _run("--db", db, "skip")
            self.assertEqual(code, 0)
            self.assertIn("Recorded Focus Deep: +25 credit (total 25).", out)

            code, out = _run("--db", db, "status")
            self.assertEqual(code, 0)
            self.assertIn("Credit: 25", out)
            self.assertIn("Sessions: 1 (recent: FOCUS)", out)
            self.assertIn("Advice: Phase complete. Rest advised. -> Short Rest", out)

    def test_reset_restores_full_duration(self) -> None:
        with local_tmp_dir() as tmp:
            code, out = _run("--db", str(tmp / "focusdeck.sqlite"), "reset", "--mode", "short_break")
            self.assertEqual(code, 0)
            self.assertIn("Short Rest reset to 5:00.", out)

    def test_declined_preflight_exits_with_cancel_code(self) -> None:
        with local_tmp_dir() as tmp:
            db = str(tmp / "focusdeck.sqlite")
            with mock.patch("builtins.input", return_value="n"):
                code, out = _run("--db", db, "run", "--mode", "focus")
            self.assertEqual(code, 1)
            self.assertIn("Engagement cancelled.", out)

            _, status = _run("--db", db, "status")
            self.assertIn("Credit: 0", status)

    def test_coach_without_key_reports_unavailable(self) -> None:
        with local_tmp_dir() as tmp:
            with self.assertLogs("focusdeck.coach_client", level="ERROR"):
                code, out = _run("--db", str(tmp / "focusdeck.sqlite"), "coach")
            self.assertEqual(code, 1)
            self.assertIn("Coach unavailable", out)


if __name__ == "__main__":
    unittest.main()
