from __future__ import annotations

import unittest

from focusdeck.modes import Mode, format_countdown, mode_from_id


class TestModes(unittest.TestCase):
    def test_fixed_durations_and_labels(self) -> None:
        self.assertEqual(Mode.FOCUS.duration_sec, 1500)
        self.assertEqual(Mode.SHORT_BREAK.duration_sec, 300)
        self.assertEqual(Mode.LONG_BREAK.duration_sec, 900)
        self.assertEqual(Mode.LONG_BREAK.label, "Deep Reset")

    def test_credit_is_whole_minutes_and_positive(self) -> None:
        for mode in Mode:
            self.assertEqual(mode.spec.credit, mode.duration_sec // 60)
            self.assertGreaterEqual(mode.spec.credit, 1)

    def test_parse_accepts_cli_spellings(self) -> None:
        self.assertIs(Mode.parse("short-break"), Mode.SHORT_BREAK)
        self.assertIs(Mode.parse(" focus "), Mode.FOCUS)
        with self.assertRaises(ValueError):
            Mode.parse("nap")

    def test_mode_from_id_rejects_unknown(self) -> None:
        self.assertIs(mode_from_id("LONG_BREAK"), Mode.LONG_BREAK)
        self.assertIsNone(mode_from_id("long_break"))
        self.assertIsNone(mode_from_id(3))

    def test_format_countdown(self) -> None:
        self.assertEqual(format_countdown(1500), "25:00")
        self.assertEqual(format_countdown(61), "1:01")
        self.assertEqual(format_countdown(-5), "0:00")


if __name__ == "__main__":
    unittest.main()
