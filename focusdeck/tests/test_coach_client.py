from __future__ import annotations

import json
import unittest

import httpx

from focusdeck.clock import FakeClock
from focusdeck.coach_client import CallState
from focusdeck.tests.test_helpers import gemini_reply, make_client


class TestCoachClient(unittest.TestCase):
    def test_success_on_first_attempt_sends_gemini_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return gemini_reply("Stay the course.")

        clock = FakeClock()
        client = make_client(handler, clock=clock)
        outcome = client.call_with_outcome("Protocol?", "Be brief.")

        self.assertIs(outcome.state, CallState.SUCCEEDED)
        self.assertEqual(outcome.attempts, 1)
        self.assertEqual(outcome.text, "Stay the course.")
        self.assertEqual(clock.sleeps, [])

        request = seen[0]
        self.assertEqual(request.method, "POST")
        self.assertTrue(request.url.path.endswith(":generateContent"))
        self.assertEqual(request.url.params["key"], "test-key")
        body = json.loads(request.content)
        self.assertEqual(body["contents"][0]["parts"][0]["text"], "Protocol?")
        self.assertEqual(body["systemInstruction"]["parts"][0]["text"], "Be brief.")

    def test_retries_with_backoff_then_succeeds(self) -> None:
        statuses = iter([503, 500])

        def handler(_: httpx.Request) -> httpx.Response:
            status = next(statuses, 200)
            if status != 200:
                return httpx.Response(status)
            return gemini_reply("ok")

        clock = FakeClock()
        client = make_client(handler, clock=clock)
        outcome = client.call_with_outcome("x")

        self.assertEqual(outcome.text, "ok")
        self.assertEqual(outcome.attempts, 3)
        self.assertEqual(clock.sleeps, [1.0, 2.0])

    def test_gives_up_after_five_attempts(self) -> None:
        calls: list[int] = []

        def handler(_: httpx.Request) -> httpx.Response:
            calls.append(1)
            raise httpx.ConnectError("offline")

        clock = FakeClock()
        client = make_client(handler, clock=clock)

        with self.assertLogs("focusdeck.coach_client", level="WARNING"):
            outcome = client.call_with_outcome("x")

        self.assertIs(outcome.state, CallState.FAILED)
        self.assertIsNone(outcome.text)
        self.assertEqual(len(calls), 5)
        self.assertEqual(outcome.attempts, 5)
        self.assertEqual(clock.sleeps, [1.0, 2.0, 4.0, 8.0])
        self.assertEqual(clock.monotonic(), 15.0)
        self.assertFalse(client.is_loading)

    def test_non_json_body_is_retried(self) -> None:
        bodies = iter([httpx.Response(200, text="<html>"), gemini_reply("fine")])
        client = make_client(lambda _: next(bodies))
        self.assertEqual(client.call("x"), "fine")

    def test_success_without_candidates_returns_none_without_retry(self) -> None:
        calls: list[int] = []

        def handler(_: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(200, json={"candidates": []})

        client = make_client(handler)
        self.assertIsNone(client.call("x"))
        self.assertEqual(len(calls), 1)

    def test_missing_api_key_skips_network(self) -> None:
        calls: list[int] = []

        def handler(_: httpx.Request) -> httpx.Response:
            calls.append(1)
            return gemini_reply("unused")

        client = make_client(handler, api_key="")
        with self.assertLogs("focusdeck.coach_client", level="ERROR"):
            outcome = client.call_with_outcome("x")
        self.assertIs(outcome.state, CallState.FAILED)
        self.assertEqual(outcome.attempts, 0)
        self.assertEqual(calls, [])

    def test_loading_flag_tracks_outstanding_call(self) -> None:
        observed: list[bool] = []
        holder: dict[str, object] = {}

        def handler(_: httpx.Request) -> httpx.Response:
            observed.append(holder["client"].is_loading)  # type: ignore[attr-defined]
            return gemini_reply("ok")

        client = make_client(handler)
        holder["client"] = client
        self.assertFalse(client.is_loading)
        client.call("x")
        self.assertEqual(observed, [True])
        self.assertFalse(client.is_loading)


if __name__ == "__main__":
    unittest.main()
