from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from threading import Lock
from typing import Any

import httpx

from .clock import Clock, RealClock
from .config import DEFAULT_BASE_URL, DEFAULT_MODEL

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_INSTRUCTION = "You are a productivity coach."
RETRY_DELAYS_SEC: tuple[float, ...] = (1, 2, 4, 8, 16)
MAX_ATTEMPTS = 5


class CallState(Enum):
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RemoteCallError(Exception):
    """A single attempt failed in a way worth retrying."""


@dataclass(frozen=True)
class CallOutcome:
    state: CallState
    attempts: int
    text: str | None = None
    error: str | None = None


class CoachClient:
    """
    Single-shot generateContent client with bounded retries.

    Transient failures are retried up to `max_attempts` times, waiting
    `delays[n-2]` before attempt n. Without an API key no request is sent:
    the call fails immediately after 0 attempts.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout_sec: float = 30.0,
        clock: Clock | None = None,
        http_client: httpx.Client | None = None,
        delays: tuple[float, ...] = RETRY_DELAYS_SEC,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.clock = clock or RealClock()
        self.delays = delays
        self.max_attempts = max_attempts
        self._http = http_client or httpx.Client(timeout=timeout_sec)
        self._lock = Lock()
        self._outstanding = 0
        self.state: CallState | None = None

    @property
    def is_loading(self) -> bool:
        with self._lock:
            return self._outstanding > 0

    def call(self, prompt: str, system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION) -> str | None:
        return self.call_with_outcome(prompt, system_instruction).text

    def call_with_outcome(
        self,
        prompt: str,
        system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
    ) -> CallOutcome:
        with self._lock:
            self._outstanding += 1
        try:
            return self._run(prompt, system_instruction)
        finally:
            with self._lock:
                self._outstanding -= 1

    def close(self) -> None:
        self._http.close()

    def _run(self, prompt: str, system_instruction: str) -> CallOutcome:
        if not self.api_key:
            self.state = CallState.FAILED
            logger.error("coach call skipped: no API key configured")
            return CallOutcome(CallState.FAILED, 0, error="no API key configured")

        last_error = ""
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self.state = CallState.WAITING
                self.clock.sleep(self._delay_before(attempt))

            self.state = CallState.ATTEMPTING
            try:
                text = self._attempt(prompt, system_instruction)
            except RemoteCallError as exc:
                last_error = str(exc)
                logger.warning("coach call attempt %d/%d failed: %s", attempt, self.max_attempts, exc)
                continue

            self.state = CallState.SUCCEEDED
            if text is None:
                logger.info("coach call succeeded without candidate text")
            return CallOutcome(CallState.SUCCEEDED, attempt, text=text)

        self.state = CallState.FAILED
        logger.error("coach call gave up after %d attempts: %s", self.max_attempts, last_error)
        return CallOutcome(CallState.FAILED, self.max_attempts, error=last_error)

    def _delay_before(self, attempt: int) -> float:
        index = min(attempt - 2, len(self.delays) - 1)
        return float(self.delays[index]) if index >= 0 else 0.0

    def _attempt(self, prompt: str, system_instruction: str) -> str | None:
        url = f"{self.base_url}/{self.model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "systemInstruction": {"parts": [{"text": system_instruction}]},
        }
        try:
            response = self._http.post(url, params={"key": self.api_key}, json=body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise RemoteCallError(f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise RemoteCallError(f"transport error: {exc}") from exc
        except ValueError as exc:
            raise RemoteCallError("response body is not JSON") from exc
        return extract_text(payload)


def extract_text(payload: Any) -> str | None:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) else None
