from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import queue
from threading import Lock
from typing import Any, Iterator

from .clock import Clock, RealClock
from .coach_client import CoachClient
from .config import Settings
from .db import FocusStore, Repository, StoreSnapshot
from .modes import Mode
from .recommend import Recommendation, recommend
from .session import Completion, SessionMachine, SessionSnapshot, SessionState
from .tasks import DECOMPOSE_SYSTEM_INSTRUCTION, Task, TaskList, decompose_prompt, parse_steps
from .ticker import Ticker

logger = logging.getLogger(__name__)

COACH_SYSTEM_INSTRUCTION = "High-performance coach. Systems thinker. Concise."
COACH_TRIGGER = "coach"


class TriggerBusy(Exception):
    """A remote call for the same trigger is still outstanding."""

    def __init__(self, trigger: str) -> None:
        super().__init__(f"request already in flight: {trigger}")
        self.trigger = trigger


@dataclass(frozen=True)
class CoachResult:
    text: str | None
    attached: bool


def coach_prompt(mode: Mode, open_tasks: list[str]) -> str:
    context = ", ".join(open_tasks) or "General"
    return f"Session: {mode.label}. Tasks: {context}. Protocol for mindset? 2 sentences. Stoic."


class FocusService:
    """
    Orchestrates:
    - SessionMachine transitions and the tick thread
    - TaskList mutations
    - persistence of credit/history/tasks after every durable change
    - remote coach / decomposition calls, one per trigger at a time
    - event fan-out for stream subscribers
    """

    def __init__(
        self,
        store: Repository,
        client: CoachClient,
        clock: Clock | None = None,
        auto_tick: bool = True,
    ) -> None:
        self.store = store
        self.client = client
        self.clock = clock or RealClock()
        self.auto_tick = auto_tick

        self._lock = Lock()
        self._subscribers: list[queue.Queue[dict[str, Any]]] = []
        self._inflight: set[str] = set()
        self._ticker: Ticker | None = None

        loaded = store.load()
        self.machine = SessionMachine(
            credit=loaded.credit,
            history=loaded.history,
            progress_callback=self._on_event,
        )
        self.tasks = TaskList(loaded.tasks, id_floor=self._epoch_ms)

    @classmethod
    def from_settings(cls, settings: Settings, auto_tick: bool = True) -> FocusService:
        clock = RealClock()
        client = CoachClient(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout_sec=settings.timeout_sec,
            clock=clock,
        )
        store = FocusStore(settings.db_path, journal_mode=settings.journal_mode)
        return cls(store=store, client=client, clock=clock, auto_tick=auto_tick)

    # ----- Queries -----
    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self.machine.snapshot()

    def recommendation(self) -> Recommendation:
        with self._lock:
            return recommend(self.machine.history, self.machine.is_active)

    def task_items(self) -> list[Task]:
        with self._lock:
            return self.tasks.items()

    @property
    def is_loading(self) -> bool:
        return self.client.is_loading

    # ----- Session controls -----
    def switch_mode(self, mode: Mode) -> SessionSnapshot:
        with self._lock:
            self.machine.switch_mode(mode)
            self._sync_ticker()
            return self.machine.snapshot()

    def start_session(self) -> SessionSnapshot:
        with self._lock:
            self.machine.start_session()
            self._sync_ticker()
            return self.machine.snapshot()

    def confirm_preflight(self) -> SessionSnapshot:
        with self._lock:
            self.machine.confirm_preflight()
            self._sync_ticker()
            return self.machine.snapshot()

    def pause(self) -> SessionSnapshot:
        with self._lock:
            self.machine.pause()
            self._sync_ticker()
            return self.machine.snapshot()

    def reset(self) -> SessionSnapshot:
        with self._lock:
            self.machine.reset()
            self._sync_ticker()
            return self.machine.snapshot()

    def skip(self) -> Completion:
        with self._lock:
            completion = self.machine.skip()
            self._sync_ticker()
            self._persist()
            return completion

    def tick(self) -> Completion | None:
        with self._lock:
            return self._apply_tick()

    # ----- Task controls -----
    def add_task(self, text: str) -> Task | None:
        with self._lock:
            task = self.tasks.add(text)
            if task is not None:
                self._persist()
            return task

    def toggle_task(self, task_id: int) -> bool:
        with self._lock:
            changed = self.tasks.toggle_complete(task_id)
            if changed:
                self._persist()
            return changed

    def remove_task(self, task_id: int) -> bool:
        with self._lock:
            changed = self.tasks.remove(task_id)
            if changed:
                self._persist()
            return changed

    def clear_tasks(self) -> int:
        with self._lock:
            removed = self.tasks.clear_all()
            self._persist()
            return removed

    # ----- Remote calls -----
    def decompose_task(self, task_id: int) -> list[Task]:
        with self._lock:
            task = self.tasks.get(task_id)
        if task is None:
            return []

        with self._trigger(f"decompose:{task_id}"):
            result = self.client.call(decompose_prompt(task.text), DECOMPOSE_SYSTEM_INSTRUCTION)

        if not result:
            return []
        with self._lock:
            children = self.tasks.replace_with_steps(task_id, parse_steps(result))
            if children:
                self._persist()
                self._broadcast({"event": "tasks_decomposed", "task_id": task_id, "count": len(children)})
            return children

    def request_coaching(self) -> CoachResult:
        with self._lock:
            context = self.machine.context
            prompt = coach_prompt(self.machine.mode, self.tasks.open_texts())

        with self._trigger(COACH_TRIGGER):
            text = self.client.call(prompt, COACH_SYSTEM_INSTRUCTION)

        if not text:
            return CoachResult(text=None, attached=False)
        with self._lock:
            attached = self.machine.attach_coach_response(text, context)
        if not attached:
            logger.info("discarding coach response for a stale session context")
        return CoachResult(text=text, attached=attached)

    # ----- Streaming -----
    def subscribe(self) -> queue.Queue[dict[str, Any]]:
        q: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=200)
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue[dict[str, Any]]) -> None:
        with self._lock:
            self._subscribers = [item for item in self._subscribers if item is not q]

    def shutdown(self) -> None:
        with self._lock:
            if self._ticker is not None:
                self._ticker.cancel()
                self._ticker = None
        self.client.close()

    # ----- Internals -----
    @contextmanager
    def _trigger(self, key: str) -> Iterator[None]:
        with self._lock:
            if key in self._inflight:
                raise TriggerBusy(key)
            self._inflight.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._inflight.discard(key)

    def _apply_tick(self) -> Completion | None:
        completion = self.machine.tick()
        if completion is not None:
            self._sync_ticker()
            self._persist()
        return completion

    def _on_ticker(self, ticker: Ticker) -> bool:
        with self._lock:
            if ticker is not self._ticker or ticker.cancelled:
                return False
            self._apply_tick()
            return self.machine.state is SessionState.RUNNING

    def _sync_ticker(self) -> None:
        running = self.machine.state is SessionState.RUNNING
        if running and self.auto_tick:
            if self._ticker is None or self._ticker.cancelled:
                self._ticker = Ticker(self._on_ticker, clock=self.clock)
                self._ticker.start()
            return
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _epoch_ms(self) -> int:
        return int(self.clock.now().timestamp() * 1000)

    def _persist(self) -> None:
        self.store.save(
            StoreSnapshot(
                credit=self.machine.credit,
                history=tuple(self.machine.history),
                tasks=tuple(self.tasks.items()),
            )
        )

    def _on_event(self, event: str, payload: dict[str, object]) -> None:
        self._broadcast({"event": event, **payload})

    def _broadcast(self, event: dict[str, Any]) -> None:
        event = {"at": self.clock.now().isoformat(timespec="seconds"), **event}
        alive: list[queue.Queue[dict[str, Any]]] = []
        for q in self._subscribers:
            try:
                q.put_nowait(event)
                alive.append(q)
            except queue.Full:
                continue
        self._subscribers = alive
