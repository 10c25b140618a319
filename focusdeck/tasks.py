from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Any, Callable, Iterable, Protocol

DECOMPOSE_SYSTEM_INSTRUCTION = "Systems engineer. Logic-based micro-steps."

_BULLET = re.compile(r"^(?:[-*•]|\d+\.)\s*")


class TextGenerator(Protocol):
    def call(self, prompt: str, system_instruction: str = ...) -> str | None:
        ...


@dataclass(frozen=True)
class Task:
    id: int
    text: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: Any) -> Task | None:
        if not isinstance(data, dict):
            return None
        raw_id = data.get("id")
        text = data.get("text")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int) or not isinstance(text, str):
            return None
        return cls(id=raw_id, text=text, completed=bool(data.get("completed", False)))


def decompose_prompt(text: str) -> str:
    return f'Break down "{text}" into 3 actionable steps. Bulleted list only.'


def parse_steps(text: str) -> list[str]:
    """
    Best-effort bullet parser: one leading "-", "*", "•" or "<n>." marker
    is stripped per line; lines without a marker are kept as they are.
    """
    steps: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        step = _BULLET.sub("", stripped, count=1).strip()
        if step:
            steps.append(step)
    return steps


class TaskList:
    """
    Ordered objective list.

    `id_floor` is a lower bound for freshly assigned ids. Services pass the
    wall clock in epoch milliseconds so ids keep increasing across restarts,
    even after the highest id was deleted.
    """

    def __init__(
        self,
        tasks: Iterable[Task] = (),
        id_floor: Callable[[], int] | None = None,
    ) -> None:
        self._id_floor = id_floor
        self._tasks: list[Task] = []
        seen: set[int] = set()
        for task in tasks:
            if task.id in seen:
                continue
            seen.add(task.id)
            self._tasks.append(task)
        self._next_id = max(seen, default=0) + 1

    def __len__(self) -> int:
        return len(self._tasks)

    def items(self) -> list[Task]:
        return list(self._tasks)

    def get(self, task_id: int) -> Task | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def open_texts(self) -> list[str]:
        return [task.text for task in self._tasks if not task.completed]

    def add(self, text: str) -> Task | None:
        clean = text.strip()
        if not clean:
            return None
        task = Task(id=self._new_id(), text=clean)
        self._tasks.append(task)
        return task

    def toggle_complete(self, task_id: int) -> bool:
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                self._tasks[index] = replace(task, completed=not task.completed)
                return True
        return False

    def remove(self, task_id: int) -> bool:
        before = len(self._tasks)
        self._tasks = [task for task in self._tasks if task.id != task_id]
        return len(self._tasks) != before

    def clear_all(self) -> int:
        removed = len(self._tasks)
        self._tasks = []
        return removed

    def replace_with_steps(self, task_id: int, steps: Iterable[str]) -> list[Task]:
        step_list = list(steps)
        if self.get(task_id) is None or not step_list:
            return []
        children = [Task(id=self._new_id(), text=step) for step in step_list]
        self._tasks = [task for task in self._tasks if task.id != task_id] + children
        return children

    def decompose(self, task_id: int, client: TextGenerator) -> list[Task]:
        task = self.get(task_id)
        if task is None:
            return []
        result = client.call(decompose_prompt(task.text), DECOMPOSE_SYSTEM_INSTRUCTION)
        if not result:
            return []
        return self.replace_with_steps(task_id, parse_steps(result))

    def _new_id(self) -> int:
        task_id = self._next_id
        if self._id_floor is not None:
            task_id = max(task_id, self._id_floor())
        self._next_id = task_id + 1
        return task_id
