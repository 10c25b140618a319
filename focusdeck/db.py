from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import sqlite3
from typing import Any, Protocol

from .config import default_db_path
from .modes import Mode, mode_from_id
from .tasks import Task

logger = logging.getLogger(__name__)

SLOT_CREDIT = "credit"
SLOT_HISTORY = "history"
SLOT_TASKS = "tasks"


@dataclass(frozen=True)
class StoreSnapshot:
    credit: int = 0
    history: tuple[Mode, ...] = field(default_factory=tuple)
    tasks: tuple[Task, ...] = field(default_factory=tuple)


class Repository(Protocol):
    def load(self) -> StoreSnapshot:
        ...

    def save(self, snapshot: StoreSnapshot) -> None:
        ...


class FocusStore:
    def __init__(self, db_path: Path | None = None, journal_mode: str | None = None) -> None:
        self.db_path = Path(db_path or default_db_path())
        raw_mode = (journal_mode or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    def init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS slots (
                    name TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def load(self) -> StoreSnapshot:
        with self._connect() as conn:
            rows = conn.execute("SELECT name, value FROM slots").fetchall()

        raw: dict[str, Any] = {}
        for row in rows:
            try:
                raw[row["name"]] = json.loads(row["value"])
            except (TypeError, ValueError):
                logger.warning("ignoring unreadable slot %r", row["name"])

        return StoreSnapshot(
            credit=_parse_credit(raw.get(SLOT_CREDIT)),
            history=_parse_history(raw.get(SLOT_HISTORY)),
            tasks=_parse_tasks(raw.get(SLOT_TASKS)),
        )

    def save(self, snapshot: StoreSnapshot) -> None:
        values = [
            (SLOT_CREDIT, json.dumps(max(0, int(snapshot.credit)))),
            (SLOT_HISTORY, json.dumps([mode.name for mode in snapshot.history])),
            (SLOT_TASKS, json.dumps([task.to_dict() for task in snapshot.tasks], ensure_ascii=False)),
        ]
        with self._connect() as conn:
            conn.executemany(
                """
                INSERT INTO slots (name, value) VALUES (?, ?)
                ON CONFLICT(name) DO UPDATE SET value = excluded.value
                """,
                values,
            )
            conn.commit()


def _parse_credit(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0
    return max(0, int(raw))


def _parse_history(raw: Any) -> tuple[Mode, ...]:
    if not isinstance(raw, list):
        return ()
    modes = (mode_from_id(item) for item in raw)
    return tuple(mode for mode in modes if mode is not None)


def _parse_tasks(raw: Any) -> tuple[Task, ...]:
    if not isinstance(raw, list):
        return ()
    tasks = (Task.from_dict(item) for item in raw)
    return tuple(task for task in tasks if task is not None)
