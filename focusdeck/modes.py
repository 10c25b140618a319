from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ModeSpec:
    duration_sec: int
    label: str
    description: str

    @property
    def credit(self) -> int:
        return self.duration_sec // 60


class Mode(Enum):
    FOCUS = ModeSpec(25 * 60, "Focus Deep", "High-intensity cognitive work.")
    SHORT_BREAK = ModeSpec(5 * 60, "Short Rest", "Brief physiological reset.")
    LONG_BREAK = ModeSpec(15 * 60, "Deep Reset", "Extended recovery.")

    @property
    def spec(self) -> ModeSpec:
        return self.value

    @property
    def duration_sec(self) -> int:
        return self.value.duration_sec

    @property
    def label(self) -> str:
        return self.value.label

    @classmethod
    def parse(cls, raw: str) -> Mode:
        key = raw.strip().upper().replace("-", "_")
        try:
            return cls[key]
        except KeyError as exc:
            choices = ", ".join(item.name.lower() for item in cls)
            raise ValueError(f"unknown mode: {raw} (expected one of {choices})") from exc


def mode_from_id(raw: object) -> Mode | None:
    if not isinstance(raw, str):
        return None
    return Mode.__members__.get(raw)


def format_countdown(seconds: int) -> str:
    total = max(0, seconds)
    minutes, sec = divmod(total, 60)
    return f"{minutes}:{sec:02d}"
