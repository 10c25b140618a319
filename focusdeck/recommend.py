from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .modes import Mode

HIGH_LOAD_STREAK = 3


@dataclass(frozen=True)
class Recommendation:
    text: str
    suggested_mode: Mode | None


def recommend(history: Sequence[Mode], is_active: bool) -> Recommendation:
    """First matching rule wins; a focus streak outranks a single focus."""
    if is_active:
        return Recommendation("Protocol active.", None)

    recent = list(history[-HIGH_LOAD_STREAK:])
    if len(recent) == HIGH_LOAD_STREAK and all(mode is Mode.FOCUS for mode in recent):
        return Recommendation("Entropy high. Reset suggested.", Mode.LONG_BREAK)

    if history and history[-1] is Mode.FOCUS:
        return Recommendation("Phase complete. Rest advised.", Mode.SHORT_BREAK)

    return Recommendation("Ready. Engage focus.", Mode.FOCUS)
