from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def default_db_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "focusdeck.sqlite"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    timeout_sec: float = 30.0
    journal_mode: str | None = None

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        raw_db = os.getenv("FOCUSDECK_DB", "").strip()
        resolved_db = Path(db_path) if db_path else (Path(raw_db) if raw_db else default_db_path())
        api_key = (os.getenv("FOCUSDECK_API_KEY") or os.getenv("GEMINI_API_KEY") or "").strip()
        return cls(
            db_path=resolved_db,
            api_key=api_key,
            model=os.getenv("FOCUSDECK_MODEL", "").strip() or DEFAULT_MODEL,
            base_url=(os.getenv("FOCUSDECK_BASE_URL", "").strip() or DEFAULT_BASE_URL).rstrip("/"),
            timeout_sec=_float_env("FOCUSDECK_TIMEOUT", 30.0),
            journal_mode=os.getenv("FOCUSDECK_JOURNAL_MODE", "").strip() or None,
        )


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default
