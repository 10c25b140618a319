"""FocusDeck: focus/rest session timer with task list, history-driven advice and AI coaching."""

__version__ = "0.1.0"

from .cli import main  # noqa: E402

__all__ = ["main", "__version__"]
