"""
Per-path debounce for noisy filesystem notifications.

A single logical "file dropped" usually arrives as a burst of raw events,
some of them while the writer is still appending. Each path runs through an
explicit state machine:

    IDLE --notify--> PENDING_SETTLE --settle--> DISPATCHED --reset--> IDLE

Further notifications are ignored until the reset fires, which happens after
``debounce_window`` seconds whether or not the handler ran. Timers come from a
``Scheduler`` so the logic can be driven without real time.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Protocol

from loguru import logger

from app.utils.helpers import is_regular_file


class Scheduler(Protocol):
    """Anything with ``call_later``; ``asyncio`` event loops qualify."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any:
        ...


class PathState(str, Enum):
    IDLE = "idle"
    PENDING_SETTLE = "pending_settle"
    DISPATCHED = "dispatched"


class PathDebouncer:
    """Collapses bursts of notifications for a path into one dispatch."""

    def __init__(
        self,
        scheduler: Scheduler,
        dispatch: Callable[[Path], Any],
        settle_delay: float = 0.2,
        debounce_window: float = 0.5,
    ):
        """
        Args:
            scheduler: Timer source
            dispatch: Called with the path once it has settled
            settle_delay: Wait before checking the file, in seconds
            debounce_window: Time until the path accepts notifications again
        """
        if debounce_window < settle_delay:
            raise ValueError("debounce_window must not be shorter than settle_delay")

        self.scheduler = scheduler
        self.dispatch = dispatch
        self.settle_delay = settle_delay
        self.debounce_window = debounce_window
        self._states: Dict[Path, PathState] = {}

    def state(self, path: Path) -> PathState:
        return self._states.get(Path(path), PathState.IDLE)

    def notify(self, path: Path) -> bool:
        """
        Register a raw event for ``path``.

        Returns:
            True if this event started a new settle cycle, False if ignored
        """
        path = Path(path)
        if self.state(path) is not PathState.IDLE:
            return False

        self._states[path] = PathState.PENDING_SETTLE
        self.scheduler.call_later(self.settle_delay, self._settle, path)
        self.scheduler.call_later(self.debounce_window, self._reset, path)
        return True

    def _settle(self, path: Path) -> None:
        if self._states.get(path) is not PathState.PENDING_SETTLE:
            return

        self._states[path] = PathState.DISPATCHED

        if not is_regular_file(path):
            logger.debug(f"Skipping {path}: gone or not a regular file")
            return

        try:
            self.dispatch(path)
        except Exception as e:
            logger.error(f"Handler failed for {path}: {e}")

    def _reset(self, path: Path) -> None:
        self._states.pop(path, None)
