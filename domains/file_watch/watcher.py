"""
Directory watcher for the drop zones.

Uses the watchdog library for cross-platform file system event monitoring.
Watchdog delivers events on its own observer thread; they are handed to the
asyncio event loop with ``call_soon_threadsafe`` so the debounce state, the
handlers and everything they touch only ever run on the loop.
"""

from __future__ import annotations

import asyncio
import inspect
from pathlib import Path
from typing import Any, Callable, Optional, Set

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from domains.file_watch.debounce import PathDebouncer


class DropZoneEventHandler(FileSystemEventHandler):
    """Forwards file events for one directory to a debouncer."""

    def __init__(self, directory: Path, notify: Callable[[Path], Any]):
        """
        Args:
            directory: Watched directory
            notify: Thread-safe callable receiving the file path
        """
        super().__init__()
        self.directory = directory
        self.notify = notify

    def _forward(self, raw_path: str) -> None:
        path = Path(raw_path)
        # Moves out of the zone land elsewhere
        if path.parent != self.directory:
            return
        self.notify(path)

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._forward(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        # Directory modifications fire for every entry change
        if event.is_directory:
            return
        self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        dest = getattr(event, "dest_path", None)
        if dest:
            self._forward(dest)


class DirectoryWatcher:
    """Invokes ``handler`` once per settled file dropped into ``directory``."""

    def __init__(
        self,
        directory: Path,
        handler: Callable[[Path], Any],
        loop: asyncio.AbstractEventLoop,
        settle_delay: float = 0.2,
        debounce_window: float = 0.5,
        name: Optional[str] = None,
    ):
        self.directory = Path(directory).resolve()
        self.handler = handler
        self.loop = loop
        self.name = name or self.directory.name

        self.debouncer = PathDebouncer(
            scheduler=loop,
            dispatch=self._dispatch,
            settle_delay=settle_delay,
            debounce_window=debounce_window,
        )
        self.event_handler = DropZoneEventHandler(self.directory, self._notify_threadsafe)
        self.observer: Optional[Observer] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self.observer is not None and self.observer.is_alive()

    def _notify_threadsafe(self, path: Path) -> None:
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.debouncer.notify, path)

    def _dispatch(self, path: Path) -> None:
        result = self.handler(path)
        if inspect.isawaitable(result):
            task = self.loop.create_task(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"[{self.name}] handler task failed: {exc}")

    def start(self) -> None:
        """Start watching the directory."""
        if self.is_running:
            return

        self.directory.mkdir(parents=True, exist_ok=True)
        self.observer = Observer()
        self.observer.schedule(self.event_handler, str(self.directory), recursive=False)
        self.observer.daemon = True
        self.observer.start()
        logger.success(f"Started watching: {self.directory}")

    def stop(self) -> None:
        """Stop watching and cancel handler tasks still in flight."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

        if self.observer is None:
            return
        self.observer.stop()
        self.observer.join()
        self.observer = None
        logger.info(f"Stopped watching: {self.directory}")
