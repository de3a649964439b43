"""
Integration hub.

Owns every piece of process state (transaction store, event bus, watchers)
and wires the pipeline and bridge to the drop zones. The web layer keeps one
hub on ``app.state``; tests build their own.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from app.utils.config import Settings
from domains.events.bus import EventBus
from domains.file_watch.bridge import ApiBridge, Submitter, TransactionClient
from domains.file_watch.pipeline import TransformPipeline
from domains.file_watch.watcher import DirectoryWatcher
from domains.transactions.store import TransactionStore


class IntegrationHub:
    """Single coordinating object for the conversion and notification core."""

    def __init__(self, settings: Settings, submit: Optional[Submitter] = None):
        """
        Args:
            settings: Application settings
            submit: Record submitter for the bridge; defaults to HTTP delivery
                to ``settings.get_transactions_url()``
        """
        self.settings = settings
        self.directories: Dict[str, Path] = settings.get_directories()

        self.bus = EventBus(subscriber_queue_size=settings.subscriber_queue_size)
        self.store = TransactionStore(bus=self.bus, topic=settings.transactions_topic)
        self.pipeline = TransformPipeline(
            output_dir=self.directories["output"],
            bus=self.bus,
            topic=settings.file_transforms_topic,
        )

        if submit is None:
            client = TransactionClient(
                url=settings.get_transactions_url(),
                timeout=settings.bridge_timeout,
            )
            submit = client.submit
        self.bridge = ApiBridge(submit)

        self.watchers: List[DirectoryWatcher] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "IntegrationHub":
        return cls(settings)

    def ensure_directories(self) -> None:
        for directory in self.directories.values():
            directory.mkdir(parents=True, exist_ok=True)

    def start_watchers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Watch the input and api-bridge zones on ``loop``."""
        if self.watchers:
            return

        loop = loop or asyncio.get_running_loop()
        self.ensure_directories()

        self.watchers = [
            DirectoryWatcher(
                self.directories["input"],
                self.pipeline.on_file_arrival,
                loop,
                settle_delay=self.settings.settle_delay,
                debounce_window=self.settings.debounce_window,
                name="input",
            ),
            DirectoryWatcher(
                self.directories["api-bridge"],
                self.bridge.on_file_arrival,
                loop,
                settle_delay=self.settings.settle_delay,
                debounce_window=self.settings.debounce_window,
                name="api-bridge",
            ),
        ]

        for watcher in self.watchers:
            try:
                watcher.start()
            except OSError as e:
                logger.error(f"Failed to watch {watcher.directory}: {e}")

    def stop_watchers(self) -> None:
        for watcher in self.watchers:
            watcher.stop()
        self.watchers = []

    def watcher_status(self) -> Dict[str, bool]:
        return {watcher.name: watcher.is_running for watcher in self.watchers}
