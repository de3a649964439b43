"""
Shared fixtures for the Format Bridge test suite.
"""

from pathlib import Path

import pytest
from loguru import logger

from app.utils.config import Settings


@pytest.fixture
def log_messages():
    """Collect loguru messages as ``(level, message)`` tuples."""
    messages = []
    handler_id = logger.add(
        lambda m: messages.append((m.record["level"].name, m.record["message"])),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary directory, watchers disabled."""
    return Settings(
        base_dir=tmp_path,
        watch_enabled=False,
        settle_delay=0.05,
        debounce_window=0.2,
        transactions_url="http://bridge.test/api/transactions",
        _env_file=None,
    )
