"""
Helper utilities for the Format Bridge.

Common functions used across domains.
"""

import time
from datetime import datetime, timezone
from pathlib import Path


def now_iso() -> str:
    """Get current timestamp as ISO string."""
    return datetime.now(timezone.utc).isoformat()


def parse_iso_timestamp(ts_str: str) -> datetime:
    """Parse ISO timestamp string to datetime."""
    return datetime.fromisoformat(ts_str.replace('Z', '+00:00'))


def epoch_millis() -> int:
    """Milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""
    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def is_regular_file(path: Path) -> bool:
    """True if ``path`` currently exists and is a regular file."""
    try:
        return path.is_file()
    except OSError:
        return False
