"""
File Watch Domain

Drop-zone handling:
- debounce.py - per-path settle/debounce state machine
- watcher.py - watchdog observer feeding the debouncer on the event loop
- pipeline.py - file-to-file transformation + notification
- bridge.py - file-to-REST API bridge
"""

__all__ = ["debounce", "watcher", "pipeline", "bridge"]
