"""
Events Domain

In-memory multi-topic event bus with per-topic history and live streaming
subscriptions.
"""

__all__ = ["bus"]
