"""
In-memory event bus.

Each topic is an append-only list of messages with gap-free offsets starting
at 0. Streaming subscribers get a bounded queue pre-filled with the topic's
history, then every later publish. Polling callers get a snapshot.

Everything here runs on a single event loop; ``publish`` never awaits, so a
subscription registered between two publishes sees neither a gap nor a
duplicate.
"""

from __future__ import annotations

import asyncio
import copy
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from app.utils.helpers import now_iso


@dataclass(frozen=True)
class Message:
    """One entry in a topic log."""

    offset: int
    timestamp: str
    data: Any

    def as_json_ready(self) -> Dict[str, Any]:
        return asdict(self)


_CLOSED = object()


class Subscription:
    """
    A live, streaming subscription to one topic.

    Iterate with ``async for``; iteration ends once the subscription is
    closed and the already-queued messages are drained.
    """

    def __init__(self, topic: str, history: List[Message], capacity: int):
        self.topic = topic
        self.capacity = capacity
        # One extra slot is reserved for the close marker.
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=len(history) + capacity + 1)
        self._closed = False
        for message in history:
            self._queue.put_nowait(message)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def deliver(self, message: Message) -> bool:
        """
        Queue ``message`` without blocking.

        Returns:
            False if the subscription is closed or its queue is full
        """
        if self._closed or self._queue.qsize() >= self._queue.maxsize - 1:
            return False
        self._queue.put_nowait(message)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def get(self) -> Optional[Message]:
        """Next message, or None once closed and drained."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> Message:
        message = await self.get()
        if message is None:
            raise StopAsyncIteration
        return message


class EventBus:
    """Multi-topic publish/subscribe with per-topic history."""

    def __init__(self, subscriber_queue_size: int = 256):
        self.subscriber_queue_size = subscriber_queue_size
        self._topics: Dict[str, List[Message]] = {}
        self._subscribers: Dict[str, List[Subscription]] = {}

    def _topic(self, topic: str) -> List[Message]:
        if topic not in self._topics:
            self._topics[topic] = []
            self._subscribers[topic] = []
        return self._topics[topic]

    def publish(self, topic: str, payload: Any) -> Message:
        """Append ``payload`` to ``topic`` and push it to live subscribers."""
        log = self._topic(topic)
        message = Message(offset=len(log), timestamp=now_iso(), data=copy.deepcopy(payload))
        log.append(message)

        for subscription in list(self._subscribers[topic]):
            if not subscription.deliver(message):
                logger.warning(
                    f"Dropping slow subscriber on '{topic}' "
                    f"({subscription.pending} messages pending)"
                )
                self.unsubscribe(subscription)

        logger.debug(f"Published to '{topic}' offset={message.offset}")
        return message

    def subscribe(self, topic: str) -> Subscription:
        """Open a streaming subscription that replays history first."""
        log = self._topic(topic)
        subscription = Subscription(topic, list(log), self.subscriber_queue_size)
        self._subscribers[topic].append(subscription)
        logger.info(f"Subscriber connected to '{topic}' (replaying {len(log)})")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
            logger.info(f"Subscriber disconnected from '{subscription.topic}'")
        subscription.close()

    def snapshot(self, topic: str) -> List[Message]:
        """One-shot copy of the topic history."""
        return list(self._topic(topic))

    def topics(self) -> Dict[str, int]:
        """Topic name to message count."""
        return {name: len(log) for name, log in self._topics.items()}

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))
