"""
Kafka-style publish/subscribe endpoints.

Subscribers that send ``Accept: text/event-stream`` get a server-sent event
stream (history first, then live messages). Anyone else gets a snapshot.
"""

import json
from typing import Any, AsyncIterator

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import StreamingResponse
from loguru import logger

from app.api.deps import get_hub
from app.models.schemas import MessageModel, PublishResponse, TopicSnapshot
from domains.hub import IntegrationHub

router = APIRouter()

EVENT_STREAM = "text/event-stream"


def format_sse(payload: dict) -> str:
    """Encode one server-sent event."""
    return f"data: {json.dumps(payload, default=str)}\n\n"


async def event_stream(hub: IntegrationHub, topic: str) -> AsyncIterator[str]:
    """
    Stream ``topic`` as server-sent events until the client goes away.

    The subscription is opened on the first iteration so a client that
    disconnects before the body starts never registers one.
    """
    subscription = hub.bus.subscribe(topic)
    try:
        async for message in subscription:
            yield format_sse(message.as_json_ready())
    finally:
        hub.bus.unsubscribe(subscription)


@router.post("/publish/{topic}", response_model=PublishResponse)
async def publish(topic: str, payload: Any = Body(None), hub: IntegrationHub = Depends(get_hub)):
    """Append ``payload`` to ``topic``."""
    message = hub.bus.publish(topic, payload)
    logger.info(f"Published to '{topic}' offset={message.offset}")

    return PublishResponse(status="published", topic=topic, offset=message.offset)


@router.get("/subscribe/{topic}")
async def subscribe(topic: str, request: Request, hub: IntegrationHub = Depends(get_hub)):
    """
    Subscribe to ``topic``.

    Returns:
        An event stream if requested via the Accept header, otherwise
        ``{topic, messages}``
    """
    if EVENT_STREAM in request.headers.get("accept", ""):
        return StreamingResponse(
            event_stream(hub, topic),
            media_type=EVENT_STREAM,
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    messages = [MessageModel(**m.as_json_ready()) for m in hub.bus.snapshot(topic)]
    return TopicSnapshot(topic=topic, messages=messages)


@router.get("/topics")
async def list_topics(hub: IntegrationHub = Depends(get_hub)):
    """Topic name to message count."""
    return hub.bus.topics()
