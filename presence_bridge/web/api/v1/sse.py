"""Server-Sent Events (SSE) endpoint for the live viewer."""

import asyncio
import json
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

from ....shared.redis.pubsub import (
    ViewerSubscriber,
    get_viewer_subscriber,
    image_data_uri,
    MESSAGE_HELLO,
    MESSAGE_IMAGE,
)
from ...config import config

router = APIRouter()


async def viewer_event_generator(
    subscriber: ViewerSubscriber,
    is_disconnected: Callable[[], Awaitable[bool]],
) -> AsyncGenerator[dict, None]:
    """
    Generate SSE events for one viewer.

    Sends ``hello`` first, then the latest frame if there is one, then
    forwards ``image`` and ``classification`` messages as they arrive.
    """
    hello = await subscriber.get_hello()
    yield {
        "event": MESSAGE_HELLO,
        "data": json.dumps(hello),
    }

    latest = await subscriber.get_latest_image()
    if latest:
        yield {
            "event": MESSAGE_IMAGE,
            "data": json.dumps({"img": image_data_uri(latest)}),
        }

    try:
        async for message in subscriber.subscribe():
            if await is_disconnected():
                break
            if message is None:
                # quiet channel, e.g. worker down
                continue

            yield {
                "event": message.get("type", "message"),
                "data": json.dumps(message.get("data", {})),
            }

    except asyncio.CancelledError:
        pass
    finally:
        print(f"[SSE] Viewer left stream {subscriber.stream_id}")
        await subscriber.unsubscribe()


@router.get("/sse/viewer")
async def sse_viewer(request: Request):
    """
    Subscribe to the live viewer stream via Server-Sent Events.

    Event types:
    - hello: Project identity, sent once on connect
    - image: Latest camera frame as a base64 JPEG data URI
    - classification: Filtered bounding boxes and inference time
    """
    subscriber = await get_viewer_subscriber(config.STREAM_ID)

    return EventSourceResponse(
        viewer_event_generator(subscriber, request.is_disconnected),
        ping=config.SSE_PING_SECONDS,
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
