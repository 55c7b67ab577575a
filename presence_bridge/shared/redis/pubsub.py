"""Redis pub/sub helpers for the live viewer stream."""

import base64
import json
from typing import Any, AsyncGenerator, Dict, List, Optional

import redis.asyncio as redis

from .client import get_redis


# Channel and key patterns
VIEWER_CHANNEL_PREFIX = "viewer:"
LATEST_IMAGE_PREFIX = "latest_image:"
HELLO_PREFIX = "viewer_hello:"

# Message kinds pushed to viewers
MESSAGE_HELLO = "hello"
MESSAGE_IMAGE = "image"
MESSAGE_CLASSIFICATION = "classification"

LATEST_IMAGE_TTL_SECONDS = 10

# Longest a subscriber waits on a quiet channel before yielding control
IDLE_TICK_SECONDS = 1.0


def image_data_uri(jpeg_bytes: bytes) -> str:
    """Encode JPEG bytes as a data URI for the viewer <img> tag."""
    return "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes).decode("ascii")


def encode_message(kind: str, data: Dict[str, Any]) -> bytes:
    """Serialize a viewer message for the Redis channel."""
    return json.dumps({"type": kind, "data": data}).encode()


def image_message(jpeg_bytes: bytes) -> Dict[str, Any]:
    return {"img": image_data_uri(jpeg_bytes)}


def classification_message(
    bounding_boxes: List[Dict[str, Any]],
    time_ms: float,
) -> Dict[str, Any]:
    return {
        "result": {"bounding_boxes": bounding_boxes},
        "timeMs": time_ms,
    }


class ViewerPublisher:
    """Publishes frames and classification results for live viewers."""

    def __init__(self, client: redis.Redis, stream_id: str = "default"):
        self.client = client
        self.stream_id = stream_id
        self.channel = f"{VIEWER_CHANNEL_PREFIX}{stream_id}"

    async def set_hello(self, project_name: str) -> None:
        """Store the identity sent to each newly connected viewer."""
        await self.client.set(
            f"{HELLO_PREFIX}{self.stream_id}",
            json.dumps({"projectName": project_name}),
        )

    async def publish_image(self, jpeg_bytes: bytes) -> int:
        """
        Publish a JPEG frame.

        Returns:
            Number of subscribers that received the message
        """
        # Keep latest frame for new viewers and snapshots
        await self.client.set(
            f"{LATEST_IMAGE_PREFIX}{self.stream_id}",
            jpeg_bytes,
            ex=LATEST_IMAGE_TTL_SECONDS,
        )
        message = encode_message(MESSAGE_IMAGE, image_message(jpeg_bytes))
        return await self.client.publish(self.channel, message)

    async def publish_classification(
        self,
        bounding_boxes: List[Dict[str, Any]],
        time_ms: float,
    ) -> int:
        """Publish a filtered classification result."""
        message = encode_message(
            MESSAGE_CLASSIFICATION,
            classification_message(bounding_boxes, time_ms),
        )
        return await self.client.publish(self.channel, message)


class ViewerSubscriber:
    """Subscribes to the viewer stream for one SSE client."""

    def __init__(self, client: redis.Redis, stream_id: str = "default"):
        self.client = client
        self.stream_id = stream_id
        self.channel = f"{VIEWER_CHANNEL_PREFIX}{stream_id}"
        self._pubsub: Optional[redis.client.PubSub] = None

    async def get_hello(self) -> Dict[str, Any]:
        """Get the stream identity; empty project name if the worker is not up."""
        raw = await self.client.get(f"{HELLO_PREFIX}{self.stream_id}")
        if not raw:
            return {"projectName": ""}
        return json.loads(raw)

    async def get_latest_image(self) -> Optional[bytes]:
        """Get the latest JPEG frame."""
        return await self.client.get(f"{LATEST_IMAGE_PREFIX}{self.stream_id}")

    async def subscribe(
        self,
        idle_timeout: float = IDLE_TICK_SECONDS,
    ) -> AsyncGenerator[Optional[Dict[str, Any]], None]:
        """
        Subscribe to viewer messages.

        Yields:
            Message dicts with "type" and "data" keys, or None after
            ``idle_timeout`` seconds without a message so callers can check
            on their client
        """
        self._pubsub = self.client.pubsub()

        try:
            await self._pubsub.subscribe(self.channel)

            while True:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=idle_timeout,
                )
                if message is None:
                    yield None
                    continue
                if message["type"] != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except json.JSONDecodeError:
                    continue

        finally:
            if self._pubsub:
                await self._pubsub.unsubscribe(self.channel)
                await self._pubsub.close()

    async def unsubscribe(self) -> None:
        """Unsubscribe from viewer messages."""
        if self._pubsub:
            await self._pubsub.close()
            self._pubsub = None


async def get_viewer_publisher(stream_id: str = "default") -> ViewerPublisher:
    """Get a viewer publisher instance."""
    client = await get_redis()
    return ViewerPublisher(client, stream_id)


async def get_viewer_subscriber(stream_id: str = "default") -> ViewerSubscriber:
    """Get a viewer subscriber instance."""
    client = await get_redis()
    return ViewerSubscriber(client, stream_id)
