"""Redis client and pub/sub helpers."""

from .client import get_redis, close_redis
from .pubsub import (
    ViewerPublisher,
    ViewerSubscriber,
    get_viewer_publisher,
    get_viewer_subscriber,
    image_data_uri,
    MESSAGE_HELLO,
    MESSAGE_IMAGE,
    MESSAGE_CLASSIFICATION,
)

__all__ = [
    # Client
    "get_redis",
    "close_redis",
    # Publisher and subscriber
    "ViewerPublisher",
    "ViewerSubscriber",
    "get_viewer_publisher",
    "get_viewer_subscriber",
    "image_data_uri",
    # Message kinds
    "MESSAGE_HELLO",
    "MESSAGE_IMAGE",
    "MESSAGE_CLASSIFICATION",
]
