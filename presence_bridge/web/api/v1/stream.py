"""Snapshot endpoint for the latest camera frame."""

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response
from redis.exceptions import RedisError

from ....shared.redis.pubsub import get_viewer_subscriber
from ...config import config

router = APIRouter()


@router.get("/snapshot")
async def get_snapshot():
    """Get the most recent frame published by the worker."""
    try:
        subscriber = await get_viewer_subscriber(config.STREAM_ID)
        frame_data = await subscriber.get_latest_image()
    except (RedisError, OSError) as e:
        print(f"[STREAM] Snapshot unavailable: {e}")
        frame_data = None

    if not frame_data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No frame available",
        )

    return Response(
        content=frame_data,
        media_type="image/jpeg",
        headers={"Cache-Control": "no-cache"},
    )
