"""API v1 module."""

from fastapi import APIRouter

from .detections import router as detections_router
from .stream import router as stream_router
from .sse import router as sse_router

# Create main API router
router = APIRouter(prefix="/api/v1")

# Include sub-routers
router.include_router(detections_router, prefix="/detections", tags=["detections"])
router.include_router(stream_router, tags=["streaming"])
router.include_router(sse_router, tags=["sse"])
