"""Main web application - FastAPI server for the live viewer and detections API."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from redis.exceptions import RedisError

from .. import __version__
from ..errors import ConfigurationError
from ..shared.db.database import init_db, close_db
from ..shared.redis.client import close_redis, get_redis
from .api.v1 import router as api_router
from .config import config
from .viewer import VIEWER_HTML


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    print("=" * 60)
    print("  Presence Bridge - Web Service")
    print("=" * 60)

    print("\n[SETUP] Initializing database connection...")
    try:
        await init_db()
    except ConfigurationError as e:
        print(f"[WARN] {e}")
        print("[WARN] Detections API will be unavailable")

    print("[SETUP] Checking Redis connection...")
    try:
        redis = await get_redis()
        await redis.ping()
        print("[SETUP] Redis connected")
    except (RedisError, OSError) as e:
        print(f"[WARN] Redis not available: {e}")
        print("[WARN] Live viewer will not receive frames")

    print(f"\n[SERVER] Starting on port {config.PORT}...")
    print("=" * 60)

    yield  # Application runs here

    # Shutdown
    print("\n[SHUTDOWN] Closing connections...")
    await close_db()
    await close_redis()
    print("[SHUTDOWN] Complete")


# Create FastAPI app
app = FastAPI(
    title="Presence Bridge API",
    description="Live object detection viewer and sustained-presence records",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if not config.is_production() else None,
    redoc_url="/redoc" if not config.is_production() else None,
)

# Include API router
app.include_router(api_router)


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "web",
        "version": __version__,
    }


@app.get("/", response_class=HTMLResponse)
async def viewer():
    """Serve the live viewer page."""
    return HTMLResponse(content=VIEWER_HTML)


def main():
    """Main entry point."""
    import uvicorn

    uvicorn.run(
        "presence_bridge.web.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=not config.is_production(),
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
