"""Web service configuration from environment variables."""

import os


class WebConfig:
    """Configuration for web service."""

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "4911"))

    # Viewer stream published by the worker
    STREAM_ID: str = os.getenv("STREAM_ID", "default")
    SSE_PING_SECONDS: int = int(os.getenv("SSE_PING_SECONDS", "15"))

    # Detections API
    DETECTIONS_PAGE_MAX: int = int(os.getenv("DETECTIONS_PAGE_MAX", "200"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production."""
        return os.getenv("ENVIRONMENT", "").lower() == "production"


config = WebConfig()
