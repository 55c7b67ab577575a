"""Worker service configuration."""

import argparse
import os
from typing import List, Optional


def _split_labels(raw: str) -> List[str]:
    return [label.strip() for label in raw.split(",") if label.strip()]


class WorkerConfig:
    """Configuration for worker service."""

    # Episode detection
    TRACKED_LABELS: List[str] = _split_labels(os.getenv("TRACKED_LABELS", "coffee-cup"))
    CONFIDENCE_THRESHOLD: float = float(os.getenv("CONFIDENCE_THRESHOLD", "0.75"))
    PRESENCE_THRESHOLD_MS: float = float(os.getenv("PRESENCE_THRESHOLD_MS", "3000"))

    # Recording
    RECORD_TIMEOUT_SECONDS: float = float(os.getenv("RECORD_TIMEOUT_SECONDS", "5.0"))
    ACTION_TEMPLATE: str = os.getenv("ACTION_TEMPLATE", "{label} detected")

    # Model settings
    # Low confidence here; the detection filter applies CONFIDENCE_THRESHOLD
    INFER_CONF: float = float(os.getenv("INFER_CONF", "0.25"))
    INFER_IMGSZ: int = int(os.getenv("INFER_IMGSZ", "320"))
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "")

    # Capture settings
    CAPTURE_INTERVAL_MS: int = int(os.getenv("CAPTURE_INTERVAL_MS", "100"))
    CAMERA_DEVICE: Optional[int] = (
        int(os.environ["CAMERA_DEVICE"]) if os.getenv("CAMERA_DEVICE") else None
    )
    MAX_CAMERA_PROBE: int = int(os.getenv("MAX_CAMERA_PROBE", "4"))

    # Viewer stream
    STREAM_ID: str = os.getenv("STREAM_ID", "default")
    STREAM_JPEG_QUALITY: int = int(os.getenv("STREAM_JPEG_QUALITY", "65"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    VERBOSE: bool = os.getenv("VERBOSE", "0") == "1"
    STATS_INTERVAL_SECONDS: float = float(os.getenv("STATS_INTERVAL_SECONDS", "60"))

    @classmethod
    def validate(cls) -> List[str]:
        """Validate configuration and return a list of problems."""
        problems = []

        if not os.getenv("DATABASE_URL", "").strip():
            problems.append("DATABASE_URL must be set (detection sink credentials)")
        if not cls.TRACKED_LABELS:
            problems.append("TRACKED_LABELS must name at least one label")
        if not 0.0 <= cls.CONFIDENCE_THRESHOLD <= 1.0:
            problems.append("CONFIDENCE_THRESHOLD must be between 0 and 1")
        if cls.PRESENCE_THRESHOLD_MS < 0:
            problems.append("PRESENCE_THRESHOLD_MS must not be negative")

        return problems


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Presence Bridge worker - records sustained object presence"
    )
    parser.add_argument(
        "model",
        nargs="?",
        help="Path to the YOLO model file",
    )
    parser.add_argument(
        "--device", "-d",
        type=int,
        help="Camera device index (default: first device found)",
    )
    return parser.parse_args(argv)


config = WorkerConfig()
