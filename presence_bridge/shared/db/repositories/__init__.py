"""Database repositories."""

from .detections import DetectionRepository

__all__ = [
    "DetectionRepository",
]
