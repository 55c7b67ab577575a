"""Pydantic schemas for API responses."""

from .detection import DetectionRecordResponse, DetectionListResponse

__all__ = [
    "DetectionRecordResponse",
    "DetectionListResponse",
]
