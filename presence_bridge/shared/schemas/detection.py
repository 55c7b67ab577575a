"""Detection record schemas."""

from datetime import datetime
from typing import List
from uuid import UUID

from pydantic import BaseModel


class DetectionRecordResponse(BaseModel):
    """Detection record response schema."""
    id: UUID
    created_at: datetime
    action: str

    class Config:
        from_attributes = True


class DetectionListResponse(BaseModel):
    """Detection list response schema."""
    detections: List[DetectionRecordResponse]
    total: int
