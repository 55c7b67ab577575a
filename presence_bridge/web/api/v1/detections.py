"""Detection records API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ....shared.db.database import get_db_session
from ....shared.db.repositories.detections import DetectionRepository
from ....shared.schemas.detection import (
    DetectionRecordResponse,
    DetectionListResponse,
)
from ...config import config

router = APIRouter()


@router.get("", response_model=DetectionListResponse)
async def list_detections(
    db: AsyncSession = Depends(get_db_session),
    limit: int = Query(default=50, ge=1, le=config.DETECTIONS_PAGE_MAX),
):
    """
    List recorded detections, newest first.
    """
    repo = DetectionRepository(db)
    records = await repo.get_recent(limit=limit)
    total = await repo.count()

    return DetectionListResponse(
        detections=[DetectionRecordResponse.model_validate(r) for r in records],
        total=total,
    )
