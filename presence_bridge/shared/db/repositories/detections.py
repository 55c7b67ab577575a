"""Detection record repository."""

from typing import List
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import DetectionRecord


class DetectionRepository:
    """Repository for the append-only detections table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, action: str, record_id: UUID) -> UUID:
        """
        Insert a record under a caller-chosen id.

        Writing an id that already exists is a no-op, so a retried insert
        never produces a second row. created_at is assigned by the server.
        """
        statement = (
            insert(DetectionRecord)
            .values(id=record_id, action=action)
            .on_conflict_do_nothing(index_elements=["id"])
        )
        await self.session.execute(statement)
        return record_id

    async def get_recent(self, limit: int = 50) -> List[DetectionRecord]:
        """Get most recent records, newest first."""
        query = (
            select(DetectionRecord)
            .order_by(DetectionRecord.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self) -> int:
        """Get total count of records."""
        query = select(func.count()).select_from(DetectionRecord)
        result = await self.session.execute(query)
        return result.scalar_one()
