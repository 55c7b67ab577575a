"""PostgreSQL-backed detection sink."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from ..errors import RecordWriteError
from ..shared.db.database import async_session_factory
from ..shared.db.repositories.detections import DetectionRepository


class DatabaseSink:
    """Inserts detection records through the async session factory."""

    def __init__(self, session_factory=async_session_factory):
        self._session_factory = session_factory

    async def insert(self, action: str, record_id: UUID) -> UUID:
        """Insert one record; an id that is already stored is skipped."""
        try:
            async with self._session_factory() as session:
                repo = DetectionRepository(session)
                await repo.create(action, record_id)
        except (SQLAlchemyError, OSError) as e:
            raise RecordWriteError(f"Failed to insert detection: {e}") from e

        # Session commit happens on context exit
        return record_id
