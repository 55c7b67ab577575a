"""SQLAlchemy ORM models."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Text, Index, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class DetectionRecord(Base):
    """
    One recorded sustained-presence episode.

    Append-only: rows are inserted by the worker and never updated.
    """
    __tablename__ = "detections"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    action: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = (
        Index("ix_detections_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<DetectionRecord {self.id} {self.action!r}>"
