"""Durable recording of committed episodes."""

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from ..errors import RecordWriteError
from .tracker import CommitRequest

DEFAULT_ACTION_TEMPLATE = "{label} detected"
DEFAULT_RECORD_TIMEOUT_SECONDS = 5.0


class DetectionSink(Protocol):
    """
    Append-only store for detection records.

    ``insert`` must be idempotent on ``record_id``: writing an id that is
    already stored succeeds without adding a row.
    """

    async def insert(self, action: str, record_id: UUID) -> UUID:
        ...


@dataclass(frozen=True)
class Ack:
    """Confirmed durable write."""
    request: CommitRequest
    record_id: UUID


@dataclass(frozen=True)
class RecordError:
    """Failed or timed-out write; the tracker retries it while present."""
    request: CommitRequest
    reason: str


RecordOutcome = Union[Ack, RecordError]


class EventRecorder:
    """
    Writes one detection record per commit request.

    There is no retry loop here. A failed write comes back as a
    ``RecordError`` and the tracker requests it again on a later frame
    while the episode is still running. A timed-out write may still land,
    so retries reuse the request's ``record_id`` and the sink skips ids it
    already holds.
    """

    def __init__(
        self,
        sink: DetectionSink,
        timeout_seconds: Optional[float] = DEFAULT_RECORD_TIMEOUT_SECONDS,
        action_template: str = DEFAULT_ACTION_TEMPLATE,
    ):
        self.sink = sink
        self.timeout_seconds = timeout_seconds
        self.action_template = action_template

    def render_action(self, request: CommitRequest) -> str:
        """Build the record's action text for a request."""
        return self.action_template.format(label=request.label)

    async def commit(self, request: CommitRequest) -> RecordOutcome:
        """
        Insert a detection record for the request.

        Returns:
            Ack on success, RecordError on sink failure or timeout
        """
        action = self.render_action(request)

        try:
            record_id = await asyncio.wait_for(
                self.sink.insert(action, request.record_id),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            reason = f"write timed out after {self.timeout_seconds}s"
            print(f"[RECORDER] {request.label} episode {request.episode}: {reason}")
            return RecordError(request=request, reason=reason)
        except (RecordWriteError, SQLAlchemyError, OSError) as e:
            print(f"[RECORDER] {request.label} episode {request.episode}: {e}")
            return RecordError(request=request, reason=str(e))

        print(f"[RECORDER] Recorded '{action}' - id={record_id}")
        return Ack(request=request, record_id=record_id)
