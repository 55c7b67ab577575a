"""Tests for the event recorder's outcome mapping."""

from __future__ import annotations

import asyncio
import uuid

from sqlalchemy.exc import OperationalError

from presence_bridge.core.recorder import Ack, EventRecorder, RecordError
from presence_bridge.core.tracker import CommitRequest
from presence_bridge.errors import RecordWriteError

REQUEST = CommitRequest(
    label="coffee-cup",
    occurred_at_ms=3100.0,
    episode=1,
    record_id=uuid.UUID("5f0c6a36-2c4e-4c3a-9d5e-2d3f8b1e7a10"),
)


class _MemorySink:
    def __init__(self) -> None:
        self.actions: list[str] = []
        self.ids: list[uuid.UUID] = []

    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        self.actions.append(action)
        self.ids.append(record_id)
        return record_id


class _FailingSink:
    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        self.calls += 1
        raise self.error


class _HangingSink:
    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        await asyncio.sleep(10)
        return uuid.uuid4()


def test_successful_write_returns_ack_with_record_id() -> None:
    sink = _MemorySink()
    recorder = EventRecorder(sink)

    outcome = asyncio.run(recorder.commit(REQUEST))

    assert isinstance(outcome, Ack)
    assert outcome.request == REQUEST
    assert outcome.record_id == REQUEST.record_id
    assert sink.ids == [REQUEST.record_id]
    assert sink.actions == ["coffee-cup detected"]


def test_action_template_is_configurable() -> None:
    sink = _MemorySink()
    recorder = EventRecorder(sink, action_template="Saw a {label}")

    asyncio.run(recorder.commit(REQUEST))

    assert sink.actions == ["Saw a coffee-cup"]


def test_sink_write_error_becomes_record_error() -> None:
    sink = _FailingSink(RecordWriteError("connection reset"))
    recorder = EventRecorder(sink)

    outcome = asyncio.run(recorder.commit(REQUEST))

    assert isinstance(outcome, RecordError)
    assert "connection reset" in outcome.reason
    # no internal retry
    assert sink.calls == 1


def test_sqlalchemy_error_becomes_record_error() -> None:
    sink = _FailingSink(OperationalError("INSERT", {}, Exception("db down")))
    recorder = EventRecorder(sink)

    outcome = asyncio.run(recorder.commit(REQUEST))

    assert isinstance(outcome, RecordError)


def test_os_error_becomes_record_error() -> None:
    recorder = EventRecorder(_FailingSink(ConnectionRefusedError("refused")))

    outcome = asyncio.run(recorder.commit(REQUEST))

    assert isinstance(outcome, RecordError)


def test_hung_write_times_out_as_record_error() -> None:
    recorder = EventRecorder(_HangingSink(), timeout_seconds=0.05)

    outcome = asyncio.run(recorder.commit(REQUEST))

    assert isinstance(outcome, RecordError)
    assert "timed out" in outcome.reason
