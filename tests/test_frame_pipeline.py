"""Tests for frame ordering and commit outcome handling in the pipeline."""

from __future__ import annotations

import asyncio
import uuid

from sqlalchemy.exc import OperationalError

from presence_bridge.core.detection import BoundingBox, ClassificationResult, Detection
from presence_bridge.core.recorder import EventRecorder
from presence_bridge.core.tracker import EpisodePhase, EpisodeTracker
from presence_bridge.errors import RecordWriteError
from presence_bridge.worker.pipeline import FramePipeline

LABEL = "coffee-cup"


def _result(*detections: tuple[str, float]) -> ClassificationResult:
    return ClassificationResult(
        detections=[
            Detection(label=label, confidence=conf, bbox=BoundingBox(0.1, 0.1, 0.2, 0.2))
            for label, conf in detections
        ],
        timing_ms=12.5,
    )


class _ScriptedSink:
    """Fails the first ``failures`` inserts, then succeeds."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls = 0
        self.rows: dict[uuid.UUID, str] = {}

    @property
    def actions(self) -> list[str]:
        return list(self.rows.values())

    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        self.calls += 1
        if self.calls <= self.failures:
            raise RecordWriteError("sink unavailable")
        self.rows.setdefault(record_id, action)
        return record_id


class _LateSink(_ScriptedSink):
    """Stores the row, then stalls past the caller's timeout on the first call."""

    def __init__(self, stall_seconds: float) -> None:
        super().__init__()
        self.stall_seconds = stall_seconds

    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        self.calls += 1
        self.rows.setdefault(record_id, action)
        if self.calls == 1:
            await asyncio.sleep(self.stall_seconds)
        return record_id


class _FlakySink(_ScriptedSink):
    """Raises each of ``errors`` in turn, then succeeds."""

    def __init__(self, errors: list[Exception]) -> None:
        super().__init__()
        self.errors = list(errors)

    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        self.rows.setdefault(record_id, action)
        return record_id


class _GatedSink:
    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.calls = 0

    async def insert(self, action: str, record_id: uuid.UUID) -> uuid.UUID:
        self.calls += 1
        await self.gate.wait()
        return record_id


class _RecordingFrameProcessor:
    def __init__(self) -> None:
        self.published: list[tuple[list[dict], float]] = []

    async def publish_classification(self, detections, time_ms) -> bool:
        self.published.append(([d.to_payload() for d in detections], time_ms))
        return True


def _pipeline(sink, frame_processor=None, timeout_seconds: float = 1.0) -> FramePipeline:
    return FramePipeline(
        EpisodeTracker([LABEL], threshold_ms=3000),
        EventRecorder(sink, timeout_seconds=timeout_seconds),
        frame_processor=frame_processor,
        confidence_threshold=0.75,
    )


async def _feed(pipeline: FramePipeline, start: int, end: int, result: ClassificationResult) -> int:
    dispatched = 0
    for t in range(start, end + 1, 100):
        dispatched += len(await pipeline.process(result, float(t)))
        await pipeline.flush()
    return dispatched


def test_sustained_presence_records_once() -> None:
    async def scenario():
        sink = _ScriptedSink()
        pipeline = _pipeline(sink)
        dispatched = await _feed(pipeline, 0, 8000, _result((LABEL, 0.9)))
        return sink, pipeline, dispatched

    sink, pipeline, dispatched = asyncio.run(scenario())

    assert dispatched == 1
    assert sink.actions == ["coffee-cup detected"]
    assert pipeline.commits_recorded == 1
    assert pipeline.tracker.state(LABEL).is_committed


def test_low_confidence_detections_do_not_count_as_present() -> None:
    async def scenario():
        sink = _ScriptedSink()
        pipeline = _pipeline(sink)
        await _feed(pipeline, 0, 8000, _result((LABEL, 0.6)))
        return sink

    sink = asyncio.run(scenario())

    assert sink.calls == 0


def test_failed_write_is_retried_while_presence_continues() -> None:
    async def scenario():
        sink = _ScriptedSink(failures=1)
        pipeline = _pipeline(sink)
        dispatched = await _feed(pipeline, 0, 8000, _result((LABEL, 0.9)))
        return sink, pipeline, dispatched

    sink, pipeline, dispatched = asyncio.run(scenario())

    assert dispatched == 2
    assert sink.calls == 2
    assert len(sink.actions) == 1
    assert pipeline.commit_failures == 1
    assert pipeline.commits_recorded == 1


def test_episode_missed_when_presence_ends_before_retry() -> None:
    async def scenario():
        sink = _ScriptedSink(failures=1)
        pipeline = _pipeline(sink)
        await _feed(pipeline, 0, 3100, _result((LABEL, 0.9)))
        await _feed(pipeline, 3200, 3200, _result())
        return sink, pipeline

    sink, pipeline = asyncio.run(scenario())

    assert sink.calls == 1
    assert sink.actions == []
    assert pipeline.tracker.state(LABEL).phase is EpisodePhase.IDLE


def test_slow_write_does_not_block_frames_or_duplicate() -> None:
    async def scenario():
        sink = _GatedSink()
        pipeline = _pipeline(sink)
        present = _result((LABEL, 0.9))

        for t in range(0, 3600, 100):
            await pipeline.process(present, float(t))
            await asyncio.sleep(0)

        in_flight_phase = pipeline.tracker.state(LABEL).phase
        pending = pipeline.pending_commits

        sink.gate.set()
        while pipeline.pending_commits:
            await asyncio.sleep(0)

        # outcome is queued but only applied on the next frame
        before_next_frame = pipeline.tracker.state(LABEL).phase
        await pipeline.process(present, 3600.0)
        after_next_frame = pipeline.tracker.state(LABEL).phase

        return sink, pending, in_flight_phase, before_next_frame, after_next_frame

    sink, pending, in_flight_phase, before, after = asyncio.run(scenario())

    assert sink.calls == 1
    assert pending == 1
    assert in_flight_phase is EpisodePhase.COMMITTING
    assert before is EpisodePhase.COMMITTING
    assert after is EpisodePhase.COMMITTED


def test_classification_published_every_frame_regardless_of_recording() -> None:
    async def scenario():
        processor = _RecordingFrameProcessor()
        pipeline = _pipeline(_ScriptedSink(failures=100), processor)
        result = _result((LABEL, 0.6), (LABEL, 0.8), ("mug", 0.95))
        await _feed(pipeline, 0, 4000, result)
        return processor, pipeline

    processor, pipeline = asyncio.run(scenario())

    assert len(processor.published) == pipeline.frames_processed == 41
    boxes, time_ms = processor.published[-1]
    assert [b["label"] for b in boxes] == [LABEL, "mug"]
    assert boxes[0]["value"] == 0.8
    assert time_ms == 12.5
    assert pipeline.commits_recorded == 0
    assert pipeline.commit_failures > 0


def test_close_drains_pending_writes() -> None:
    async def scenario():
        sink = _ScriptedSink()
        pipeline = _pipeline(sink)
        for t in range(0, 3200, 100):
            await pipeline.process(_result((LABEL, 0.9)), float(t))
        await pipeline.close()
        return sink, pipeline

    sink, pipeline = asyncio.run(scenario())

    assert sink.calls == 1
    assert pipeline.pending_commits == 0
    assert pipeline.tracker.state(LABEL).is_committed


def test_write_that_lands_after_timeout_is_not_duplicated() -> None:
    async def scenario():
        sink = _LateSink(stall_seconds=0.2)
        pipeline = _pipeline(sink, timeout_seconds=0.05)
        dispatched = await _feed(pipeline, 0, 8000, _result((LABEL, 0.9)))
        return sink, pipeline, dispatched

    sink, pipeline, dispatched = asyncio.run(scenario())

    # the timed-out write is retried under the same id
    assert dispatched == 2
    assert sink.calls == 2
    assert sink.actions == ["coffee-cup detected"]
    assert pipeline.commit_failures == 1
    assert pipeline.commits_recorded == 1
    assert pipeline.tracker.state(LABEL).is_committed


def test_every_kind_of_write_failure_is_retried() -> None:
    async def scenario():
        sink = _FlakySink([
            RecordWriteError("sink unavailable"),
            OperationalError("INSERT", {}, Exception("db restarting")),
            ConnectionResetError("reset by peer"),
        ])
        pipeline = _pipeline(sink)
        dispatched = await _feed(pipeline, 0, 8000, _result((LABEL, 0.9)))
        return sink, pipeline, dispatched

    sink, pipeline, dispatched = asyncio.run(scenario())

    assert dispatched == 4
    assert len(sink.rows) == 1
    assert pipeline.commit_failures == 3
    assert pipeline.commits_recorded == 1
