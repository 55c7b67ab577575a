"""Per-frame detection pipeline: filter, track, record."""

import asyncio
from typing import Any, Dict, List, Optional, Set

from ..core.detection import (
    ClassificationResult,
    DEFAULT_CONFIDENCE_THRESHOLD,
    filter_detections,
)
from ..core.recorder import Ack, EventRecorder, RecordError, RecordOutcome
from ..core.tracker import CommitRequest, EpisodeTracker
from .frame_publisher import FrameProcessor


class FramePipeline:
    """
    Runs one classification result at a time through filter, tracker and
    recorder.

    Record writes run as background tasks so a slow sink never holds up the
    next frame. Their outcomes are queued and applied to the tracker at the
    start of the next frame, before that frame's transition. The tracker is
    only ever touched from ``process``.
    """

    def __init__(
        self,
        tracker: EpisodeTracker,
        recorder: EventRecorder,
        frame_processor: Optional[FrameProcessor] = None,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
    ):
        self.tracker = tracker
        self.recorder = recorder
        self.frame_processor = frame_processor
        self.confidence_threshold = confidence_threshold

        self._outcomes: asyncio.Queue = asyncio.Queue()
        self._in_flight: Set[asyncio.Task] = set()

        # Stats counters
        self.frames_processed = 0
        self.commits_recorded = 0
        self.commit_failures = 0
        self.stale_outcomes = 0

    async def process(
        self,
        result: ClassificationResult,
        now_ms: float,
    ) -> List[CommitRequest]:
        """
        Process one frame's classification result.

        Args:
            result: Raw detections from inference
            now_ms: Wall-clock time for this frame, read once by the caller

        Returns:
            Commit requests dispatched on this frame
        """
        filtered = filter_detections(result.detections, self.confidence_threshold)

        self._apply_outcomes()
        requests = self.tracker.observe(filtered, now_ms)

        for request in requests:
            print(
                f"[PIPELINE] {request.label} present for more than "
                f"{self.tracker.threshold_ms:.0f}ms, recording episode {request.episode}"
            )
            self._dispatch(request)

        if self.frame_processor is not None:
            await self.frame_processor.publish_classification(filtered, result.timing_ms)

        self.frames_processed += 1
        return requests

    def _dispatch(self, request: CommitRequest) -> None:
        task = asyncio.create_task(self._commit(request))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _commit(self, request: CommitRequest) -> None:
        try:
            outcome = await self.recorder.commit(request)
        except Exception as e:
            # The tracker must always hear back or the label stays pending
            print(f"[PIPELINE] Unexpected recorder error: {e}")
            outcome = RecordError(request=request, reason=str(e))
        self._outcomes.put_nowait(outcome)

    def _apply_outcomes(self) -> None:
        """Apply every finished write to the tracker, in completion order."""
        while not self._outcomes.empty():
            outcome: RecordOutcome = self._outcomes.get_nowait()
            self._apply(outcome)

    def _apply(self, outcome: RecordOutcome) -> None:
        if isinstance(outcome, Ack):
            if self.tracker.acknowledge(outcome.request):
                self.commits_recorded += 1
            else:
                self.stale_outcomes += 1
        else:
            self.commit_failures += 1
            if not self.tracker.reject(outcome.request):
                self.stale_outcomes += 1

    @property
    def pending_commits(self) -> int:
        return len(self._in_flight)

    async def flush(self) -> None:
        """Wait for in-flight writes and apply their outcomes."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight))
        self._apply_outcomes()

    async def close(self) -> None:
        """Best-effort drain of pending writes at shutdown."""
        if self._in_flight:
            print(f"[PIPELINE] Waiting for {len(self._in_flight)} pending write(s)...")
        await self.flush()

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline counters."""
        return {
            "frames": self.frames_processed,
            "recorded": self.commits_recorded,
            "failures": self.commit_failures,
            "stale": self.stale_outcomes,
            "pending": self.pending_commits,
        }
