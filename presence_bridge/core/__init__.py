"""Detection filtering, episode tracking and event recording."""

from .detection import (
    BoundingBox,
    ClassificationResult,
    Detection,
    filter_detections,
    DEFAULT_CONFIDENCE_THRESHOLD,
)
from .tracker import (
    EpisodePhase,
    EpisodeState,
    EpisodeTracker,
    CommitRequest,
    DEFAULT_PRESENCE_THRESHOLD_MS,
)
from .recorder import (
    Ack,
    RecordError,
    EventRecorder,
    DetectionSink,
)

__all__ = [
    # Filter
    "BoundingBox",
    "ClassificationResult",
    "Detection",
    "filter_detections",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    # Tracker
    "EpisodePhase",
    "EpisodeState",
    "EpisodeTracker",
    "CommitRequest",
    "DEFAULT_PRESENCE_THRESHOLD_MS",
    # Recorder
    "Ack",
    "RecordError",
    "EventRecorder",
    "DetectionSink",
]
