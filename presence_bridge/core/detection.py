"""Per-frame detection types and the confidence/label filter."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

# Minimum confidence for a detection to count as present
DEFAULT_CONFIDENCE_THRESHOLD = 0.75


@dataclass(frozen=True)
class BoundingBox:
    """Bounding box in frame-relative units (top-left origin)."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Detection:
    """One observed object instance in one frame."""
    label: str
    confidence: float
    bbox: BoundingBox

    def to_payload(self) -> Dict[str, Any]:
        """Render as the bounding box dict sent to viewers."""
        return {
            "label": self.label,
            "value": round(self.confidence, 4),
            "x": self.bbox.x,
            "y": self.bbox.y,
            "width": self.bbox.width,
            "height": self.bbox.height,
        }


@dataclass(frozen=True)
class ClassificationResult:
    """Raw detections for one frame and how long inference took."""
    detections: List[Detection]
    timing_ms: float


def filter_detections(
    detections: Iterable[Detection],
    threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> List[Detection]:
    """
    Reduce a raw detection list to at most one confident detection per label.

    Detections below ``threshold`` are dropped. Of the rest, the first one
    seen for each label wins, in arrival order. Confidence is not used to
    break ties.

    Args:
        detections: Raw detections in inference output order
        threshold: Minimum confidence (inclusive)

    Returns:
        Filtered detections, first-seen order preserved
    """
    seen = set()
    filtered = []

    for detection in detections:
        if detection.confidence < threshold:
            continue
        if detection.label in seen:
            continue
        seen.add(detection.label)
        filtered.append(detection)

    return filtered


def present_labels(detections: Iterable[Detection]) -> frozenset:
    """Labels present in a filtered detection set."""
    return frozenset(d.label for d in detections)
