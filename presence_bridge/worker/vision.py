"""Vision module for YOLO inference (worker version)."""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
from ultralytics import YOLO

from ..core.detection import BoundingBox, ClassificationResult, Detection
from ..errors import ConfigurationError
from .config import config


@dataclass(frozen=True)
class ModelInfo:
    """Static model metadata."""
    project_name: str
    labels: List[str]
    input_width: int
    input_height: int
    channels: int = 3


class InferenceProvider:
    """
    Wraps a YOLO model as a per-frame detection producer.

    Boxes are reported as frame-relative (x, y, width, height) with the
    origin at the top-left corner.
    """

    def __init__(
        self,
        weights_path: str,
        conf: float = config.INFER_CONF,
        imgsz: int = config.INFER_IMGSZ,
        project_name: str = config.PROJECT_NAME,
    ):
        if not Path(weights_path).exists():
            raise ConfigurationError(f"Model file not found: {weights_path}")

        self.weights_path = weights_path
        self.conf = conf
        self.imgsz = imgsz

        print(f"[VISION] Loading YOLO model from: {weights_path}")
        self.model = YOLO(weights_path)

        names = self.model.names
        labels = [names[i] for i in sorted(names)] if isinstance(names, dict) else list(names)

        self.model_info = ModelInfo(
            project_name=project_name or Path(weights_path).stem,
            labels=labels,
            input_width=imgsz,
            input_height=imgsz,
        )

    def classify(self, frame: np.ndarray) -> ClassificationResult:
        """Run inference on a frame and return raw detections."""
        started = time.perf_counter()
        results = self.model.predict(
            frame, conf=self.conf, imgsz=self.imgsz, verbose=False
        )

        detections = []
        timing_ms: Optional[float] = None

        if results and len(results) > 0:
            result = results[0]
            boxes = result.boxes
            names = result.names

            for i in range(len(boxes)):
                x1, y1, x2, y2 = (float(v) for v in boxes.xyxyn[i].cpu().numpy())
                class_id = int(boxes.cls[i].cpu().numpy())
                confidence = float(boxes.conf[i].cpu().numpy())

                detections.append(Detection(
                    label=names.get(class_id, f"class_{class_id}"),
                    confidence=confidence,
                    bbox=BoundingBox(x=x1, y=y1, width=x2 - x1, height=y2 - y1),
                ))

            if result.speed:
                timing_ms = sum(v for v in result.speed.values() if v is not None)

        if timing_ms is None:
            timing_ms = (time.perf_counter() - started) * 1000.0

        return ClassificationResult(detections=detections, timing_ms=round(timing_ms, 1))

    def describe(self) -> None:
        """Print model identity and parameters."""
        info = self.model_info
        print(f"[VISION] Starting the image classifier for {info.project_name}")
        print(
            f"[VISION] Parameters - image size {info.input_width}x{info.input_height} px "
            f"({info.channels} channels), classes {info.labels}"
        )
