"""Frame encoding and Redis publishing for live viewers."""

from typing import List, Optional

import cv2
import numpy as np
from redis.exceptions import RedisError

from ..core.detection import Detection
from ..shared.redis.pubsub import ViewerPublisher
from .config import config


class FrameProcessor:
    """
    Encodes frames and classification results for the viewer stream.

    Features:
    - Resize to the model input size
    - JPEG encoding with configurable quality
    - Publishing failures never reach the detection pipeline
    """

    def __init__(
        self,
        publisher: ViewerPublisher,
        width: Optional[int] = None,
        height: Optional[int] = None,
        jpeg_quality: int = config.STREAM_JPEG_QUALITY,
    ):
        self.publisher = publisher
        self.width = width
        self.height = height
        self._encode_params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]

    def encode(self, frame: np.ndarray) -> Optional[bytes]:
        """Resize and JPEG-encode a frame."""
        if self.width and self.height:
            if frame.shape[1] != self.width or frame.shape[0] != self.height:
                frame = cv2.resize(frame, (self.width, self.height))

        success, encoded = cv2.imencode(".jpg", frame, self._encode_params)
        if not success:
            return None
        return encoded.tobytes()

    async def publish_frame(self, frame: np.ndarray) -> bool:
        """
        Encode and publish a frame.

        Returns:
            True if published successfully
        """
        jpeg = self.encode(frame)
        if jpeg is None:
            return False

        try:
            await self.publisher.publish_image(jpeg)
            return True
        except (RedisError, OSError) as e:
            print(f"[FRAME_PROCESSOR] Error publishing frame: {e}")
            return False

    async def publish_classification(
        self,
        detections: List[Detection],
        time_ms: float,
    ) -> bool:
        """Publish filtered detections for the overlay."""
        try:
            await self.publisher.publish_classification(
                [d.to_payload() for d in detections],
                time_ms,
            )
            return True
        except (RedisError, OSError) as e:
            print(f"[FRAME_PROCESSOR] Error publishing classification: {e}")
            return False
