"""Camera capture with device discovery and reconnect logic."""

import asyncio
from typing import AsyncGenerator, Callable, List, Optional, Tuple

import cv2
import numpy as np

from ..errors import CaptureDeviceError
from .config import config


class CaptureHandler:
    """
    Opens a local camera and pushes frames at a fixed interval.

    Features:
    - Device discovery by probing OpenCV indices
    - Exponential backoff on reconnect
    - Frame reads off the event loop
    """

    def __init__(
        self,
        interval_ms: int = config.CAPTURE_INTERVAL_MS,
        max_probe: int = config.MAX_CAMERA_PROBE,
        max_retries: int = 5,
        base_delay: float = 0.5,
        max_delay: float = 10.0,
        capture_factory: Callable[[int], "cv2.VideoCapture"] = cv2.VideoCapture,
    ):
        self.interval_ms = interval_ms
        self.max_probe = max_probe
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._capture_factory = capture_factory
        self.cap = None
        self.device: Optional[int] = None

    def list_devices(self) -> List[int]:
        """Return indices of camera devices that can be opened."""
        devices = []
        for index in range(self.max_probe):
            cap = self._capture_factory(index)
            try:
                if cap.isOpened():
                    devices.append(index)
            finally:
                cap.release()
        return devices

    def select_device(self, preferred: Optional[int] = None) -> int:
        """
        Pick the camera to use.

        Raises:
            CaptureDeviceError: if no camera can be found
        """
        if preferred is not None:
            return preferred

        devices = self.list_devices()
        if not devices:
            raise CaptureDeviceError("Cannot find any webcams!")
        return devices[0]

    async def open(self, device: int) -> Tuple[Optional["cv2.VideoCapture"], Optional[str]]:
        """
        Open a camera device with retry logic.

        Returns:
            Tuple of (VideoCapture or None, error message or None)
        """
        for attempt in range(self.max_retries):
            cap = self._capture_factory(device)

            if cap.isOpened():
                ret, frame = await asyncio.to_thread(cap.read)
                if ret and frame is not None:
                    self.cap = cap
                    self.device = device
                    return cap, None

            cap.release()

            delay = min(self.base_delay * (2 ** attempt), self.max_delay)
            if attempt < self.max_retries - 1:
                await asyncio.sleep(delay)

        return None, f"Failed to open camera {device} after {self.max_retries} attempts"

    async def frames(self) -> AsyncGenerator[np.ndarray, None]:
        """
        Yield frames from the open camera every ``interval_ms``.

        Reconnects when a read fails.

        Raises:
            CaptureDeviceError: if the camera cannot be reopened
        """
        if self.cap is None or self.device is None:
            raise CaptureDeviceError("Camera is not open")

        interval = self.interval_ms / 1000.0
        loop = asyncio.get_running_loop()

        while True:
            tick = loop.time()

            ret, frame = await asyncio.to_thread(self.cap.read)

            if not ret or frame is None:
                print(f"[CAPTURE] Frame read failed on device {self.device}, reconnecting...")
                self.cap.release()
                self.cap, error = await self.open(self.device)
                if error:
                    raise CaptureDeviceError(error)
                continue

            yield frame

            sleep_time = interval - (loop.time() - tick)
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)

    def release(self) -> None:
        """Release the camera."""
        if self.cap is not None:
            self.cap.release()
            self.cap = None
