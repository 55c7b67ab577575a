"""Worker service entry point for capture, inference and episode recording."""

import asyncio
import signal
import sys
import time
from typing import List, Optional

from ..core.recorder import EventRecorder
from ..core.tracker import EpisodeTracker
from ..errors import CaptureDeviceError, ConfigurationError
from ..shared.db.database import init_db, close_db
from ..shared.redis.client import close_redis
from ..shared.redis.pubsub import get_viewer_publisher
from .capture import CaptureHandler
from .config import config, parse_args
from .frame_publisher import FrameProcessor
from .pipeline import FramePipeline
from .sink import DatabaseSink
from .vision import InferenceProvider


class WorkerService:
    """
    Main worker service that runs the frame pipeline.

    Features:
    - Graceful startup and shutdown
    - Signal handling (SIGTERM, SIGINT)
    - Stats reporting
    """

    def __init__(self, model_path: str, device: Optional[int] = None):
        self.model_path = model_path
        self.device = device if device is not None else config.CAMERA_DEVICE
        self.provider: Optional[InferenceProvider] = None
        self.capture: Optional[CaptureHandler] = None
        self.frame_processor: Optional[FrameProcessor] = None
        self.pipeline: Optional[FramePipeline] = None
        self._running = False
        self._shutdown_event = asyncio.Event()

    async def initialize(self) -> None:
        """Load the model, open the camera and wire the pipeline."""
        print("[WORKER] Init runner...")
        self.provider = await asyncio.to_thread(InferenceProvider, self.model_path)
        self.provider.describe()

        print("[WORKER] Init camera...")
        self.capture = CaptureHandler()
        device = self.capture.select_device(self.device)
        print(f"[WORKER] Found device {device}, starting camera...")

        _, error = await self.capture.open(device)
        if error:
            raise CaptureDeviceError(error)
        print(f"[WORKER] Connected to camera (every {config.CAPTURE_INTERVAL_MS}ms)")

        await init_db()

        info = self.provider.model_info
        publisher = await get_viewer_publisher(config.STREAM_ID)
        await publisher.set_hello(info.project_name)
        self.frame_processor = FrameProcessor(
            publisher,
            width=info.input_width,
            height=info.input_height,
        )

        tracker = EpisodeTracker(
            labels=config.TRACKED_LABELS,
            threshold_ms=config.PRESENCE_THRESHOLD_MS,
        )
        recorder = EventRecorder(
            DatabaseSink(),
            timeout_seconds=config.RECORD_TIMEOUT_SECONDS,
            action_template=config.ACTION_TEMPLATE,
        )
        self.pipeline = FramePipeline(
            tracker,
            recorder,
            frame_processor=self.frame_processor,
            confidence_threshold=config.CONFIDENCE_THRESHOLD,
        )

        print(
            f"[WORKER] Tracking {config.TRACKED_LABELS} "
            f"(confidence >= {config.CONFIDENCE_THRESHOLD}, "
            f"present > {config.PRESENCE_THRESHOLD_MS:.0f}ms)"
        )

    async def start(self) -> None:
        """Start the worker service."""
        print("[WORKER] Starting worker service...")
        print(f"[WORKER] Log level: {config.LOG_LEVEL}")

        self._running = True
        await self.initialize()

        frame_task = asyncio.create_task(self._frame_loop())
        stats_task = asyncio.create_task(self._stats_loop())
        print("[WORKER] Started classifier")

        # Wait for shutdown signal or the frame loop ending
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())
        done, _ = await asyncio.wait(
            {frame_task, shutdown_task},
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in (frame_task, stats_task, shutdown_task):
            if task not in done:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        # Surface capture failures from the frame loop
        if frame_task in done:
            frame_task.result()

    async def _frame_loop(self) -> None:
        """Capture, classify and process frames strictly in order."""
        async for frame in self.capture.frames():
            await self.frame_processor.publish_frame(frame)

            result = await asyncio.to_thread(self.provider.classify, frame)
            now_ms = time.time() * 1000.0

            await self.pipeline.process(result, now_ms)

            if config.VERBOSE:
                labels = [d.label for d in result.detections]
                print(f"[WORKER] Classified in {result.timing_ms}ms: {labels}")

    async def stop(self) -> None:
        """Stop the worker service."""
        if not self._running:
            return

        print("[WORKER] Stopping worker service...")
        self._running = False

        if self.pipeline:
            await self.pipeline.close()
        if self.capture:
            self.capture.release()

        await close_db()
        await close_redis()

        self._shutdown_event.set()
        print("[WORKER] Worker service stopped")

    async def _stats_loop(self) -> None:
        """Periodically log stats."""
        while self._running:
            try:
                await asyncio.sleep(config.STATS_INTERVAL_SECONDS)

                if self.pipeline:
                    stats = self.pipeline.get_stats()
                    print(
                        f"[WORKER] Stats - "
                        f"frames={stats['frames']}, "
                        f"recorded={stats['recorded']}, "
                        f"failures={stats['failures']}, "
                        f"pending={stats['pending']}"
                    )

            except asyncio.CancelledError:
                break

    def handle_signal(self, signum: int) -> None:
        """Handle shutdown signals."""
        print(f"[WORKER] Received signal {signum}, initiating shutdown...")
        self._shutdown_event.set()


def check_startup(args) -> List[str]:
    """Collect configuration errors that must stop the process."""
    problems = []
    if not args.model:
        problems.append("Missing one argument (model file)")
    problems.extend(config.validate())
    return problems


async def main(model_path: str, device: Optional[int] = None) -> None:
    """Main entry point."""
    print("=" * 60)
    print("Presence Bridge - Worker Service")
    print("=" * 60)

    worker = WorkerService(model_path, device)

    # Set up signal handlers
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda s=sig: worker.handle_signal(s)
        )

    try:
        await worker.start()
    finally:
        await worker.stop()

    print("[WORKER] Shutdown complete")


def run(argv: Optional[List[str]] = None) -> None:
    """Run the worker service."""
    args = parse_args(argv)

    problems = check_startup(args)
    if problems:
        for problem in problems:
            print(f"[CONFIG] {problem}")
        sys.exit(1)

    try:
        asyncio.run(main(args.model, args.device))
    except KeyboardInterrupt:
        pass
    except (ConfigurationError, CaptureDeviceError) as e:
        print(f"[WORKER] Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
