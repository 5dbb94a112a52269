"""
Fixed-window camera recording with OpenCV.

The recorder owns the capture stream from `start()` until the recording ends
(timer expiry, manual `stop()`, read failure or `close()`), and releases it
exactly once on whichever of those happens first.
"""
from __future__ import annotations
import math
import os
import tempfile
import threading
import time
from typing import Callable, Optional

import cv2

from deepcheck.core.config import get_settings
from deepcheck.core.errors import CameraUnavailableError, InvalidTransition
from deepcheck.core.logging import get_logger
from deepcheck.media.blob import MediaBlob

logger = get_logger(__name__)
settings = get_settings()

RECORDED_FILENAME = "recorded_video.webm"
RECORDED_CONTENT_TYPE = "video/webm"


class CameraRecorder:
    def __init__(
        self,
        device_index: int | None = None,
        duration: float | None = None,
        fps: float | None = None,
        capture_factory: Callable = cv2.VideoCapture,
        writer_factory: Callable = cv2.VideoWriter,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.device_index = settings.CAMERA_INDEX if device_index is None else device_index
        self.duration = float(settings.RECORDING_SECONDS if duration is None else duration)
        self.fps = settings.RECORDING_FPS if fps is None else fps
        self._capture_factory = capture_factory
        self._writer_factory = writer_factory
        self._clock = clock
        self._stream = None
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._started_at: Optional[float] = None
        self.state = "ready"          # ready | recording | complete
        self.blob: Optional[MediaBlob] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.state != "ready":
            raise InvalidTransition(f"Cannot start recording while {self.state}")
        stream = self._capture_factory(self.device_index)
        if not stream.isOpened():
            stream.release()
            logger.warning("Error accessing camera index=%s", self.device_index)
            raise CameraUnavailableError("Camera unavailable or permission denied")
        self._stream = stream
        self._stop.clear()
        self._started_at = self._clock()
        self.state = "recording"
        logger.info("recording started camera=%s duration=%.1fs", self.device_index, self.duration)

    def record(self) -> MediaBlob:
        """Blocking read/write loop. Returns the recorded clip."""
        if self.state != "recording":
            raise InvalidTransition("Recording has not started")

        with tempfile.NamedTemporaryFile(delete=False, suffix=".webm") as tmp_file:
            tmp_path = tmp_file.name

        try:
            frames = self._write_frames(tmp_path)
            with open(tmp_path, "rb") as fh:
                data = fh.read()
        except BaseException:
            self.state = "ready"
            raise
        finally:
            os.unlink(tmp_path)

        if frames == 0 or not data:
            self.state = "ready"
            raise CameraUnavailableError("Camera produced no frames")

        self.blob = MediaBlob(filename=RECORDED_FILENAME, content_type=RECORDED_CONTENT_TYPE, data=data)
        self.state = "complete"
        logger.info("recording complete frames=%d bytes=%d", frames, len(data))
        return self.blob

    def _write_frames(self, path: str) -> int:
        writer = None
        frames = 0
        try:
            # at least one frame is kept even if stop() lands before the first read
            while True:
                with self._lock:
                    if self._stream is None:
                        break
                    ok, frame = self._stream.read()
                if not ok:
                    logger.warning("camera read failed after %d frames", frames)
                    break
                if writer is None:
                    height, width = frame.shape[:2]
                    fourcc = cv2.VideoWriter_fourcc(*"VP80")
                    writer = self._writer_factory(path, fourcc, self.fps, (width, height))
                writer.write(frame)
                frames += 1
                if self._stop.is_set() or self._elapsed() >= self.duration:
                    break
        finally:
            self._release_stream()
            if writer is not None:
                writer.release()
        return frames

    def stop(self) -> None:
        """Manual stop; the loop returns after the frame it is reading."""
        self._stop.set()

    def reset(self) -> None:
        """Record again: discard the clip and go back to ready."""
        if self.state == "recording":
            raise InvalidTransition("Stop the recording before recording again")
        self.blob = None
        self._started_at = None
        self.state = "ready"

    def close(self) -> None:
        self._stop.set()
        self._release_stream()

    def __enter__(self) -> "CameraRecorder":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------
    @property
    def remaining(self) -> int:
        """Whole seconds left on the countdown."""
        if self.state == "ready":
            return int(math.ceil(self.duration))
        if self.state == "complete":
            return 0
        return max(0, int(math.ceil(self.duration - self._elapsed())))

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return self._clock() - self._started_at

    def _release_stream(self) -> None:
        with self._lock:
            if self._stream is None:
                return
            stream, self._stream = self._stream, None
            stream.release()
        logger.debug("camera stream released")
