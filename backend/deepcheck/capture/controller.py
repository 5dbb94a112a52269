"""Runs a CameraRecorder off the event loop and hands the clip to its owner."""
from __future__ import annotations
import asyncio
from typing import Callable, Optional

from deepcheck.capture.camera import CameraRecorder
from deepcheck.core.errors import CameraUnavailableError, InvalidTransition
from deepcheck.core.logging import get_logger
from deepcheck.media.blob import MediaBlob

logger = get_logger(__name__)


class CaptureController:
    def __init__(
        self,
        recorder_factory: Callable[[], CameraRecorder],
        on_recorded: Callable[[MediaBlob], None],
        on_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        self._recorder_factory = recorder_factory
        self._on_recorded = on_recorded
        self._on_reset = on_reset
        self.recorder: Optional[CameraRecorder] = None
        self._task: Optional[asyncio.Task] = None
        self.error: Optional[str] = None
        self._abandoned = False

    @property
    def recording(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.recording:
            raise InvalidTransition("Recording already in progress")
        if self.recorder is not None and self.recorder.state == "complete":
            raise InvalidTransition("Recording complete; record again to restart")
        self.error = None
        recorder = self._recorder_factory()
        await asyncio.to_thread(recorder.start)
        self.recorder = recorder
        self._task = asyncio.create_task(self._run(recorder))

    async def _run(self, recorder: CameraRecorder) -> None:
        try:
            blob = await asyncio.to_thread(recorder.record)
        except CameraUnavailableError as exc:
            logger.warning("recording failed: %s", exc)
            self.error = str(exc)
            return
        except Exception:
            logger.exception("recording crashed")
            self.error = "Recording failed"
            return
        if not self._abandoned:
            self._on_recorded(blob)

    async def stop(self) -> None:
        if self.recorder is None or self._task is None:
            raise InvalidTransition("No recording in progress")
        self.recorder.stop()
        await self._task

    def reset(self) -> None:
        if self.recording:
            raise InvalidTransition("Stop the recording before recording again")
        if self.recorder is not None:
            self.recorder.reset()
        self.error = None
        if self._on_reset is not None:
            self._on_reset()

    def abandon(self) -> None:
        """Release the camera without waiting; a clip still in flight is dropped."""
        self._abandoned = True
        if self.recorder is not None:
            self.recorder.close()

    async def close(self) -> None:
        self.abandon()
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def view(self) -> dict:
        rec = self.recorder
        return {
            "state": rec.state if rec else "ready",
            "remaining": rec.remaining if rec else None,
            "recording_complete": bool(rec and rec.state == "complete"),
            "error": self.error,
        }
