"""
UploadSession: one user's select/upload/analyze/report interaction.

Every request that leaves the session is tagged with the generation that was
current when it started. Selecting a new file bumps the generation, so a
response that lands afterwards belongs to an abandoned request and is
dropped instead of overwriting the fresh selection.
"""
from __future__ import annotations
import dataclasses
from typing import Optional

from deepcheck.core.errors import InvalidTransition
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import AnalysisResult, clamp_progress
from deepcheck.media.blob import MediaBlob
from deepcheck.media.previews import PreviewHandle, PreviewRegistry, previews
from deepcheck.workflow.phases import Analyzing, Complete, Error, Idle, Phase, Uploading

logger = get_logger(__name__)


class UploadSession:
    def __init__(self, session_id: str, registry: PreviewRegistry = previews) -> None:
        self.id = session_id
        self._registry = registry
        self.media: Optional[MediaBlob] = None
        self.preview: Optional[PreviewHandle] = None
        self.phase: Phase = Idle()
        self.generation = 0
        self.report_pending = False
        self.report_error: Optional[str] = None

    @property
    def status(self) -> str:
        return self.phase.status

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self.phase.result if isinstance(self.phase, Complete) else None

    @property
    def report(self) -> Optional[str]:
        return self.phase.report if isinstance(self.phase, Complete) else None

    @property
    def in_flight(self) -> bool:
        return isinstance(self.phase, (Uploading, Analyzing))

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def select(self, blob: MediaBlob) -> None:
        """Replace the media and reset every result field back to idle."""
        if self.in_flight:
            logger.info("session=%s abandoning in-flight %s request", self.id, self.status)
        self.generation += 1
        self._release_preview()
        self.media = blob
        self.preview = self._registry.create(blob)
        self.phase = Idle()
        self.report_pending = False
        self.report_error = None

    # ------------------------------------------------------------------
    # Analysis transitions
    # ------------------------------------------------------------------
    def begin_upload(self) -> int:
        if not isinstance(self.phase, Idle):
            raise InvalidTransition(f"Cannot upload while {self.status}")
        if self.media is None:
            raise InvalidTransition("No video selected")
        self.phase = Uploading()
        return self.generation

    def acknowledge(self, generation: int) -> bool:
        """Remote endpoint accepted the upload: uploading -> analyzing."""
        if self._stale(generation):
            return False
        self._expect(Uploading)
        self.phase = Analyzing(upload_progress=100.0, analysis_progress=0.0)
        return True

    def complete(self, generation: int, result: AnalysisResult) -> bool:
        if self._stale(generation):
            return False
        self._expect(Analyzing)
        self.phase = Complete(result=result)
        return True

    def fail(self, generation: int, message: str) -> bool:
        if self._stale(generation):
            return False
        if not self.in_flight:
            raise InvalidTransition(f"Cannot fail while {self.status}")
        self.phase = Error(message=message or "An unknown error occurred")
        return True

    def update_progress(self, generation: int, *, upload: float | None = None,
                        analysis: float | None = None) -> bool:
        """Advisory progress update; ignored outside the matching phase."""
        if self._stale(generation):
            return False
        if upload is not None and isinstance(self.phase, Uploading):
            self.phase = dataclasses.replace(self.phase, upload_progress=clamp_progress(upload))
            return True
        if analysis is not None and isinstance(self.phase, Analyzing):
            self.phase = dataclasses.replace(self.phase, analysis_progress=clamp_progress(analysis))
            return True
        return False

    # ------------------------------------------------------------------
    # Report transitions
    # ------------------------------------------------------------------
    def begin_report(self) -> tuple[int, AnalysisResult]:
        if not isinstance(self.phase, Complete):
            raise InvalidTransition("Analysis not complete")
        if self.report_pending:
            raise InvalidTransition("Report already requested")
        self.report_pending = True
        self.report_error = None
        return self.generation, self.phase.result

    def attach_report(self, generation: int, text: str) -> bool:
        if self._stale(generation) or not isinstance(self.phase, Complete):
            return False
        self.phase = dataclasses.replace(self.phase, report=text)
        self.report_pending = False
        return True

    def report_failed(self, generation: int, message: str) -> bool:
        """Advisory only: the analysis result stays on screen."""
        if self._stale(generation):
            return False
        self.report_pending = False
        self.report_error = message
        return True

    # ------------------------------------------------------------------
    # Teardown / view
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.generation += 1
        self._release_preview()
        self.media = None

    def view(self) -> dict:
        phase = self.phase
        result = self.result
        return {
            "session_id": self.id,
            "status": self.status,
            "file": self.media.describe() if self.media else None,
            "preview_url": self.preview.url if self.preview else None,
            "upload_progress": _upload_progress(phase),
            "analysis_progress": _analysis_progress(phase),
            "fake_percentage": result.fake_percentage if result else None,
            "fake_percentage_text": result.percentage_text if result else None,
            "fake_percentage_bar": clamp_progress(result.fake_percentage) if result else None,
            "is_likely_deepfake": result.is_likely_deepfake if result else None,
            "verdict_text": result.verdict_text if result else None,
            "top_frames": [f.model_dump() for f in result.top_frames] if result else [],
            "error": phase.message if isinstance(phase, Error) else None,
            "report": self.report,
            "report_pending": self.report_pending,
            "report_error": self.report_error,
        }

    def _stale(self, generation: int) -> bool:
        if generation != self.generation:
            logger.info("session=%s dropping response for abandoned request gen=%d (now %d)",
                        self.id, generation, self.generation)
            return True
        return False

    def _expect(self, phase_type: type) -> None:
        if not isinstance(self.phase, phase_type):
            raise InvalidTransition(f"Unexpected transition from {self.status}")

    def _release_preview(self) -> None:
        if self.preview is not None:
            self.preview.revoke()
            self.preview = None


def _upload_progress(phase: Phase) -> float:
    if isinstance(phase, (Uploading, Analyzing)):
        return phase.upload_progress
    if isinstance(phase, Complete):
        return 100.0
    return 0.0


def _analysis_progress(phase: Phase) -> float:
    if isinstance(phase, Analyzing):
        return phase.analysis_progress
    if isinstance(phase, Complete):
        return 100.0
    return 0.0
