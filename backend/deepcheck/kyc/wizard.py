"""
Three-step KYC verification wizard.

Step 0  Personal Details     first name, last name, email
Step 1  Video Verification   5-second camera recording
Step 2  Confirmation         review + submit to the deepfake classifier
"""
from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from typing import Optional

from deepcheck.capture.camera import RECORDED_FILENAME
from deepcheck.core.errors import AnalysisError, InvalidTransition
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import AnalysisResult, KycDetails
from deepcheck.media.blob import MediaBlob
from deepcheck.media.previews import PreviewHandle, PreviewRegistry, previews
from deepcheck.services.analysis_client import AnalysisClient

logger = get_logger(__name__)

STEPS = (
    ("Personal Details", "Please provide your personal information."),
    ("Video Verification", "Please record a 5-second video for verification."),
    ("Confirmation", "Please review your information and submit."),
)

SUBMIT_FAILED_MESSAGE = "Error submitting KYC information. Please try again."


@dataclass(frozen=True)
class KycOutcome:
    result: AnalysisResult

    @property
    def passed(self) -> bool:
        return not self.result.is_likely_deepfake

    @property
    def title(self) -> str:
        return "Video Analysis Result" if self.passed else "Deepfake Detected"

    @property
    def message(self) -> str:
        if self.passed:
            return "KYC information submitted successfully!"
        return "KYC failed: Deepfake detected"

    @property
    def verification_text(self) -> str:
        return "KYC verification passed." if self.passed else "KYC verification failed."


class KycWizard:
    def __init__(self, wizard_id: str, registry: PreviewRegistry = previews) -> None:
        self.id = wizard_id
        self._registry = registry
        self.step = 0
        self.details = KycDetails()
        self.video: Optional[MediaBlob] = None
        self.preview: Optional[PreviewHandle] = None
        self.submitting = False
        self.outcome: Optional[KycOutcome] = None

    # ------------------------------------------------------------------
    # Completeness gates
    # ------------------------------------------------------------------
    @property
    def personal_details_complete(self) -> bool:
        d = self.details
        return bool(d.first_name.strip() and d.last_name.strip() and d.email.strip())

    @property
    def video_complete(self) -> bool:
        return self.video is not None

    def step_complete(self, step: int) -> bool:
        if step == 0:
            return self.personal_details_complete
        if step == 1:
            return self.video_complete
        return self.personal_details_complete and self.video_complete

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def set_details(self, details: KycDetails) -> None:
        self.details = details

    def set_video(self, blob: MediaBlob) -> None:
        self.clear_video()
        self.video = blob
        self.preview = self._registry.create(blob)
        self.outcome = None

    def clear_video(self) -> None:
        if self.preview is not None:
            self.preview.revoke()
            self.preview = None
        self.video = None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def next(self) -> int:
        if self.submitting or self.step >= len(STEPS) - 1:
            raise InvalidTransition("Already on the last step")
        if not self.step_complete(self.step):
            raise InvalidTransition(f"Step '{STEPS[self.step][0]}' is incomplete")
        self.step += 1
        return self.step

    def previous(self) -> int:
        if self.submitting or self.step == 0:
            raise InvalidTransition("Already on the first step")
        self.step -= 1
        return self.step

    async def submit(self, client: AnalysisClient) -> KycOutcome:
        """Send the recording for analysis. Raises AnalysisError on failure."""
        if self.step != len(STEPS) - 1 or not self.step_complete(self.step):
            raise InvalidTransition("KYC information is incomplete")
        if self.submitting:
            raise InvalidTransition("Submission already in progress")

        self.submitting = True
        try:
            result = await client.analyze(dataclasses.replace(self.video, filename=RECORDED_FILENAME))
        except AnalysisError as exc:
            logger.error("Error submitting KYC information wizard=%s: %s", self.id, exc)
            raise
        finally:
            self.submitting = False

        self.outcome = KycOutcome(result)
        logger.info("kyc wizard=%s passed=%s", self.id, self.outcome.passed)
        return self.outcome

    def close(self) -> None:
        self.clear_video()

    def view(self) -> dict:
        title, description = STEPS[self.step]
        outcome = self.outcome
        return {
            "wizard_id": self.id,
            "step": self.step,
            "step_count": len(STEPS),
            "title": f"KYC Verification - Step {self.step + 1} of {len(STEPS)}",
            "step_title": title,
            "description": description,
            "details": self.details.model_dump(),
            "recording_complete": self.video_complete,
            "preview_url": self.preview.url if self.preview else None,
            "can_previous": self.step > 0 and not self.submitting,
            "can_next": self.step < len(STEPS) - 1 and self.step_complete(self.step) and not self.submitting,
            "can_submit": self.step == len(STEPS) - 1 and self.step_complete(self.step) and not self.submitting,
            "submitting": self.submitting,
            "result": None if outcome is None else {
                "title": outcome.title,
                "message": outcome.message,
                "fake_percentage": outcome.result.fake_percentage,
                "fake_percentage_text": outcome.result.percentage_text,
                "is_likely_deepfake": outcome.result.is_likely_deepfake,
                "verification": outcome.verification_text,
            },
        }
