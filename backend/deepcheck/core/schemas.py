"""Wire schemas shared by the analysis client, report service and routers."""
from __future__ import annotations
import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TopFrame(BaseModel):
    model_config = ConfigDict(frozen=True)

    frame_number: int
    prediction: str = ""
    confidence: float = 0.0          # 0.0 to 1.0
    visualization: Optional[str] = None   # base64 PNG


class AnalysisResult(BaseModel):
    """
    Verdict returned by the remote classifier.

    Values are kept exactly as received; older revisions of the service only
    send the boolean verdict, so both headline fields are optional.
    """
    model_config = ConfigDict(frozen=True)

    fake_percentage: Optional[float] = None
    is_likely_deepfake: Optional[bool] = None
    top_frames: tuple[TopFrame, ...] = ()

    @classmethod
    def from_response(cls, data: Any) -> "AnalysisResult":
        if not isinstance(data, dict):
            raise ValueError("response body is not a JSON object")
        if data.get("fake_percentage") is None and data.get("is_likely_deepfake") is None:
            raise ValueError("response carries neither fake_percentage nor is_likely_deepfake")
        top_frames = data.get("top_frames")
        return cls.model_validate({
            "fake_percentage": data.get("fake_percentage"),
            "is_likely_deepfake": data.get("is_likely_deepfake"),
            "top_frames": () if top_frames is None else top_frames,
        })

    @property
    def verdict_text(self) -> str:
        if self.is_likely_deepfake is None:
            return "Verdict unavailable."
        if self.is_likely_deepfake:
            return "This video is likely a deepfake."
        return "This video is likely genuine."

    @property
    def percentage_text(self) -> str:
        return format_percentage(self.fake_percentage)


class ReportRequest(BaseModel):
    fakePercentage: Optional[float] = None
    isLikelyDeepfake: Optional[bool] = None
    topFrames: list[TopFrame] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "ReportRequest":
        return cls(
            fakePercentage=result.fake_percentage,
            isLikelyDeepfake=result.is_likely_deepfake,
            topFrames=list(result.top_frames),
        )


class ReportResponse(BaseModel):
    report: str


class KycDetails(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------
def format_percentage(value: Optional[float]) -> str:
    """87.5 -> '87.50%'. Missing or non-finite values render as N/A."""
    if value is None or not math.isfinite(value):
        return "N/A"
    return f"{value:.2f}%"


def clamp_progress(value: Optional[float]) -> float:
    """Progress-bar value in [0, 100]; the service does not validate ranges."""
    if value is None or not math.isfinite(value):
        return 0.0
    return max(0.0, min(100.0, float(value)))
