"""
Narrative report generation.
- OPENAI_API_KEY present → chat completion against OPENAI_BASE_URL.
- Missing → stub (deterministic templated narrative).
- REPORT_ENDPOINT_URL present → sessions ask a remote /api/generate-report instead.
"""
from __future__ import annotations

import httpx

from deepcheck.core.config import get_settings
from deepcheck.core.errors import ReportError
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import ReportRequest, format_percentage

logger = get_logger(__name__)
settings = get_settings()

SYSTEM_PROMPT = (
    "You are an AI expert specializing in deepfake detection. "
    "Provide a detailed analysis of the video based on the given data."
)


def build_user_prompt(req: ReportRequest) -> str:
    verdict = "unknown" if req.isLikelyDeepfake is None else str(req.isLikelyDeepfake).lower()
    percentage = "unknown" if req.fakePercentage is None else f"{req.fakePercentage:g}"
    frames = "\n".join(
        f"Frame {f.frame_number}: Prediction - {f.prediction}, Confidence - {f.confidence * 100:.2f}%"
        for f in req.topFrames
    )
    return (
        "Analyze this deepfake detection result:\n"
        f"Fake Percentage: {percentage}%\n"
        f"Is Likely Deepfake: {verdict}\n"
        "Top Frames:\n"
        f"{frames}\n"
        "Provide a detailed report on the likelihood of the video being a deepfake, "
        "potential implications, and any patterns or anomalies in the top frames."
    )


class ReportGenerator:
    """Produces the narrative text for one analysis result."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.transport = transport

    async def generate(self, req: ReportRequest) -> str:
        if not settings.report_configured:
            return _stub_report(req)
        return await self._call_model(req)

    async def _call_model(self, req: ReportRequest) -> str:
        url = f"{settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions"
        headers = {
            "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": settings.REPORT_MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(req)},
            ],
        }

        logger.info("Requesting narrative report from %s", settings.REPORT_MODEL)
        try:
            async with httpx.AsyncClient(timeout=settings.REPORT_TIMEOUT_SECONDS,
                                         transport=self.transport) as client:
                resp = await client.post(url, headers=headers, json=payload)
                resp.raise_for_status()
                data = resp.json()
            message = data["choices"][0]["message"]["content"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Error calling chat completion API: %s", exc)
            raise ReportError("Error generating report") from exc

        if not message or not message.strip():
            raise ReportError("Error generating report")
        return message.strip()


class RemoteReportGenerator(ReportGenerator):
    """Delegates to another deployment's /api/generate-report."""

    def __init__(self, url: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(transport)
        self.url = url

    async def generate(self, req: ReportRequest) -> str:
        try:
            async with httpx.AsyncClient(timeout=settings.REPORT_TIMEOUT_SECONDS,
                                         transport=self.transport) as client:
                resp = await client.post(self.url, json=req.model_dump())
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Report endpoint unreachable: %s", exc)
            raise ReportError("Error generating report") from exc

        if resp.is_error or not isinstance(data, dict) or not data.get("report"):
            detail = data.get("error") if isinstance(data, dict) else None
            raise ReportError(detail or f"Report endpoint returned status {resp.status_code}")
        return data["report"]


def get_report_generator() -> ReportGenerator:
    if settings.remote_report_configured:
        return RemoteReportGenerator(settings.REPORT_ENDPOINT_URL)
    return ReportGenerator()


# ---------------------------------------------------------------------------
# Stub narrative (no API key)
# ---------------------------------------------------------------------------
def _stub_report(req: ReportRequest) -> str:
    pct = format_percentage(req.fakePercentage)
    if req.isLikelyDeepfake is None:
        headline = f"The detector did not return a verdict (fake percentage {pct})."
    elif req.isLikelyDeepfake:
        headline = (
            f"The detector rates this video as likely manipulated, with a fake percentage of {pct}. "
            "Treat its content as unverified until it is confirmed through an independent source."
        )
    else:
        headline = (
            f"The detector rates this video as likely genuine, with a fake percentage of {pct}. "
            "No strong signs of synthetic manipulation were found."
        )

    lines = [headline]
    if req.topFrames:
        fake_frames = [f for f in req.topFrames if f.prediction.lower() == "fake"]
        peak = max(req.topFrames, key=lambda f: f.confidence)
        lines.append(
            f"{len(req.topFrames)} frames were highlighted, {len(fake_frames)} of them predicted fake. "
            f"The most confident call was frame {peak.frame_number} "
            f"({peak.prediction or 'unlabelled'}, {peak.confidence * 100:.2f}%)."
        )
    else:
        lines.append("No per-frame detail was returned by the detector.")
    return "\n\n".join(lines)
