"""
Client for the remote deepfake classifier.

POST <ANALYSIS_URL>
multipart/form-data field: video
-> {"fake_percentage": float, "is_likely_deepfake": bool, "top_frames": [...]}
"""
from __future__ import annotations
import json
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from deepcheck.core.config import get_settings
from deepcheck.core.errors import AnalysisError
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import AnalysisResult
from deepcheck.media.blob import MediaBlob

logger = get_logger(__name__)
settings = get_settings()


class AnalysisClient:
    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url or settings.ANALYSIS_URL
        self.timeout = timeout if timeout is not None else settings.ANALYSIS_TIMEOUT_SECONDS
        self.transport = transport

    async def analyze(
        self,
        blob: MediaBlob,
        on_received: Optional[Callable[[], object]] = None,
    ) -> AnalysisResult:
        """
        Upload `blob` and return the parsed verdict.

        `on_received` fires once the endpoint answers with a 2xx status, before
        the body is read. Every failure is raised as AnalysisError.
        """
        files = {"video": (blob.filename, blob.data, blob.content_type)}
        logger.info("analyze upload name=%s bytes=%d url=%s", blob.filename, blob.size, self.url)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                async with client.stream("POST", self.url, files=files) as resp:
                    if not resp.is_success:
                        raise AnalysisError(f"HTTP error! status: {resp.status_code}")
                    if on_received is not None:
                        on_received()
                    body = await resp.aread()
        except httpx.HTTPError as exc:
            logger.error("analysis request failed: %r", exc)
            raise AnalysisError(f"Network error: {str(exc) or exc.__class__.__name__}") from exc

        try:
            result = AnalysisResult.from_response(json.loads(body))
        except (ValueError, TypeError, ValidationError) as exc:
            logger.error("analysis response malformed: %s raw=%r", exc, body[:200])
            raise AnalysisError("Malformed response from analysis service") from exc

        logger.info(
            "analysis done fake_percentage=%s is_likely_deepfake=%s frames=%d",
            result.fake_percentage, result.is_likely_deepfake, len(result.top_frames),
        )
        return result


def get_analysis_client() -> AnalysisClient:
    return AnalysisClient()
