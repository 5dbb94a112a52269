"""Drives an UploadSession through the remote analysis and report calls."""
from __future__ import annotations

from deepcheck.core.errors import AnalysisError, ReportError
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import ReportRequest
from deepcheck.services.analysis_client import AnalysisClient
from deepcheck.services.report_service import ReportGenerator
from deepcheck.workflow.session import UploadSession

logger = get_logger(__name__)


async def run_analysis(session: UploadSession, client: AnalysisClient) -> None:
    """
    idle -> uploading -> analyzing -> complete | error.

    Raises InvalidTransition if the session is not idle with a selected video.
    Remote failures never propagate: they become the session's error phase.
    """
    generation = session.begin_upload()
    blob = session.media
    logger.info("session=%s upload started gen=%d", session.id, generation)

    try:
        result = await client.analyze(blob, on_received=lambda: session.acknowledge(generation))
    except AnalysisError as exc:
        if session.fail(generation, str(exc)):
            logger.warning("session=%s analysis failed: %s", session.id, exc)
        return

    if session.complete(generation, result):
        logger.info("session=%s complete verdict=%s", session.id, result.is_likely_deepfake)


async def run_report(session: UploadSession, generator: ReportGenerator) -> None:
    """Request the narrative for a completed session. Failure is advisory."""
    generation, result = session.begin_report()
    try:
        text = await generator.generate(ReportRequest.from_result(result))
    except ReportError as exc:
        logger.warning("session=%s report failed: %s", session.id, exc)
        session.report_failed(generation, str(exc) or "Error generating report")
        return
    session.attach_report(generation, text)
