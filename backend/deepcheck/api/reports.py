"""
POST /api/generate-report              {fakePercentage, isLikelyDeepfake, topFrames} -> {report}
POST /sessions/{session_id}/report
GET  /sessions/{session_id}/report.txt
GET  /sessions/{session_id}/report.pdf
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from deepcheck.api.uploads import load_session
from deepcheck.core.errors import InvalidTransition, ReportError
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import ReportRequest
from deepcheck.export.pdf import PDF_FILENAME, render_pdf_report
from deepcheck.export.text import TEXT_FILENAME, render_text_report
from deepcheck.services.report_service import ReportGenerator, get_report_generator
from deepcheck.workflow.runner import run_report

router = APIRouter()
logger = get_logger(__name__)


def get_model_report_generator() -> ReportGenerator:
    return ReportGenerator()


@router.post("/api/generate-report")
async def generate_report(
    req: ReportRequest,
    generator: ReportGenerator = Depends(get_model_report_generator),
):
    try:
        report = await generator.generate(req)
    except ReportError:
        return JSONResponse({"error": "Error generating report"}, status_code=500)
    return {"report": report}


@router.post("/sessions/{session_id}/report")
async def request_report(
    session_id: str,
    generator: ReportGenerator = Depends(get_report_generator),
):
    s = load_session(session_id)
    try:
        await run_report(s, generator)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return s.view()


def _report_parts(session_id: str):
    s = load_session(session_id)
    if s.result is None:
        raise HTTPException(status_code=409, detail="Analysis not complete")
    if s.report is None:
        raise HTTPException(status_code=409, detail="Report not generated")
    return s.result, s.report


@router.get("/sessions/{session_id}/report.txt")
async def download_text(session_id: str):
    result, report = _report_parts(session_id)
    return PlainTextResponse(
        render_text_report(result, report),
        headers={"Content-Disposition": f'attachment; filename="{TEXT_FILENAME}"'},
    )


@router.get("/sessions/{session_id}/report.pdf")
async def download_pdf(session_id: str):
    result, report = _report_parts(session_id)
    pdf = await run_in_threadpool(render_pdf_report, result, report)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{PDF_FILENAME}"'},
    )
