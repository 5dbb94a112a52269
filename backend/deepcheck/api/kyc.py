"""
POST /kyc
GET  /kyc/{wizard_id}
PUT  /kyc/{wizard_id}/details
POST /kyc/{wizard_id}/video       multipart/form-data field: video
POST /kyc/{wizard_id}/next
POST /kyc/{wizard_id}/previous
POST /kyc/{wizard_id}/submit
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from deepcheck.api.uploads import read_video_upload
from deepcheck.core.errors import AnalysisError, InvalidTransition
from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import KycDetails
from deepcheck.db import repo
from deepcheck.kyc.wizard import SUBMIT_FAILED_MESSAGE, KycWizard
from deepcheck.services.analysis_client import AnalysisClient, get_analysis_client

router = APIRouter()
logger = get_logger(__name__)


def _load(wizard_id: str) -> KycWizard:
    w = repo.get_wizard(wizard_id)
    if w is None:
        raise HTTPException(status_code=404, detail="KYC wizard not found")
    return w


@router.post("/kyc", status_code=201)
async def create_wizard():
    return repo.create_wizard().view()


@router.get("/kyc/{wizard_id}")
async def get_wizard(wizard_id: str):
    return _load(wizard_id).view()


@router.put("/kyc/{wizard_id}/details")
async def set_details(wizard_id: str, details: KycDetails):
    w = _load(wizard_id)
    w.set_details(details)
    return w.view()


@router.post("/kyc/{wizard_id}/video")
async def set_video(wizard_id: str, video: UploadFile = File(...)):
    w = _load(wizard_id)
    w.set_video(await read_video_upload(video))
    return w.view()


@router.post("/kyc/{wizard_id}/next")
async def next_step(wizard_id: str):
    w = _load(wizard_id)
    try:
        w.next()
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return w.view()


@router.post("/kyc/{wizard_id}/previous")
async def previous_step(wizard_id: str):
    w = _load(wizard_id)
    try:
        w.previous()
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return w.view()


@router.post("/kyc/{wizard_id}/submit")
async def submit(
    wizard_id: str,
    client: AnalysisClient = Depends(get_analysis_client),
    session: AsyncSession = Depends(repo.get_session),
):
    w = _load(wizard_id)
    try:
        outcome = await w.submit(client)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except AnalysisError:
        raise HTTPException(status_code=502, detail=SUBMIT_FAILED_MESSAGE)

    record = await repo.create_kyc_submission(session, w, outcome)
    logger.info("kyc submission=%s passed=%s", record.id, record.passed)
    return {"submission_id": record.id, "message": outcome.message, **w.view()}
