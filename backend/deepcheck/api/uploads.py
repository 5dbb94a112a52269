"""
POST   /sessions
GET    /sessions/{session_id}
DELETE /sessions/{session_id}
POST   /sessions/{session_id}/video     multipart/form-data field: video
POST   /sessions/{session_id}/analyze
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from deepcheck.core.config import get_settings
from deepcheck.core.errors import InvalidTransition, UnsupportedMedia
from deepcheck.core.logging import get_logger
from deepcheck.db import repo
from deepcheck.media.blob import MediaBlob, make_video_blob
from deepcheck.services.analysis_client import AnalysisClient, get_analysis_client
from deepcheck.workflow.runner import run_analysis
from deepcheck.workflow.session import UploadSession

router = APIRouter()
logger = get_logger(__name__)
settings = get_settings()


def load_session(session_id: str) -> UploadSession:
    s = repo.get_upload_session(session_id)
    if s is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return s


async def read_video_upload(video: UploadFile) -> MediaBlob:
    data = await video.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Video exceeds the upload size limit")
    try:
        return make_video_blob(video.filename, video.content_type, data)
    except UnsupportedMedia as exc:
        raise HTTPException(status_code=415, detail=str(exc))


@router.post("/sessions", status_code=201)
async def create_session():
    s = repo.create_upload_session()
    logger.info("session created id=%s", s.id)
    return s.view()


@router.get("/sessions/{session_id}")
async def get_session(session_id: str):
    return load_session(session_id).view()


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    if not await repo.discard(session_id):
        raise HTTPException(status_code=404, detail="Session not found")


@router.post("/sessions/{session_id}/video")
async def select_video(session_id: str, video: UploadFile = File(...)):
    s = load_session(session_id)
    blob = await read_video_upload(video)
    s.select(blob)
    logger.info("session=%s selected name=%s bytes=%d", s.id, blob.filename, blob.size)
    return s.view()


@router.post("/sessions/{session_id}/analyze")
async def analyze(session_id: str, client: AnalysisClient = Depends(get_analysis_client)):
    s = load_session(session_id)
    try:
        await run_analysis(s, client)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return s.view()
