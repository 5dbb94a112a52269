"""
Camera recording for an upload session or a KYC wizard.

POST   /{sessions|kyc}/{owner_id}/recording        start the 5 s recording
GET    /{sessions|kyc}/{owner_id}/recording        countdown / state
POST   /{sessions|kyc}/{owner_id}/recording/stop   manual stop
DELETE /{sessions|kyc}/{owner_id}/recording        record again
"""
from __future__ import annotations
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException

from deepcheck.capture.camera import CameraRecorder
from deepcheck.capture.controller import CaptureController
from deepcheck.core.errors import CameraUnavailableError, InvalidTransition
from deepcheck.core.logging import get_logger
from deepcheck.db import repo

router = APIRouter()
logger = get_logger(__name__)


def get_recorder_factory() -> Callable[[], CameraRecorder]:
    return CameraRecorder


def _owner_callbacks(owner_id: str):
    s = repo.get_upload_session(owner_id)
    if s is not None:
        return s.select, None
    w = repo.get_wizard(owner_id)
    if w is not None:
        return w.set_video, w.clear_video
    raise HTTPException(status_code=404, detail="Session not found")


def _owner_view(owner_id: str) -> dict | None:
    owner = repo.get_upload_session(owner_id) or repo.get_wizard(owner_id)
    return owner.view() if owner else None


def _load_capture(owner_id: str) -> CaptureController:
    _owner_callbacks(owner_id)
    controller = repo.get_capture(owner_id)
    if controller is None:
        raise HTTPException(status_code=404, detail="No recording for this session")
    return controller


@router.post("/sessions/{owner_id}/recording")
@router.post("/kyc/{owner_id}/recording")
async def start_recording(
    owner_id: str,
    recorder_factory: Callable[[], CameraRecorder] = Depends(get_recorder_factory),
):
    on_recorded, on_reset = _owner_callbacks(owner_id)
    controller = repo.get_capture(owner_id)
    if controller is None:
        controller = CaptureController(recorder_factory, on_recorded, on_reset)
        repo.store_capture(owner_id, controller)
    try:
        await controller.start()
    except CameraUnavailableError as exc:
        logger.warning("owner=%s camera unavailable: %s", owner_id, exc)
        raise HTTPException(status_code=503, detail=str(exc))
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"recording": controller.view(), "owner": _owner_view(owner_id)}


@router.get("/sessions/{owner_id}/recording")
@router.get("/kyc/{owner_id}/recording")
async def recording_status(owner_id: str):
    controller = _load_capture(owner_id)
    return {"recording": controller.view(), "owner": _owner_view(owner_id)}


@router.post("/sessions/{owner_id}/recording/stop")
@router.post("/kyc/{owner_id}/recording/stop")
async def stop_recording(owner_id: str):
    controller = _load_capture(owner_id)
    try:
        await controller.stop()
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"recording": controller.view(), "owner": _owner_view(owner_id)}


@router.delete("/sessions/{owner_id}/recording")
@router.delete("/kyc/{owner_id}/recording")
async def record_again(owner_id: str):
    controller = _load_capture(owner_id)
    try:
        controller.reset()
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"recording": controller.view(), "owner": _owner_view(owner_id)}
