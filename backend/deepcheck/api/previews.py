"""GET /previews/{token} - local playback of a selected or recorded video."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from deepcheck.media.previews import previews

router = APIRouter()


@router.get("/previews/{token}")
async def get_preview(token: str):
    blob = previews.get(token)
    if blob is None:
        raise HTTPException(status_code=404, detail="Preview not found or revoked")
    return Response(content=blob.data, media_type=blob.content_type)
