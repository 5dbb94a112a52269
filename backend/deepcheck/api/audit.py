"""
GET /audit/kyc
GET /audit/kyc/{submission_id}
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from deepcheck.db import repo
from deepcheck.db.models import KycSubmission

router = APIRouter()


def _serialize_submission(k: KycSubmission) -> dict:
    return {
        "submission_id": k.id,
        "first_name": k.first_name,
        "last_name": k.last_name,
        "email": k.email,
        "fake_percentage": k.fake_percentage,
        "is_likely_deepfake": k.is_likely_deepfake,
        "passed": k.passed,
        "created_at": k.created_at.isoformat() if k.created_at else None,
    }


@router.get("/audit/kyc")
async def list_submissions(session: AsyncSession = Depends(repo.get_session)):
    submissions = await repo.list_kyc_submissions(session)
    return {"submissions": [_serialize_submission(k) for k in submissions]}


@router.get("/audit/kyc/{submission_id}")
async def get_submission(submission_id: str, session: AsyncSession = Depends(repo.get_session)):
    k = await repo.get_kyc_submission(session, submission_id)
    if not k:
        raise HTTPException(status_code=404, detail="Submission not found")
    return _serialize_submission(k)
