"""Data access layer (async SQLAlchemy audit trail + in-memory workflow state)."""
from __future__ import annotations
import time
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from deepcheck.capture.controller import CaptureController
from deepcheck.core.config import get_settings
from deepcheck.core.logging import get_logger
from deepcheck.core.security import generate_id
from deepcheck.db.models import Base, KycSubmission
from deepcheck.kyc.wizard import KycOutcome, KycWizard
from deepcheck.workflow.session import UploadSession

logger = get_logger(__name__)
settings = get_settings()

# ---------------------------------------------------------------------------
# Engine / Session
# ---------------------------------------------------------------------------
engine = create_async_engine(settings.DATABASE_URL, echo=False, future=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def init_db() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("DB tables initialised")


async def get_session() -> AsyncSession:      # noqa: D401
    async with AsyncSessionLocal() as session:
        yield session


# ---------------------------------------------------------------------------
# In-memory workflow state (never persisted)
# ---------------------------------------------------------------------------
_upload_sessions: dict[str, UploadSession] = {}
_wizards: dict[str, KycWizard] = {}
_captures: dict[str, CaptureController] = {}
_last_seen: dict[str, float] = {}

clock = time.monotonic


def _busy(owner_id: str) -> bool:
    capture = _captures.get(owner_id)
    if capture is not None and capture.recording:
        return True
    s = _upload_sessions.get(owner_id)
    if s is not None and (s.in_flight or s.report_pending):
        return True
    w = _wizards.get(owner_id)
    return w is not None and w.submitting


def expire_idle() -> int:
    """Drop sessions and wizards untouched for SESSION_TTL_SECONDS."""
    cutoff = clock() - settings.SESSION_TTL_SECONDS
    expired = [oid for oid, seen in _last_seen.items() if seen < cutoff and not _busy(oid)]
    for owner_id in expired:
        _last_seen.pop(owner_id, None)
        capture = _captures.pop(owner_id, None)
        if capture is not None:
            capture.abandon()
        owner = _upload_sessions.pop(owner_id, None) or _wizards.pop(owner_id, None)
        if owner is not None:
            owner.close()
    if expired:
        logger.info("expired %d idle sessions", len(expired))
    return len(expired)


def _touch(owner_id: str) -> None:
    _last_seen[owner_id] = clock()


def create_upload_session() -> UploadSession:
    expire_idle()
    s = UploadSession(generate_id("ses_"))
    _upload_sessions[s.id] = s
    _touch(s.id)
    return s


def get_upload_session(session_id: str) -> Optional[UploadSession]:
    expire_idle()
    s = _upload_sessions.get(session_id)
    if s is not None:
        _touch(session_id)
    return s


def create_wizard() -> KycWizard:
    expire_idle()
    w = KycWizard(generate_id("kyc_"))
    _wizards[w.id] = w
    _touch(w.id)
    return w


def get_wizard(wizard_id: str) -> Optional[KycWizard]:
    expire_idle()
    w = _wizards.get(wizard_id)
    if w is not None:
        _touch(wizard_id)
    return w


def get_capture(owner_id: str) -> Optional[CaptureController]:
    return _captures.get(owner_id)


def store_capture(owner_id: str, controller: CaptureController) -> None:
    _captures[owner_id] = controller


async def discard(owner_id: str) -> bool:
    """Tear down an upload session or wizard and its camera, releasing previews."""
    _last_seen.pop(owner_id, None)
    capture = _captures.pop(owner_id, None)
    if capture is not None:
        await capture.close()
    owner = _upload_sessions.pop(owner_id, None) or _wizards.pop(owner_id, None)
    if owner is None:
        return False
    owner.close()
    return True


async def discard_all() -> int:
    ids = list(_upload_sessions) + list(_wizards)
    for owner_id in ids:
        await discard(owner_id)
    return len(ids)


# ---------------------------------------------------------------------------
# KYC submissions
# ---------------------------------------------------------------------------
async def create_kyc_submission(session: AsyncSession, wizard: KycWizard,
                                outcome: KycOutcome) -> KycSubmission:
    k = KycSubmission(
        id=generate_id("sub_"),
        first_name=wizard.details.first_name,
        last_name=wizard.details.last_name,
        email=wizard.details.email,
        fake_percentage=outcome.result.fake_percentage,
        is_likely_deepfake=outcome.result.is_likely_deepfake,
        passed=outcome.passed,
    )
    session.add(k)
    await session.commit()
    await session.refresh(k)
    return k


async def get_kyc_submission(session: AsyncSession, submission_id: str) -> Optional[KycSubmission]:
    result = await session.execute(select(KycSubmission).where(KycSubmission.id == submission_id))
    return result.scalar_one_or_none()


async def list_kyc_submissions(session: AsyncSession) -> list[KycSubmission]:
    result = await session.execute(select(KycSubmission).order_by(KycSubmission.created_at.desc()))
    return result.scalars().all()
