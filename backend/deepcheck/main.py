"""
FastAPI application entrypoint.
"""
from __future__ import annotations
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deepcheck.core.config import get_settings
from deepcheck.core.logging import setup_logging, get_logger
from deepcheck.db.repo import init_db, discard_all
from deepcheck.media.previews import previews
from deepcheck.api import audit, capture, kyc, previews as previews_api, reports, uploads

settings = get_settings()
setup_logging(settings.DEBUG)
logger = get_logger(__name__)


def _report_mode() -> str:
    if settings.remote_report_configured:
        return "remote"
    return "live" if settings.report_configured else "stub"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown."""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.VERSION)
    await init_db()
    logger.info("Services: analysis=%s report=%s", settings.ANALYSIS_URL, _report_mode())
    yield
    discarded = await discard_all()
    leftover = previews.revoke_all()
    logger.info("Shutting down. discarded=%d leftover_previews=%d", discarded, leftover)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Upload or record a video, check it with a remote deepfake detector and export a report.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(uploads.router, tags=["Sessions"])
app.include_router(capture.router, tags=["Recording"])
app.include_router(reports.router, tags=["Reports"])
app.include_router(kyc.router, tags=["KYC"])
app.include_router(audit.router, tags=["Audit"])
app.include_router(previews_api.router, tags=["Previews"])


@app.get("/health", tags=["System"])
async def health():
    return {
        "status": "ok",
        "version": settings.VERSION,
        "services": {
            "analysis": settings.ANALYSIS_URL,
            "report": _report_mode(),
        },
    }
