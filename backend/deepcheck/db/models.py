"""SQLAlchemy async models for the KYC audit database."""
from __future__ import annotations
from datetime import datetime, timezone

from sqlalchemy import Column, String, Float, Boolean, DateTime
from sqlalchemy.orm import DeclarativeBase


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class KycSubmission(Base):
    __tablename__ = "kyc_submissions"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    fake_percentage = Column(Float, nullable=True)
    is_likely_deepfake = Column(Boolean, nullable=True)
    passed = Column(Boolean, nullable=False)
    created_at = Column(DateTime, default=_now)
