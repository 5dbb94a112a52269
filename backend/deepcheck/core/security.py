"""ID generation helpers."""
from __future__ import annotations
import secrets
import uuid


def generate_id(prefix: str = "") -> str:
    """Generate a URL-safe unique ID."""
    uid = uuid.uuid4().hex
    return f"{prefix}{uid}" if prefix else uid


def generate_token(nbytes: int = 16) -> str:
    """Unguessable token for preview URLs."""
    return secrets.token_urlsafe(nbytes)
