"""
Local preview URLs for selected videos.

A preview token plays the role of a browser object URL: it is created when a
blob is selected and must be revoked exactly once when the selection is
superseded or its owner goes away.
"""
from __future__ import annotations
from typing import Optional

from deepcheck.core.logging import get_logger
from deepcheck.core.security import generate_token
from deepcheck.media.blob import MediaBlob

logger = get_logger(__name__)


class PreviewRegistry:
    def __init__(self) -> None:
        self._blobs: dict[str, MediaBlob] = {}

    def create(self, blob: MediaBlob) -> "PreviewHandle":
        token = generate_token()
        self._blobs[token] = blob
        logger.debug("preview created token=%s bytes=%d", token, blob.size)
        return PreviewHandle(self, token)

    def get(self, token: str) -> Optional[MediaBlob]:
        return self._blobs.get(token)

    def _revoke(self, token: str) -> None:
        self._blobs.pop(token, None)
        logger.debug("preview revoked token=%s", token)

    def revoke_all(self) -> int:
        count = len(self._blobs)
        self._blobs.clear()
        return count

    def __len__(self) -> int:
        return len(self._blobs)


class PreviewHandle:
    """Owned reference to one preview; `revoke()` is idempotent."""

    def __init__(self, registry: PreviewRegistry, token: str) -> None:
        self._registry = registry
        self.token = token
        self.revoked = False

    @property
    def url(self) -> str:
        return f"/previews/{self.token}"

    def revoke(self) -> bool:
        """Release the preview. Returns False if it was already released."""
        if self.revoked:
            return False
        self.revoked = True
        self._registry._revoke(self.token)
        return True

    def __enter__(self) -> "PreviewHandle":
        return self

    def __exit__(self, *exc) -> None:
        self.revoke()


previews = PreviewRegistry()
