"""In-memory video blobs (uploaded or recorded)."""
from __future__ import annotations
from dataclasses import dataclass

from deepcheck.core.errors import UnsupportedMedia


def _get_content_type(data: bytes) -> str:
    # WebM magic number
    if data.startswith(b'\x1a\x45\xdf\xa3'):
        return "video/webm"
    # QuickTime / MP4 headers
    return "video/mp4"


@dataclass(frozen=True)
class MediaBlob:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def describe(self) -> dict:
        return {"name": self.filename, "type": self.content_type, "size": self.size}


def make_video_blob(filename: str | None, content_type: str | None, data: bytes) -> MediaBlob:
    """
    Build a blob from an upload, rejecting anything that is not a video.

    Browsers leave the type empty for some drag-drop sources, so an empty
    type is sniffed from the container header instead.
    """
    content_type = (content_type or "").strip().lower()
    if not content_type:
        content_type = _get_content_type(data)
    if not content_type.startswith("video/"):
        raise UnsupportedMedia(f"Unsupported file type: {content_type}")
    if not data:
        raise UnsupportedMedia("Empty video file")
    return MediaBlob(filename=filename or "video", content_type=content_type, data=data)
