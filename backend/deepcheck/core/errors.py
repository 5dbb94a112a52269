"""Exception types raised by the workflow and its collaborators."""
from __future__ import annotations


class DeepcheckError(Exception):
    """Base class for errors this package raises on purpose."""


class AnalysisError(DeepcheckError):
    """Transport failure, non-2xx status or malformed body from the analysis endpoint."""


class ReportError(DeepcheckError):
    """Narrative report could not be generated."""


class CameraUnavailableError(DeepcheckError):
    """Camera could not be opened (no device or permission denied)."""


class InvalidTransition(DeepcheckError):
    """Action is not allowed in the current phase or wizard step."""


class UnsupportedMedia(DeepcheckError):
    """Selected file is not a video."""
