"""
Upload session phases.

idle -> uploading -> analyzing -> complete, with error reachable from
uploading or analyzing. Each variant carries only the data that exists in
that phase, so a result without a completed analysis cannot be represented.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from deepcheck.core.schemas import AnalysisResult


@dataclass(frozen=True)
class Idle:
    status = "idle"


@dataclass(frozen=True)
class Uploading:
    upload_progress: float = 0.0
    status = "uploading"


@dataclass(frozen=True)
class Analyzing:
    upload_progress: float = 100.0
    analysis_progress: float = 0.0
    status = "analyzing"


@dataclass(frozen=True)
class Complete:
    result: AnalysisResult
    report: Optional[str] = None
    status = "complete"


@dataclass(frozen=True)
class Error:
    message: str
    status = "error"


Phase = Union[Idle, Uploading, Analyzing, Complete, Error]
