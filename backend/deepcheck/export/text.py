"""Plain-text report download."""
from __future__ import annotations
from datetime import date
from typing import Optional

from deepcheck.core.schemas import AnalysisResult, format_percentage

TEXT_FILENAME = "deepfake-analysis-report.txt"


def render_text_report(result: AnalysisResult, report: str, generated_on: Optional[date] = None) -> str:
    generated_on = generated_on or date.today()
    lines = [
        "Deepfake Analysis Report",
        f"Generated on {generated_on.isoformat()}",
        "",
        "Analysis Results",
        "----------------",
        result.verdict_text,
        f"Fake Percentage: {result.percentage_text}",
        "",
        "Detailed Analysis",
        "-----------------",
        report.strip(),
    ]
    if result.top_frames:
        lines += ["", "Top Analyzed Frames", "-------------------"]
        for frame in result.top_frames:
            lines.append(
                f"Frame: {frame.frame_number}  Prediction: {frame.prediction}  "
                f"Confidence: {format_percentage(frame.confidence * 100)}"
            )
    return "\n".join(lines) + "\n"
