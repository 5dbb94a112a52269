"""
Formatted PDF report: header, analysis results, narrative and the top
frames with their visualizations, rendered with reportlab platypus.
"""
from __future__ import annotations
import base64
import binascii
import io
from datetime import date
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from deepcheck.core.logging import get_logger
from deepcheck.core.schemas import AnalysisResult, TopFrame, format_percentage

logger = get_logger(__name__)

PDF_FILENAME = "deepfake-analysis-report.pdf"

BLUE = colors.HexColor("#1e40af")
GREY = colors.HexColor("#6b7280")
TEXT = colors.HexColor("#374151")
FAKE_BG, FAKE_FG = colors.HexColor("#fee2e2"), colors.HexColor("#dc2626")
REAL_BG, REAL_FG = colors.HexColor("#dcfce7"), colors.HexColor("#16a34a")


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("title", parent=base["Title"], fontSize=28, leading=34,
                                textColor=BLUE, alignment=0),
        "subtitle": ParagraphStyle("subtitle", parent=base["Normal"], fontSize=14, textColor=GREY),
        "section": ParagraphStyle("section", parent=base["Heading2"], fontSize=20, leading=24,
                                  textColor=BLUE, spaceBefore=18, spaceAfter=10),
        "text": ParagraphStyle("text", parent=base["Normal"], fontSize=12, leading=19, textColor=TEXT),
        "verdict": ParagraphStyle("verdict", parent=base["Normal"], fontSize=16, leading=20),
        "percentage": ParagraphStyle("percentage", parent=base["Normal"], fontSize=24, leading=28,
                                     alignment=1, textColor=BLUE),
        "caption": ParagraphStyle("caption", parent=base["Normal"], fontSize=10, leading=13, textColor=TEXT),
    }


def _frame_image(frame: TopFrame) -> Optional[Image]:
    if not frame.visualization:
        return None
    try:
        raw = base64.b64decode(frame.visualization, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("frame %s visualization is not valid base64", frame.frame_number)
        return None
    try:
        return Image(io.BytesIO(raw), width=3.0 * inch, height=2.0 * inch, kind="proportional", lazy=0)
    except Exception as exc:
        logger.warning("frame %s visualization could not be decoded: %s", frame.frame_number, exc)
        return None


def _frame_cell(frame: TopFrame, st: dict) -> list:
    cell = []
    img = _frame_image(frame)
    if img is not None:
        cell.append(img)
    cell += [
        Paragraph(f"Frame: {frame.frame_number}", st["caption"]),
        Paragraph(f"Prediction: {escape(frame.prediction)}", st["caption"]),
        Paragraph(f"Confidence: {format_percentage(frame.confidence * 100)}", st["caption"]),
    ]
    return cell


def render_pdf_report(result: AnalysisResult, report: str, generated_on: Optional[date] = None) -> bytes:
    st = _styles()
    generated_on = generated_on or date.today()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=40, rightMargin=40, topMargin=40, bottomMargin=40,
                            title="Deepfake Analysis Report")

    story = [
        Paragraph("Deepfake Analysis Report", st["title"]),
        Paragraph(f"Generated on {generated_on.strftime('%x')}", st["subtitle"]),
        Spacer(1, 20),
        Paragraph("Analysis Results", st["section"]),
    ]

    fake = bool(result.is_likely_deepfake)
    fg = FAKE_FG if fake else REAL_FG
    verdict_style = ParagraphStyle("verdict_colored", parent=st["verdict"], textColor=fg)
    verdict = Table([[Paragraph(result.verdict_text, verdict_style)]], colWidths=[doc.width])
    verdict.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), FAKE_BG if fake else REAL_BG),
        ("BOX", (0, 0), (-1, -1), 0.5, fg),
        ("LEFTPADDING", (0, 0), (-1, -1), 15),
        ("TOPPADDING", (0, 0), (-1, -1), 12),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 12),
    ]))
    story += [
        verdict,
        Spacer(1, 16),
        Paragraph(result.percentage_text, st["percentage"]),
        Paragraph("Fake Percentage", ParagraphStyle("label", parent=st["subtitle"], alignment=1)),
        Paragraph("Detailed Analysis", st["section"]),
    ]
    for para in report.strip().split("\n\n"):
        story.append(Paragraph(escape(para).replace("\n", "<br/>"), st["text"]))
        story.append(Spacer(1, 8))

    if result.top_frames:
        story.append(Paragraph("Top Analyzed Frames", st["section"]))
        cells = [_frame_cell(f, st) for f in result.top_frames]
        rows = [cells[i:i + 2] for i in range(0, len(cells), 2)]
        if len(rows[-1]) == 1:
            rows[-1].append("")
        grid = Table(rows, colWidths=[doc.width * 0.48, doc.width * 0.48], hAlign="LEFT")
        grid.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#f9fafb")),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 12),
        ]))
        story.append(grid)

    doc.build(story)
    return buf.getvalue()
