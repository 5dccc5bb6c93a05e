"""ReportLab PDF builder and file publisher for sprint reports."""

from __future__ import annotations

import io
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import (
    BaseDocTemplate,
    Frame,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from sprint_report_generator.core.data_models import PublishResult, ReportStructured
from sprint_report_generator.core.errors import PublishError
from sprint_report_generator.core.i18n import format_progress, page_strings
from sprint_report_generator.core.notion_blocks import page_title

logger = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4
MARGIN = 18 * mm

_PALETTE = {
    "accent": colors.HexColor("#0052CC"),
    "text": colors.HexColor("#172B4D"),
    "muted": colors.HexColor("#6B778C"),
    "surface": colors.HexColor("#F4F5F7"),
}

# Built-in PDF fonts have no Cyrillic glyphs, so prefer a system TTF when present.
_UNICODE_FONTS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/Library/Fonts/Arial Unicode.ttf",
    "C:/Windows/Fonts/arial.ttf",
)


def generate_pdf(report: ReportStructured, sprint_name: str, lang: str = "en") -> bytes:
    """Build the full PDF report and return it as bytes."""
    logger.info("Generating PDF for sprint %r (language=%s)", sprint_name, lang)
    font = _register_font()
    s = page_strings(lang)
    styles = _build_styles(font)

    buf = io.BytesIO()
    doc = _create_doc(buf)
    story: list[Any] = []

    story.append(Paragraph(_t(page_title(sprint_name, lang)), styles["title"]))
    story.append(Spacer(1, 6 * mm))

    if report.version is not None:
        v = report.version
        story.append(_callout([
            s.version_callout[0].format(number=v.number, deadline=v.deadline),
            s.version_callout[1].format(goal=v.goal),
            s.version_callout[2].format(progress=format_progress(v.progress_percent)),
        ], styles))
        story.append(Spacer(1, 3 * mm))
    if report.sprint is not None:
        sp = report.sprint
        story.append(_callout([
            s.sprint_callout[0].format(number=sp.number, start=sp.start_date, end=sp.end_date),
            s.sprint_callout[1].format(goal=sp.goal),
            s.sprint_callout[2].format(progress=format_progress(sp.progress_percent)),
        ], styles))

    # 1. sprint results
    _heading(story, s.section_sprint_report, styles)
    story.append(Paragraph(_t(s.section_overview), styles["subheading"]))
    for para in (report.overview or "").split("\n\n"):
        if para.strip():
            story.append(Paragraph(_t(para.strip()), styles["body"]))
    story.append(Paragraph(_t(s.section_not_done), styles["subheading"]))
    _bullets(story, [
        s.not_done_line.format(
            title=i.title, reason=i.reason,
            required=i.required_for_completion, deadline=i.new_deadline,
        )
        for i in report.not_done or ()
    ], s.all_tasks_completed, styles)
    story.append(Paragraph(_t(s.section_achievements), styles["subheading"]))
    _bullets(story, [f"{i.title} — {i.description}" for i in report.achievements or ()],
             s.no_achievements, styles)

    # 2. artifacts
    _heading(story, s.section_artifacts, styles)
    if not report.artifacts:
        story.append(Paragraph(_t(s.artifacts_later), styles["body"]))
    for artifact in report.artifacts or ():
        story.append(Paragraph(f"<b>{_t(artifact.title)}</b>", styles["body"]))
        story.append(Paragraph(_t(f"{s.label_description} {artifact.description}"), styles["body"]))
        if artifact.jira_link:
            story.append(Paragraph(_t(f"{s.label_jira_link} {artifact.jira_link}"), styles["body"]))
        if artifact.attachments_note:
            story.append(Paragraph(
                _t(f"{s.label_artifacts} {artifact.attachments_note}"), styles["body"],
            ))
        story.append(Spacer(1, 2 * mm))

    # 3. next sprint
    _heading(story, s.section_next_sprint, styles)
    if report.next_sprint is not None:
        story.append(Paragraph(
            f"<b>{_t(s.next_sprint_heading.format(number=report.next_sprint.sprint_number))}</b>",
            styles["body"],
        ))
        story.append(Paragraph(
            _t(f"{s.label_next_sprint_goal} {report.next_sprint.goal}"), styles["body"],
        ))
    story.append(Paragraph(_t(s.section_blockers), styles["subheading"]))
    _bullets(story, [
        s.blocker_line.format(
            title=b.title, description=b.description, resolution=b.resolution_proposal,
        )
        for b in report.blockers or ()
    ], s.none, styles)

    # 4. PM questions
    _heading(story, s.section_pm_questions, styles)
    _bullets(story, [f"{q.title} — {q.description}" for q in report.pm_questions or ()],
             s.none, styles)

    doc.build(story)
    result = buf.getvalue()
    logger.info("PDF built: %d bytes", len(result))
    return result


class PdfPublisher:
    """Write each report to ``<output_dir>/<sprint-name>.pdf``."""

    def __init__(self, output_dir: str | Path, *, language: str = "en") -> None:
        self._output_dir = Path(output_dir)
        self._language = language

    def create_report_page(self, sprint_name: str, report: ReportStructured) -> PublishResult:
        pdf = generate_pdf(report, sprint_name, self._language)
        path = self._output_dir / f"{_slug(sprint_name)}-{date.today().isoformat()}.pdf"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(pdf)
        except OSError as exc:
            raise PublishError(f"Failed to write {path}: {exc}") from exc
        logger.info("Report written to %s", path)
        resolved = path.resolve()
        return PublishResult(id=str(resolved), url=resolved.as_uri())


# -- document setup -----------------------------------------------------------


def _create_doc(buf: io.BytesIO) -> BaseDocTemplate:
    doc = BaseDocTemplate(
        buf,
        pagesize=(PAGE_W, PAGE_H),
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
    )
    frame = Frame(MARGIN, MARGIN, PAGE_W - 2 * MARGIN, PAGE_H - 2 * MARGIN, id="main")
    doc.addPageTemplates([PageTemplate(id="default", frames=[frame])])
    return doc


def _register_font() -> str:
    if "ReportSans" in pdfmetrics.getRegisteredFontNames():
        return "ReportSans"
    for candidate in _UNICODE_FONTS:
        if Path(candidate).exists():
            try:
                pdfmetrics.registerFont(TTFont("ReportSans", candidate))
                pdfmetrics.registerFontFamily(
                    "ReportSans", normal="ReportSans", bold="ReportSans",
                    italic="ReportSans", boldItalic="ReportSans",
                )
                logger.debug("Using font %s", candidate)
                return "ReportSans"
            except Exception as exc:
                logger.debug("Could not register %s: %s", candidate, exc)
    return "Helvetica"


def _build_styles(font: str) -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReportTitle", parent=base["Title"], fontName=font,
            fontSize=20, leading=26, textColor=_PALETTE["text"],
        ),
        "heading": ParagraphStyle(
            "SectionHeading", parent=base["Heading1"], fontName=font,
            fontSize=15, leading=20, textColor=_PALETTE["accent"], spaceBefore=8, spaceAfter=4,
        ),
        "subheading": ParagraphStyle(
            "SubHeading", parent=base["Normal"], fontName=font,
            fontSize=11, leading=15, textColor=_PALETTE["text"], spaceBefore=6, spaceAfter=2,
        ),
        "body": ParagraphStyle(
            "Body", parent=base["Normal"], fontName=font,
            fontSize=10, leading=14, textColor=_PALETTE["text"],
        ),
        "callout": ParagraphStyle(
            "Callout", parent=base["Normal"], fontName=font,
            fontSize=10, leading=14, textColor=_PALETTE["text"],
        ),
        "muted": ParagraphStyle(
            "Muted", parent=base["Normal"], fontName=font,
            fontSize=10, leading=14, textColor=_PALETTE["muted"],
        ),
    }


# -- content helpers ----------------------------------------------------------


def _t(text: str) -> str:
    return escape(text or "")


def _heading(story: list[Any], text: str, styles: dict[str, ParagraphStyle]) -> None:
    story.append(Spacer(1, 4 * mm))
    story.append(Paragraph(_t(text), styles["heading"]))


def _bullets(
    story: list[Any], lines: list[str], empty: str, styles: dict[str, ParagraphStyle]
) -> None:
    if not lines:
        story.append(Paragraph(_t(empty), styles["muted"]))
        return
    for line in lines:
        story.append(Paragraph(f"\u2022 {_t(line)}", styles["body"]))


def _callout(lines: list[str], styles: dict[str, ParagraphStyle]) -> Table:
    rows = [[Paragraph(f"<b>{_t(lines[0])}</b>", styles["callout"])]]
    rows += [[Paragraph(_t(line), styles["callout"])] for line in lines[1:]]
    tbl = Table(rows, colWidths=[PAGE_W - 2 * MARGIN])
    tbl.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), _PALETTE["surface"]),
        ("LINEBEFORE", (0, 0), (0, -1), 2, _PALETTE["accent"]),
        ("LEFTPADDING", (0, 0), (-1, -1), 8),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]))
    return tbl


def _slug(name: str) -> str:
    slug = re.sub(r"[^\w.-]+", "-", name.strip(), flags=re.UNICODE).strip("-")
    return slug or "sprint"
