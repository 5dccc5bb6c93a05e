"""Build Notion block payloads for a sprint report page."""

from __future__ import annotations

import re
from datetime import date
from typing import Any

from sprint_report_generator.core.data_models import ReportStructured
from sprint_report_generator.core.i18n import format_date, format_progress, page_strings

Block = dict[str, Any]

# Notion rejects rich-text items with longer content
MAX_TEXT_LENGTH = 2000

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def _rich(text: str, bold: bool = False) -> list[dict[str, Any]]:
    """Rich-text items for *text*, cut into pieces Notion accepts."""
    chunks = [text[i:i + MAX_TEXT_LENGTH] for i in range(0, len(text), MAX_TEXT_LENGTH)] or [""]
    items = []
    for chunk in chunks:
        item: dict[str, Any] = {"type": "text", "text": {"content": chunk}}
        if bold:
            item["annotations"] = {"bold": True}
        items.append(item)
    return items


def _block(kind: str, text: str, bold: bool = False) -> Block:
    return {"object": "block", "type": kind, kind: {"rich_text": _rich(text, bold)}}


def paragraph(text: str, bold: bool = False) -> Block:
    return _block("paragraph", text, bold)


def heading(level: int, text: str) -> Block:
    return _block(f"heading_{level}", text)


def bullet(text: str) -> Block:
    return _block("bulleted_list_item", text)


def divider() -> Block:
    return {"object": "block", "type": "divider", "divider": {}}


def callout(lines: list[str], emoji: str) -> Block:
    """A callout whose first line is bold."""
    rich: list[dict[str, Any]] = []
    for index, line in enumerate(lines):
        rich.extend(_rich(line, bold=index == 0))
        if index < len(lines) - 1:
            rich.extend(_rich("\n"))
    return {
        "object": "block",
        "type": "callout",
        "callout": {"icon": {"type": "emoji", "emoji": emoji}, "rich_text": rich},
    }


def overview_paragraphs(overview: str | None) -> list[str]:
    """Split the overview on blank lines; an empty overview is one empty paragraph."""
    parts = [p.strip() for p in _PARAGRAPH_BREAK.split(overview or "")]
    return [p for p in parts if p] or [""]


def page_title(sprint_name: str, lang: str, today: date | None = None) -> str:
    today = today or date.today()
    return page_strings(lang).page_title.format(
        sprint_name=sprint_name, date=format_date(today, lang),
    )


def build_page_blocks(report: ReportStructured, lang: str) -> list[Block]:
    """Lay the report out as callouts followed by four numbered sections."""
    s = page_strings(lang)
    blocks: list[Block] = []

    if report.version is not None:
        v = report.version
        blocks.append(callout([
            s.version_callout[0].format(number=v.number, deadline=v.deadline),
            s.version_callout[1].format(goal=v.goal),
            s.version_callout[2].format(progress=format_progress(v.progress_percent)),
        ], "🚀"))
    if report.sprint is not None:
        sp = report.sprint
        blocks.append(callout([
            s.sprint_callout[0].format(number=sp.number, start=sp.start_date, end=sp.end_date),
            s.sprint_callout[1].format(goal=sp.goal),
            s.sprint_callout[2].format(progress=format_progress(sp.progress_percent)),
        ], "✅"))
    blocks.append(divider())

    # 1. sprint results
    blocks.append(heading(1, s.section_sprint_report))
    blocks.append(paragraph(s.placeholder_timeline))
    blocks.append(divider())
    blocks.append(heading(2, s.section_overview))
    blocks.extend(paragraph(text) for text in overview_paragraphs(report.overview))
    blocks.append(divider())
    blocks.append(paragraph(s.section_not_done, bold=True))
    if not report.not_done:
        blocks.append(paragraph(s.all_tasks_completed))
    for item in report.not_done or ():
        blocks.append(bullet(s.not_done_line.format(
            title=item.title, reason=item.reason,
            required=item.required_for_completion, deadline=item.new_deadline,
        )))
    blocks.append(divider())
    blocks.append(paragraph(s.section_achievements, bold=True))
    if not report.achievements:
        blocks.append(paragraph(s.no_achievements))
    for item in report.achievements or ():
        blocks.append(bullet(f"{item.title} — {item.description}"))
    blocks.append(divider())

    # 2. artifacts
    blocks.append(heading(1, s.section_artifacts))
    if not report.artifacts:
        blocks.append(paragraph(s.artifacts_later))
    for artifact in report.artifacts or ():
        blocks.append(heading(3, artifact.title))
        blocks.append(paragraph(f"{s.label_description} {artifact.description}"))
        if artifact.jira_link:
            blocks.append(paragraph(f"{s.label_jira_link} {artifact.jira_link}"))
        if artifact.attachments_note:
            blocks.append(paragraph(f"{s.label_artifacts} {artifact.attachments_note}"))
        blocks.append(paragraph(s.placeholder_artifacts))
        blocks.append(divider())

    # 3. next sprint
    blocks.append(heading(1, s.section_next_sprint))
    if report.next_sprint is not None:
        blocks.append(paragraph(
            s.next_sprint_heading.format(number=report.next_sprint.sprint_number), bold=True,
        ))
        blocks.append(paragraph(f"{s.label_next_sprint_goal} {report.next_sprint.goal}"))
    blocks.append(paragraph(s.placeholder_next_timeline))
    blocks.append(divider())
    blocks.append(paragraph(s.section_blockers, bold=True))
    if not report.blockers:
        blocks.append(paragraph(s.none))
    for blocker in report.blockers or ():
        blocks.append(bullet(s.blocker_line.format(
            title=blocker.title, description=blocker.description,
            resolution=blocker.resolution_proposal,
        )))
    blocks.append(divider())

    # 4. PM questions
    blocks.append(heading(1, s.section_pm_questions))
    if not report.pm_questions:
        blocks.append(paragraph(s.none))
    for question in report.pm_questions or ():
        blocks.append(bullet(f"{question.title} — {question.description}"))

    return blocks
