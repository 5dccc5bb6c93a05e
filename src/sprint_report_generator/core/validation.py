"""Rule-based validation of collected data (Stage 1) and generated reports (Stage 3).

Rules run in a fixed order and append to ordered error and warning lists.
Apart from the optional assessor and checker calls, every rule is a pure
function of its input.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from sprint_report_generator.core.data_models import (
    REPORT_SECTIONS,
    CollectedSprintData,
    GoalAlignment,
    PartnerReadiness,
    ReportStructured,
    SprintInfo,
    SprintIssue,
    ValidationIssue,
    ValidationResult,
)
from sprint_report_generator.core.i18n import is_text_in_language

logger = logging.getLogger(__name__)

MIN_GOAL_LENGTH = 20

_PLACEHOLDER_PATTERNS = (
    re.compile(r"TODO", re.IGNORECASE),
    re.compile(r"lorem ipsum", re.IGNORECASE),
    re.compile(r"placeholder", re.IGNORECASE),
    re.compile(r"\[.*\]"),
)
_ISSUE_KEY_RE = re.compile(r"[A-Z]+-\d+")


class DataValidationCodes:
    SPRINT_NAME_MISSING = "SPRINT_NAME_MISSING"
    SPRINT_DATES_MISSING = "SPRINT_DATES_MISSING"
    SPRINT_GOAL_MISSING = "SPRINT_GOAL_MISSING"
    SPRINT_GOAL_TOO_SHORT = "SPRINT_GOAL_TOO_SHORT"
    ISSUE_KEY_MISSING = "ISSUE_KEY_MISSING"
    ISSUE_SUMMARY_MISSING = "ISSUE_SUMMARY_MISSING"
    ISSUE_STATUS_MISSING = "ISSUE_STATUS_MISSING"
    ISSUE_STATUS_CATEGORY_MISSING = "ISSUE_STATUS_CATEGORY_MISSING"
    NO_DONE_ISSUES = "NO_DONE_ISSUES"
    NO_STORY_POINTS = "NO_STORY_POINTS"
    GOAL_ISSUE_MATCH_WEAK = "GOAL_ISSUE_MATCH_WEAK"


class ReportValidationCodes:
    SECTION_MISSING = "SECTION_MISSING"
    SECTION_EMPTY = "SECTION_EMPTY"
    WRONG_LANGUAGE = "WRONG_LANGUAGE"
    PLACEHOLDER_DETECTED = "PLACEHOLDER_DETECTED"
    SPRINT_NUMBER_MISMATCH = "SPRINT_NUMBER_MISMATCH"
    PROGRESS_OUT_OF_RANGE = "PROGRESS_OUT_OF_RANGE"
    INVALID_ISSUE_KEY_REFERENCE = "INVALID_ISSUE_KEY_REFERENCE"
    NOT_PARTNER_READY = "NOT_PARTNER_READY"


class Assessor(Protocol):
    def assess(self, sprint_info: SprintInfo, issues: Any) -> GoalAlignment: ...


class ReadinessChecker(Protocol):
    def check(
        self, report: ReportStructured, data: CollectedSprintData
    ) -> PartnerReadiness | None: ...


# -- Stage 1 ------------------------------------------------------------------


def validate_data(
    data: CollectedSprintData, assessor: Assessor | None = None
) -> ValidationResult:
    """Check collected sprint data before any report text is generated."""
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    info = data.sprint_info

    if not (info.name or "").strip():
        errors.append(ValidationIssue(
            DataValidationCodes.SPRINT_NAME_MISSING, "Sprint name is missing", "sprint.name",
        ))

    if not info.start_date or not info.end_date:
        warnings.append(ValidationIssue(
            DataValidationCodes.SPRINT_DATES_MISSING,
            "Sprint start or end date is missing",
            "sprint.dates",
            {"startDate": info.start_date, "endDate": info.end_date},
        ))

    goal = (info.goal or "").strip()
    if not goal:
        warnings.append(ValidationIssue(
            DataValidationCodes.SPRINT_GOAL_MISSING, "Sprint goal is not set", "sprint.goal",
        ))
    elif len(goal) < MIN_GOAL_LENGTH:
        warnings.append(ValidationIssue(
            DataValidationCodes.SPRINT_GOAL_TOO_SHORT,
            f"Sprint goal is shorter than {MIN_GOAL_LENGTH} characters",
            "sprint.goal",
            {"length": len(goal), "minLength": MIN_GOAL_LENGTH},
        ))

    for index, issue in enumerate(data.issues):
        errors.extend(_issue_field_errors(index, issue))

    if not any(i.is_done for i in data.issues):
        warnings.append(ValidationIssue(
            DataValidationCodes.NO_DONE_ISSUES, "No issues are done in this sprint", "issues",
        ))

    if sum(i.story_points or 0 for i in data.issues) == 0:
        warnings.append(ValidationIssue(
            DataValidationCodes.NO_STORY_POINTS, "No story points are estimated", "issues",
        ))

    alignment: GoalAlignment | None = None
    if goal and data.issues and assessor is not None:
        alignment = assessor.assess(info, data.issues)
        if alignment.level == "weak":
            warnings.append(ValidationIssue(
                DataValidationCodes.GOAL_ISSUE_MATCH_WEAK,
                "Sprint issues are weakly aligned with the sprint goal",
                "sprint.goal",
                {"level": alignment.level, "comment": alignment.comment},
            ))

    result = ValidationResult(
        errors=tuple(errors), warnings=tuple(warnings), goal_alignment=alignment,
    )
    _log_result("Data", result)
    return result


def _issue_field_errors(index: int, issue: SprintIssue) -> list[ValidationIssue]:
    errors = []
    label = issue.key or f"#{index}"
    for attr, code, name in (
        ("key", DataValidationCodes.ISSUE_KEY_MISSING, "key"),
        ("summary", DataValidationCodes.ISSUE_SUMMARY_MISSING, "summary"),
        ("status", DataValidationCodes.ISSUE_STATUS_MISSING, "status"),
        ("status_category", DataValidationCodes.ISSUE_STATUS_CATEGORY_MISSING, "statusCategory"),
    ):
        if not (getattr(issue, attr) or "").strip():
            errors.append(ValidationIssue(
                code,
                f"Issue {label} has no {name}",
                f"issues[{index}].{name}",
                {"index": index, "key": issue.key or None},
            ))
    return errors


# -- Stage 3 ------------------------------------------------------------------


def validate_report(
    report: ReportStructured,
    data: CollectedSprintData,
    checker: ReadinessChecker | None = None,
) -> ValidationResult:
    """Check an assembled report before it is handed to a publisher."""
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []

    for key in REPORT_SECTIONS:
        if report.section(key) is None:
            errors.append(ValidationIssue(
                ReportValidationCodes.SECTION_MISSING, f"Report section {key!r} is missing", key,
            ))

    overview = (report.overview or "").strip()
    if report.overview is not None and not overview:
        errors.append(ValidationIssue(
            ReportValidationCodes.SECTION_EMPTY, "Overview is empty", "overview",
        ))

    if overview and not is_text_in_language(overview, data.language):
        errors.append(ValidationIssue(
            ReportValidationCodes.WRONG_LANGUAGE,
            f"Overview is not written in the report language ({data.language})",
            "overview",
            {"expected": data.language},
        ))

    placeholder = _find_placeholder(report)
    if placeholder is not None:
        field_name, pattern = placeholder
        warnings.append(ValidationIssue(
            ReportValidationCodes.PLACEHOLDER_DETECTED,
            "Report text contains placeholder content",
            field_name,
            {"pattern": pattern},
        ))

    if report.sprint is not None and report.sprint.number != data.sprint_info.number:
        warnings.append(ValidationIssue(
            ReportValidationCodes.SPRINT_NUMBER_MISMATCH,
            "Sprint number in the report does not match the collected data",
            "sprint.number",
            {"expected": data.sprint_info.number, "actual": report.sprint.number},
        ))

    for name, block in (("sprint", report.sprint), ("version", report.version)):
        if block is not None and not 0 <= block.progress_percent <= 100:
            errors.append(ValidationIssue(
                ReportValidationCodes.PROGRESS_OUT_OF_RANGE,
                f"{name.capitalize()} progress must be between 0 and 100",
                f"{name}.progressPercent",
                {"value": block.progress_percent},
            ))

    known_keys = {i.key for i in data.issues}
    for index, item in enumerate(report.not_done or ()):
        # only the first key-shaped token of a title is checked
        match = _ISSUE_KEY_RE.search(item.title)
        if match and match.group() not in known_keys:
            warnings.append(ValidationIssue(
                ReportValidationCodes.INVALID_ISSUE_KEY_REFERENCE,
                f"Issue {match.group()} is not part of this sprint",
                f"notDone[{index}].title",
                {"key": match.group()},
            ))

    readiness: PartnerReadiness | None = None
    if checker is not None:
        readiness = checker.check(report, data)
        if readiness is not None and not readiness.is_partner_ready:
            warnings.append(ValidationIssue(
                ReportValidationCodes.NOT_PARTNER_READY,
                "Report is not ready for partners",
                None,
                {"comments": list(readiness.comments)},
            ))

    result = ValidationResult(
        errors=tuple(errors), warnings=tuple(warnings), partner_readiness=readiness,
    )
    _log_result("Report", result)
    return result


def _scanned_texts(report: ReportStructured) -> list[tuple[str, str]]:
    texts: list[tuple[str, str]] = []
    if report.overview:
        texts.append(("overview", report.overview))
    if report.sprint is not None:
        texts.append(("sprint.goal", report.sprint.goal))
    if report.version is not None:
        texts.append(("version.goal", report.version.goal))
    for i, a in enumerate(report.achievements or ()):
        texts.append((f"achievements[{i}]", f"{a.title} {a.description}"))
    for i, n in enumerate(report.not_done or ()):
        texts.append((f"notDone[{i}]", f"{n.title} {n.reason}"))
    return texts


def _find_placeholder(report: ReportStructured) -> tuple[str, str] | None:
    for field_name, text in _scanned_texts(report):
        for pattern in _PLACEHOLDER_PATTERNS:
            if pattern.search(text):
                return field_name, pattern.pattern
    return None


def _log_result(stage: str, result: ValidationResult) -> None:
    logger.info(
        "%s validation: valid=%s, %d error(s), %d warning(s)",
        stage, result.is_valid, len(result.errors), len(result.warnings),
    )
    for issue in result.errors:
        logger.debug("  error %s: %s", issue.code, issue.message)
    for issue in result.warnings:
        logger.debug("  warning %s: %s", issue.code, issue.message)
