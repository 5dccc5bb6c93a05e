"""Tests for sprint_report_generator.core.validation."""

from __future__ import annotations

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from sprint_report_generator.core.data_models import (
    AchievementItem,
    ArtifactItem,
    CollectedSprintData,
    GoalAlignment,
    NextSprintPlan,
    NotDoneItem,
    PartnerReadiness,
    ReportStructured,
    SprintBlock,
    SprintInfo,
    SprintIssue,
    VersionBlock,
)
from sprint_report_generator.core.metrics import compute_stats
from sprint_report_generator.core.validation import (
    DataValidationCodes as D,
    ReportValidationCodes as R,
    validate_data,
    validate_report,
)

_GOAL = "Deliver the onboarding flow to pilot partners"


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _make_issue(
    key: str = "PROJ-1",
    category: str = "done",
    sp: float | None = 5.0,
    summary: str = "Onboarding wizard",
    status: str = "Done",
) -> SprintIssue:
    return SprintIssue(key, summary, status, category, sp)


def _make_data(
    issues: tuple[SprintIssue, ...] | None = None,
    *,
    name: str = "Sprint 4",
    number: str = "4",
    goal: str | None = _GOAL,
    start: str | None = "November 17, 2025",
    end: str | None = "November 28, 2025",
    language: str = "en",
) -> CollectedSprintData:
    if issues is None:
        issues = (_make_issue("PROJ-1"), _make_issue("PROJ-2", "in-progress", 3, "Payments"))
    return CollectedSprintData(
        sprint_info=SprintInfo(
            id=1, name=name, number=number, start_date=start, end_date=end, goal=goal,
        ),
        issues=issues,
        demo_issues=(),
        stats=compute_stats(issues),
        language=language,
    )


def _make_report(**overrides: object) -> ReportStructured:
    report = ReportStructured(
        version=VersionBlock("1.0", "March 29, 2026", "Launch the MVP", 40),
        sprint=SprintBlock("4", "November 17, 2025", "November 28, 2025", _GOAL, 63),
        overview="The team delivered the onboarding flow and started payments.",
        not_done=(NotDoneItem("Payments", "Waiting for the provider", "Sandbox access", "Sprint 5"),),
        achievements=(AchievementItem("Onboarding", "Partners can sign up on their own."),),
        artifacts=(ArtifactItem("Onboarding demo", "Walkthrough video"),),
        next_sprint=NextSprintPlan("5", "Finish payments"),
        blockers=(),
        pm_questions=(),
    )
    return replace(report, **overrides)


def _assessor(level: str, comment: str = "comment") -> MagicMock:
    assessor = MagicMock()
    assessor.assess.return_value = GoalAlignment(level, comment)
    return assessor


def _checker(result: PartnerReadiness | None) -> MagicMock:
    checker = MagicMock()
    checker.check.return_value = result
    return checker


# ---------------------------------------------------------------------------
# Stage 1: collected data
# ---------------------------------------------------------------------------


class TestValidateData:
    def test_clean_data(self) -> None:
        result = validate_data(_make_data())
        assert result.is_valid is True
        assert result.codes() == []
        assert result.goal_alignment is None

    def test_missing_name_is_an_error(self) -> None:
        result = validate_data(_make_data(name="  "))
        assert result.is_valid is False
        assert result.errors[0].code == D.SPRINT_NAME_MISSING
        assert result.errors[0].field == "sprint.name"

    @pytest.mark.parametrize(("start", "end"), [(None, "x"), ("x", None), (None, None)])
    def test_missing_dates_warn(self, start: str | None, end: str | None) -> None:
        result = validate_data(_make_data(start=start, end=end))
        assert result.is_valid is True
        assert D.SPRINT_DATES_MISSING in result.codes()

    def test_short_goal(self) -> None:
        result = validate_data(_make_data(goal="Ship it"))
        warning = next(w for w in result.warnings if w.code == D.SPRINT_GOAL_TOO_SHORT)
        assert warning.details == {"length": 7, "minLength": 20}

    def test_goal_of_exactly_min_length_is_fine(self) -> None:
        result = validate_data(_make_data(goal="x" * 20))
        assert D.SPRINT_GOAL_TOO_SHORT not in result.codes()

    def test_empty_sprint_without_goal(self) -> None:
        result = validate_data(_make_data(issues=(), goal=None))
        assert result.is_valid is True
        assert result.errors == ()
        assert result.codes() == [D.SPRINT_GOAL_MISSING, D.NO_DONE_ISSUES, D.NO_STORY_POINTS]

    def test_issue_field_errors(self) -> None:
        issues = (
            _make_issue("PROJ-1"),
            SprintIssue("", "", "", "", 1.0),
        )
        result = validate_data(_make_data(issues))
        assert result.is_valid is False
        assert [e.code for e in result.errors] == [
            D.ISSUE_KEY_MISSING,
            D.ISSUE_SUMMARY_MISSING,
            D.ISSUE_STATUS_MISSING,
            D.ISSUE_STATUS_CATEGORY_MISSING,
        ]
        assert result.errors[0].field == "issues[1].key"
        assert result.errors[0].details == {"index": 1, "key": None}

    def test_no_done_issues(self) -> None:
        result = validate_data(_make_data((_make_issue("PROJ-1", "in-progress"),)))
        assert result.is_valid is True
        assert D.NO_DONE_ISSUES in result.codes()

    def test_no_story_points(self) -> None:
        issues = (_make_issue("PROJ-1", sp=None), _make_issue("PROJ-2", sp=0))
        result = validate_data(_make_data(issues))
        assert D.NO_STORY_POINTS in result.codes()

    def test_weak_alignment_warns(self) -> None:
        result = validate_data(_make_data(), _assessor("weak", "Tasks do not match"))
        assert result.is_valid is True
        warning = result.warnings[-1]
        assert warning.code == D.GOAL_ISSUE_MATCH_WEAK
        assert warning.details == {"level": "weak", "comment": "Tasks do not match"}
        assert result.goal_alignment == GoalAlignment("weak", "Tasks do not match")

    @pytest.mark.parametrize("level", ["strong", "medium", "unknown"])
    def test_other_levels_do_not_warn(self, level: str) -> None:
        result = validate_data(_make_data(), _assessor(level))
        assert D.GOAL_ISSUE_MATCH_WEAK not in result.codes()
        assert result.goal_alignment is not None
        assert result.goal_alignment.level == level

    def test_assessor_skipped_without_goal(self) -> None:
        assessor = _assessor("weak")
        result = validate_data(_make_data(goal=None), assessor)
        assessor.assess.assert_not_called()
        assert result.goal_alignment is None

    def test_assessor_skipped_without_issues(self) -> None:
        assessor = _assessor("weak")
        validate_data(_make_data(issues=()), assessor)
        assessor.assess.assert_not_called()

    def test_rule_order(self) -> None:
        data = _make_data(
            issues=(SprintIssue("PROJ-1", "x", "Open", "new", None),),
            name="", goal="short", start=None,
        )
        result = validate_data(data, _assessor("weak"))
        assert result.codes() == [
            D.SPRINT_NAME_MISSING,
            D.SPRINT_DATES_MISSING,
            D.SPRINT_GOAL_TOO_SHORT,
            D.NO_DONE_ISSUES,
            D.NO_STORY_POINTS,
            D.GOAL_ISSUE_MATCH_WEAK,
        ]

    def test_deterministic(self) -> None:
        data = _make_data(goal="short", start=None)
        assert validate_data(data) == validate_data(data)

    def test_input_not_modified(self) -> None:
        data = _make_data(goal="short")
        before = replace(data)
        validate_data(data, _assessor("weak"))
        assert data == before


# ---------------------------------------------------------------------------
# Stage 3: generated report
# ---------------------------------------------------------------------------


class TestValidateReport:
    def test_clean_report(self) -> None:
        result = validate_report(_make_report(), _make_data())
        assert result.is_valid is True
        assert result.codes() == []
        assert result.partner_readiness is None

    def test_missing_sections_in_order(self) -> None:
        report = _make_report(version=None, overview=None, pm_questions=None)
        result = validate_report(report, _make_data())
        missing = [e for e in result.errors if e.code == R.SECTION_MISSING]
        assert [e.field for e in missing] == ["version", "overview", "pmQuestions"]

    def test_empty_overview(self) -> None:
        result = validate_report(_make_report(overview="   "), _make_data())
        assert result.codes() == [R.SECTION_EMPTY]

    def test_wrong_language(self) -> None:
        report = _make_report(overview="Команда завершила онбординг.")
        result = validate_report(report, _make_data())
        assert result.is_valid is False
        assert R.WRONG_LANGUAGE in result.codes()

    def test_russian_report(self) -> None:
        report = _make_report(overview="Команда завершила онбординг.")
        result = validate_report(report, _make_data(language="ru"))
        assert R.WRONG_LANGUAGE not in result.codes()

    def test_empty_list_sections_are_present(self) -> None:
        report = _make_report(not_done=(), achievements=(), artifacts=())
        assert validate_report(report, _make_data()).is_valid is True

    @pytest.mark.parametrize("text", [
        "Work in progress, TODO: add details",
        "Lorem ipsum dolor sit amet",
        "This is a placeholder overview",
        "Results: [insert numbers here]",
    ])
    def test_placeholder_in_overview(self, text: str) -> None:
        result = validate_report(_make_report(overview=text), _make_data())
        assert result.is_valid is True
        assert result.warnings[0].code == R.PLACEHOLDER_DETECTED
        assert result.warnings[0].field == "overview"

    def test_placeholder_reported_once(self) -> None:
        report = _make_report(
            overview="TODO",
            achievements=(AchievementItem("Lorem ipsum", "placeholder"),),
        )
        result = validate_report(report, _make_data())
        assert result.codes().count(R.PLACEHOLDER_DETECTED) == 1

    def test_placeholder_in_not_done_reason(self) -> None:
        report = _make_report(
            not_done=(NotDoneItem("Payments", "todo later", "x", "Sprint 5"),),
        )
        result = validate_report(report, _make_data())
        assert result.warnings[0].field == "notDone[0]"

    def test_sprint_number_mismatch(self) -> None:
        report = _make_report(sprint=SprintBlock("5", "a", "b", _GOAL, 63))
        result = validate_report(report, _make_data())
        assert result.is_valid is True
        warning = result.warnings[0]
        assert warning.code == R.SPRINT_NUMBER_MISMATCH
        assert warning.details == {"expected": "4", "actual": "5"}

    def test_sprint_progress_out_of_range(self) -> None:
        report = _make_report(sprint=SprintBlock("4", "a", "b", _GOAL, 150))
        result = validate_report(report, _make_data())
        assert result.is_valid is False
        assert [e.field for e in result.errors] == ["sprint.progressPercent"]
        assert result.errors[0].code == R.PROGRESS_OUT_OF_RANGE

    def test_version_progress_out_of_range(self) -> None:
        report = _make_report(version=VersionBlock("1.0", "d", "g", -1))
        result = validate_report(report, _make_data())
        assert [e.field for e in result.errors] == ["version.progressPercent"]

    @pytest.mark.parametrize("progress", [0, 100, 99.5])
    def test_progress_bounds_inclusive(self, progress: float) -> None:
        report = _make_report(sprint=SprintBlock("4", "a", "b", _GOAL, progress))
        assert validate_report(report, _make_data()).is_valid is True

    def test_unknown_issue_key(self) -> None:
        report = _make_report(
            not_done=(NotDoneItem("PROJ-99 blocks PROJ-2", "r", "q", "d"),),
        )
        result = validate_report(report, _make_data())
        warnings = [w for w in result.warnings if w.code == R.INVALID_ISSUE_KEY_REFERENCE]
        assert [w.details for w in warnings] == [{"key": "PROJ-99"}]
        assert warnings[0].field == "notDone[0].title"

    def test_only_first_issue_key_checked(self) -> None:
        report = _make_report(
            not_done=(NotDoneItem("PROJ-2 and PROJ-99 payments", "r", "q", "d"),),
        )
        result = validate_report(report, _make_data())
        assert not [w for w in result.warnings if w.code == R.INVALID_ISSUE_KEY_REFERENCE]

    def test_not_partner_ready(self) -> None:
        checker = _checker(PartnerReadiness(False, ("Too technical",)))
        result = validate_report(_make_report(), _make_data(), checker)
        assert result.is_valid is True
        assert result.warnings[-1].code == R.NOT_PARTNER_READY
        assert result.warnings[-1].details == {"comments": ["Too technical"]}
        assert result.partner_readiness == PartnerReadiness(False, ("Too technical",))

    def test_partner_ready(self) -> None:
        result = validate_report(_make_report(), _make_data(), _checker(PartnerReadiness(True)))
        assert result.codes() == []
        assert result.partner_readiness == PartnerReadiness(True)

    def test_checker_unavailable(self) -> None:
        result = validate_report(_make_report(), _make_data(), _checker(None))
        assert result.codes() == []
        assert result.partner_readiness is None

    def test_deterministic(self) -> None:
        report = _make_report(overview="TODO", sprint=SprintBlock("9", "a", "b", "g", 120))
        data = _make_data()
        assert validate_report(report, data) == validate_report(report, data)
