"""Tests for sprint_report_generator.core.demo_selector."""

from __future__ import annotations

from sprint_report_generator.core.data_models import SprintIssue
from sprint_report_generator.core.demo_selector import demo_score, select_demo_issues


def _make_issue(
    key: str,
    category: str = "done",
    sp: float | None = None,
    assignee: str | None = None,
    artifact: str | None = None,
) -> SprintIssue:
    return SprintIssue(key, f"Issue {key}", "Done", category, sp, assignee, artifact)


class TestDemoScore:
    def test_empty_issue_scores_zero(self) -> None:
        assert demo_score(_make_issue("P-1")) == 0

    def test_artifact(self) -> None:
        assert demo_score(_make_issue("P-1", artifact="https://figma.com/x")) == 100

    def test_story_points_from_three(self) -> None:
        assert demo_score(_make_issue("P-1", sp=2)) == 0
        assert demo_score(_make_issue("P-1", sp=3)) == 30

    def test_assignee(self) -> None:
        assert demo_score(_make_issue("P-1", assignee="Ann")) == 5

    def test_combined(self) -> None:
        issue = _make_issue("P-1", sp=8, assignee="Ann", artifact="https://loom.com/x")
        assert demo_score(issue) == 185


class TestSelectDemoIssues:
    def test_only_done_issues(self) -> None:
        issues = [
            _make_issue("P-1", "in-progress", sp=13, artifact="x"),
            _make_issue("P-2", "done", sp=1),
        ]
        assert [i.key for i in select_demo_issues(issues)] == ["P-2"]

    def test_orders_by_score(self) -> None:
        issues = [
            _make_issue("P-1", sp=3),
            _make_issue("P-2", artifact="x"),
            _make_issue("P-3", sp=5, assignee="Ann"),
        ]
        assert [i.key for i in select_demo_issues(issues)] == ["P-2", "P-3", "P-1"]

    def test_ties_keep_input_order(self) -> None:
        issues = [_make_issue(f"P-{n}", sp=5) for n in range(4)]
        assert [i.key for i in select_demo_issues(issues)] == ["P-0", "P-1", "P-2"]

    def test_max_count(self) -> None:
        issues = [_make_issue(f"P-{n}") for n in range(5)]
        assert len(select_demo_issues(issues, max_count=2)) == 2

    def test_fewer_candidates_than_max(self) -> None:
        assert len(select_demo_issues([_make_issue("P-1")], max_count=3)) == 1

    def test_no_done_issues(self) -> None:
        assert select_demo_issues([_make_issue("P-1", "new")]) == []

    def test_zero_max_count(self) -> None:
        assert select_demo_issues([_make_issue("P-1")], max_count=0) == []
