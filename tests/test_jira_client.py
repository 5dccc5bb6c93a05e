"""Tests for sprint_report_generator.core.jira_client."""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from jira import JIRAError

from sprint_report_generator.core.errors import SprintNotFoundError, TrackerError
from sprint_report_generator.core.jira_client import JiraClient
from sprint_report_generator.services.auth_manager import SECRETS, AuthManager
from sprint_report_generator.services.config_manager import _ENV_OVERRIDES, ConfigManager


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (*_ENV_OVERRIDES, *SECRETS.values()):
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _make_config(tmp_path: Path, **overrides: object) -> ConfigManager:
    mgr = ConfigManager()
    mgr._dir = tmp_path
    mgr._path = tmp_path / "config.json"
    mgr.reset()
    if overrides:
        mgr.update(overrides)
    return mgr


def _make_client(tmp_path: Path, **overrides: object) -> JiraClient:
    client = JiraClient(_make_config(tmp_path, **overrides))
    client._jira = MagicMock()
    return client


class _Status(SimpleNamespace):
    def __str__(self) -> str:
        return self.name


def _make_raw_issue(
    key: str = "PROJ-1",
    summary: str = "Fix bug",
    status: str = "Open",
    cat_key: str = "new",
    sp: float | None = 5.0,
    assignee: str | None = "Alice",
    **extra: object,
) -> SimpleNamespace:
    """Build a mock Jira raw issue matching the attrs used by JiraClient."""
    fields = SimpleNamespace(
        summary=summary,
        status=_Status(name=status, statusCategory=SimpleNamespace(key=cat_key, name=cat_key)),
        assignee=SimpleNamespace(displayName=assignee) if assignee else None,
        customfield_10016=sp,
        **extra,
    )
    return SimpleNamespace(key=key, fields=fields)


def _make_sprint(
    sprint_id: int = 7,
    name: str = "Sprint 4",
    goal: str | None = "Ship the onboarding flow to pilot partners",
) -> SimpleNamespace:
    return SimpleNamespace(
        id=sprint_id,
        name=name,
        goal=goal,
        startDate="2025-11-17T09:00:00.000Z",
        endDate="2025-11-28T18:00:00.000Z",
    )


class _Results(list):
    """Stand-in for jira.client.ResultList, which carries a ``total``."""

    def __init__(self, items: list, total: int) -> None:
        super().__init__(items)
        self.total = total


# ---------------------------------------------------------------------------
# connection
# ---------------------------------------------------------------------------


class TestConnected:
    def test_not_connected_initially(self, tmp_path: Path) -> None:
        client = JiraClient(_make_config(tmp_path))
        assert client.connected is False

    def test_connected_after_jira_set(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        assert client.connected is True

    def test_fetch_requires_connection(self, tmp_path: Path) -> None:
        client = JiraClient(_make_config(tmp_path))
        with pytest.raises(TrackerError):
            client.fetch_sprint_data("7")


class TestConnect:
    @patch("sprint_report_generator.services.auth_manager.keyring")
    def test_connect_fails_without_token(
        self, mock_keyring: MagicMock, tmp_path: Path,
    ) -> None:
        mock_keyring.get_password.return_value = None
        cfg = _make_config(tmp_path, jira_url="https://x.atlassian.net", jira_email="a@b.com")
        client = JiraClient(cfg)
        assert client.connect_from_config(AuthManager(cfg)) is False

    @patch("sprint_report_generator.core.jira_client.JIRA")
    def test_connect_basic_validates_with_myself(
        self, mock_jira_cls: MagicMock, tmp_path: Path,
    ) -> None:
        client = JiraClient(_make_config(tmp_path))
        assert client.connect_basic("https://x.atlassian.net", "a@b.com", "tok") is True
        mock_jira_cls.assert_called_once_with(
            server="https://x.atlassian.net", basic_auth=("a@b.com", "tok"),
        )
        mock_jira_cls.return_value.myself.assert_called_once()
        assert client.connected is True

    @patch("sprint_report_generator.core.jira_client.JIRA")
    def test_connect_basic_failure(self, mock_jira_cls: MagicMock, tmp_path: Path) -> None:
        mock_jira_cls.return_value.myself.side_effect = JIRAError(status_code=401, text="nope")
        client = JiraClient(_make_config(tmp_path))
        assert client.connect_basic("https://x.atlassian.net", "a@b.com", "bad") is False
        assert client.connected is False


# ---------------------------------------------------------------------------
# static helpers
# ---------------------------------------------------------------------------


class TestStaticHelpers:
    """Test the static helper methods on JiraClient."""

    def test_name_returns_none_for_none(self) -> None:
        assert JiraClient._name(None) is None

    def test_name_returns_string_as_is(self) -> None:
        assert JiraClient._name("Alice") == "Alice"

    def test_name_extracts_displayName(self) -> None:
        assert JiraClient._name(SimpleNamespace(displayName="Bob")) == "Bob"

    def test_status_category_none_fields(self) -> None:
        assert JiraClient._status_category(SimpleNamespace()) == ""

    def test_status_category_prefers_key(self) -> None:
        fields = SimpleNamespace(
            status=SimpleNamespace(
                statusCategory=SimpleNamespace(key="indeterminate", name="In Progress"),
            ),
        )
        assert JiraClient._status_category(fields) == "indeterminate"

    def test_story_points_configured_field(self) -> None:
        fields = SimpleNamespace(customfield_20000=8, customfield_10016=3)
        assert JiraClient._story_points(fields, "customfield_20000") == 8.0

    def test_story_points_fallback_field(self) -> None:
        fields = SimpleNamespace(customfield_10004=2)
        assert JiraClient._story_points(fields, "customfield_99999") == 2.0

    def test_story_points_missing(self) -> None:
        assert JiraClient._story_points(SimpleNamespace(), "customfield_10016") is None

    def test_story_points_not_numeric(self) -> None:
        fields = SimpleNamespace(customfield_10016="lots")
        assert JiraClient._story_points(fields, "customfield_10016") is None

    def test_artifact_disabled_without_field(self) -> None:
        assert JiraClient._artifact(SimpleNamespace(customfield_1="x"), "") is None

    def test_artifact_option_value(self) -> None:
        fields = SimpleNamespace(customfield_1=SimpleNamespace(value=" https://figma.com/x "))
        assert JiraClient._artifact(fields, "customfield_1") == "https://figma.com/x"


# ---------------------------------------------------------------------------
# fetch_sprint_data
# ---------------------------------------------------------------------------


class TestFetchSprintData:
    def test_by_id(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.sprint.return_value = _make_sprint()
        client._jira.search_issues.return_value = [
            _make_raw_issue("PROJ-1", status="Done", cat_key="done", sp=3),
            _make_raw_issue("PROJ-2", status="In Progress", cat_key="indeterminate", sp=None,
                            assignee=None),
        ]

        raw = client.fetch_sprint_data("7")

        client._jira.sprint.assert_called_once_with(7)
        assert raw.sprint_info.id == 7
        assert raw.sprint_info.name == "Sprint 4"
        assert raw.sprint_info.number == "4"
        assert raw.sprint_info.start_date == "2025-11-17T09:00:00.000Z"
        assert raw.project_key == "PROJ"
        assert [i.key for i in raw.issues] == ["PROJ-1", "PROJ-2"]
        first, second = raw.issues
        assert first.status == "Done"
        assert first.status_category == "done"
        assert first.story_points == 3.0
        assert first.assignee == "Alice"
        assert second.status_category == "in-progress"
        assert second.story_points is None
        assert second.assignee is None

    def test_jql_orders_by_rank(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.sprint.return_value = _make_sprint(sprint_id=12)
        client._jira.search_issues.return_value = []
        client.fetch_sprint_data("12")
        jql = client._jira.search_issues.call_args.args[0]
        assert jql == "sprint = 12 ORDER BY rank ASC"

    def test_empty_sprint_has_no_project(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.sprint.return_value = _make_sprint(goal="")
        client._jira.search_issues.return_value = []
        raw = client.fetch_sprint_data("7")
        assert raw.issues == ()
        assert raw.project_key is None
        assert raw.sprint_info.goal is None

    def test_library_pages_through_all_issues(self, tmp_path: Path) -> None:
        """A single search with maxResults=False; the library walks the pages."""
        client = _make_client(tmp_path)
        client._jira.sprint.return_value = _make_sprint()
        client._jira.search_issues.return_value = [
            _make_raw_issue(f"PROJ-{n}") for n in range(1, 151)
        ]

        raw = client.fetch_sprint_data("7")

        assert len(raw.issues) == 150
        assert raw.issues[-1].key == "PROJ-150"
        client._jira.search_issues.assert_called_once()
        kwargs = client._jira.search_issues.call_args.kwargs
        assert kwargs["maxResults"] is False
        assert "startAt" not in kwargs

    def test_requests_only_used_fields(self, tmp_path: Path) -> None:
        client = _make_client(
            tmp_path, jira_story_points_field="customfield_10028",
            jira_artifact_field="customfield_30000",
        )
        client._jira.sprint.return_value = _make_sprint()
        client._jira.search_issues.return_value = []
        client.fetch_sprint_data("7")
        assert client._jira.search_issues.call_args.kwargs["fields"] == [
            "summary", "status", "assignee", "customfield_10028",
            "customfield_10016", "customfield_10004", "customfield_30000",
        ]

    def test_artifact_field_from_config(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path, jira_artifact_field="customfield_30000")
        client._jira.sprint.return_value = _make_sprint()
        client._jira.search_issues.return_value = [
            _make_raw_issue("PROJ-1", customfield_30000="https://loom.com/demo"),
        ]
        raw = client.fetch_sprint_data("7")
        assert raw.issues[0].artifact == "https://loom.com/demo"

    def test_missing_id_raises_not_found(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.sprint.side_effect = JIRAError(status_code=404, text="Not found")
        with pytest.raises(SprintNotFoundError):
            client.fetch_sprint_data("999")

    def test_other_jira_errors_wrapped(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.sprint.side_effect = JIRAError(status_code=500, text="boom")
        with pytest.raises(TrackerError) as exc_info:
            client.fetch_sprint_data("7")
        assert not isinstance(exc_info.value, SprintNotFoundError)

    def test_by_name_searches_board(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path, jira_board_id=3)
        client._jira.sprints.return_value = [
            _make_sprint(1, "Sprint 3"),
            _make_sprint(2, "Sprint 4"),
        ]
        client._jira.search_issues.return_value = []

        raw = client.fetch_sprint_data("sprint 4")

        client._jira.sprints.assert_called_once_with(3, maxResults=False)
        assert raw.sprint_info.id == 2

    def test_by_name_requires_board(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        with pytest.raises(TrackerError):
            client.fetch_sprint_data("Sprint 4")

    def test_by_name_not_found(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path, jira_board_id=3)
        client._jira.sprints.return_value = [_make_sprint(1, "Sprint 3")]
        with pytest.raises(SprintNotFoundError):
            client.fetch_sprint_data("Sprint 9")


# ---------------------------------------------------------------------------
# fetch_project_version
# ---------------------------------------------------------------------------


class TestFetchProjectVersion:
    def test_picks_earliest_unreleased(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.project_versions.return_value = [
            SimpleNamespace(id=1, name="0.9", released=True, archived=False,
                            releaseDate="2025-01-01"),
            SimpleNamespace(id=2, name="2.0", released=False, archived=False, releaseDate=None),
            SimpleNamespace(id=3, name="1.0", released=False, archived=False,
                            releaseDate="2026-03-29", description="MVP"),
        ]
        client._jira.search_issues.side_effect = [_Results([], 8), _Results([], 6)]

        meta = client.fetch_project_version("PROJ")

        assert meta is not None
        assert meta.id == "3"
        assert meta.name == "1.0"
        assert meta.description == "MVP"
        assert meta.release_date == "2026-03-29"
        assert meta.progress_percent == 75
        jqls = [c.args[0] for c in client._jira.search_issues.call_args_list]
        assert jqls == ["fixVersion = 3", "fixVersion = 3 AND statusCategory = Done"]
        for call in client._jira.search_issues.call_args_list:
            assert call.kwargs == {"maxResults": 1, "fields": "key"}

    def test_cloud_counts_without_search(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.server_info.return_value = {"deploymentType": "Cloud"}
        client._jira.project_versions.return_value = [
            SimpleNamespace(id=3, name="1.0", released=False, archived=False,
                            releaseDate="2026-03-29"),
        ]
        client._jira.approximate_issue_count.side_effect = [8, 6]

        meta = client.fetch_project_version("PROJ")

        assert meta is not None
        assert meta.progress_percent == 75
        client._jira.search_issues.assert_not_called()
        jqls = [c.args[0] for c in client._jira.approximate_issue_count.call_args_list]
        assert jqls == ["fixVersion = 3", "fixVersion = 3 AND statusCategory = Done"]

    def test_count_failure_is_not_fatal(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.project_versions.return_value = [
            SimpleNamespace(id=5, name="1.1", released=False, archived=False),
        ]
        client._jira.search_issues.side_effect = JIRAError(status_code=400, text="bad jql")
        meta = client.fetch_project_version("PROJ")
        assert meta is not None
        assert meta.progress_percent is None

    def test_no_unreleased_versions(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.project_versions.return_value = [
            SimpleNamespace(id=1, name="0.9", released=True, archived=False),
            SimpleNamespace(id=2, name="0.1", released=False, archived=True),
        ]
        assert client.fetch_project_version("PROJ") is None

    def test_empty_version_has_no_progress(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.project_versions.return_value = [
            SimpleNamespace(id=5, name="1.1", released=False, archived=False),
        ]
        client._jira.search_issues.side_effect = [_Results([], 0), _Results([], 0)]
        meta = client.fetch_project_version("PROJ")
        assert meta is not None
        assert meta.progress_percent is None

    def test_listing_failure_raises(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.project_versions.side_effect = JIRAError(status_code=403, text="denied")
        with pytest.raises(TrackerError):
            client.fetch_project_version("PROJ")


# ---------------------------------------------------------------------------
# retry logic
# ---------------------------------------------------------------------------


class TestRetryLogic:
    def test_retries_on_429(self, tmp_path: Path) -> None:
        """_with_retry should retry after a 429 status."""
        client = _make_client(tmp_path)

        exc = JIRAError(status_code=429, text="Rate limited")
        client._jira.search_issues.side_effect = [exc, [_make_raw_issue()]]

        with patch("sprint_report_generator.core.jira_client.time.sleep") as mock_sleep:
            results = client._with_retry(client._jira.search_issues, "sprint = 1")

        assert len(results) == 1
        assert client._jira.search_issues.call_count == 2
        mock_sleep.assert_called_once_with(1.0)

    def test_gives_up_after_max_retries(self, tmp_path: Path) -> None:
        client = _make_client(tmp_path)
        client._jira.search_issues.side_effect = JIRAError(status_code=429, text="Rate limited")

        with patch("sprint_report_generator.core.jira_client.time.sleep"):
            with pytest.raises(JIRAError):
                client._with_retry(client._jira.search_issues, "sprint = 1")
        assert client._jira.search_issues.call_count == 4

    def test_raises_non_429_errors(self, tmp_path: Path) -> None:
        """Non-429 JIRAErrors should propagate immediately."""
        client = _make_client(tmp_path)
        client._jira.search_issues.side_effect = JIRAError(status_code=404, text="Not found")

        with pytest.raises(JIRAError):
            client._with_retry(client._jira.search_issues, "sprint = 1")
        assert client._jira.search_issues.call_count == 1
