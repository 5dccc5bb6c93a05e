"""Jira Cloud API client using the ``jira`` library."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from jira import JIRA, JIRAError

from sprint_report_generator.core.data_models import RawSprintData, SprintInfo, SprintIssue, VersionMeta
from sprint_report_generator.core.errors import SprintNotFoundError, TrackerError
from sprint_report_generator.core.metrics import progress_percent
from sprint_report_generator.core.normalizer import to_sprint_info, to_sprint_issue
from sprint_report_generator.services.auth_manager import JIRA_TOKEN, AuthManager
from sprint_report_generator.services.config_manager import ConfigManager

logger = logging.getLogger(__name__)

_MAX_RETRIES = 4
_BACKOFF_BASE = 1.0  # seconds
_FALLBACK_SP_FIELDS = ("customfield_10016", "customfield_10004")
_ISSUE_FIELDS = ("summary", "status", "assignee")


class JiraClient:
    """High-level wrapper around the ``jira`` library for sprint data."""

    def __init__(self, config: ConfigManager) -> None:
        self._config = config
        self._jira: JIRA | None = None
        self._cloud: bool | None = None

    # -- connection -----------------------------------------------------------

    def connect_basic(self, url: str, email: str, token: str) -> bool:
        """Connect to Jira using an API token.

        A lightweight ``myself()`` call validates the credentials.
        Returns True on success.
        """
        logger.debug("Connecting to Jira at %s (basic auth)", url)
        try:
            jira = JIRA(server=url, basic_auth=(email, token))
            jira.myself()
            self._jira = jira
            self._cloud = None
            logger.info("Connected to Jira via basic auth (%s)", url)
            return True
        except Exception as exc:
            logger.error("Failed to connect to Jira: %s", exc)
            self._jira = None
            return False

    def connect_from_config(self, auth: AuthManager) -> bool:
        """Connect with the URL and email from config and the token from *auth*."""
        token = auth.get_secret(JIRA_TOKEN)
        if not (auth.jira_url and auth.jira_email and token):
            logger.warning("Cannot connect: Jira URL, email or API token is missing")
            return False
        return self.connect_basic(auth.jira_url, auth.jira_email, token)

    @property
    def connected(self) -> bool:
        """Return True when the Jira session is active."""
        return self._jira is not None

    # -- sprint fetching ------------------------------------------------------

    def fetch_sprint_data(self, name_or_id: str) -> RawSprintData:
        """Fetch a sprint by numeric id or by name and all of its issues.

        Raises :class:`SprintNotFoundError` when nothing matches and
        :class:`TrackerError` on any other Jira failure.
        """
        jira = self._require()
        try:
            sprint = self._find_sprint(jira, name_or_id.strip())
            info = self._to_sprint_info(sprint)
            issues = self._fetch_sprint_issues(info.id)
        except JIRAError as exc:
            raise TrackerError(f"Jira request failed: {exc}") from exc

        project_key = issues[0].key.split("-", 1)[0] if issues else None
        logger.info(
            "Fetched sprint %s (id=%d): %d issue(s), project=%s",
            info.name, info.id, len(issues), project_key,
        )
        return RawSprintData(sprint_info=info, issues=tuple(issues), project_key=project_key)

    def fetch_project_version(self, project_key: str) -> VersionMeta | None:
        """Return the active release of *project_key*, or ``None`` if it has none.

        The active release is the unreleased, non-archived version with the
        earliest release date; versions without a date come last.
        """
        jira = self._require()
        logger.debug("Looking up active version for %s", project_key)
        try:
            versions = jira.project_versions(project_key)
        except JIRAError as exc:
            raise TrackerError(f"Failed to list versions of {project_key}: {exc}") from exc

        candidates = [
            v for v in versions
            if not getattr(v, "released", False) and not getattr(v, "archived", False)
        ]
        if not candidates:
            logger.info("Project %s has no unreleased versions", project_key)
            return None
        candidates.sort(key=lambda v: (getattr(v, "releaseDate", None) is None,
                                       getattr(v, "releaseDate", None) or ""))
        version = candidates[0]

        try:
            total = self._count(f'fixVersion = {version.id}')
            done = self._count(f'fixVersion = {version.id} AND statusCategory = Done')
        except JIRAError as exc:
            logger.warning("Could not compute progress for version %s: %s", version.name, exc)
            total = done = 0

        meta = VersionMeta(
            id=str(version.id),
            name=str(version.name),
            description=getattr(version, "description", None) or None,
            release_date=getattr(version, "releaseDate", None) or None,
            released=bool(getattr(version, "released", False)),
            progress_percent=progress_percent(done, total) if total else None,
        )
        logger.info("Active version for %s: %s (%s%%)", project_key, meta.name, meta.progress_percent)
        return meta

    # -- internals ------------------------------------------------------------

    def _require(self) -> JIRA:
        if self._jira is None:
            raise TrackerError("Not connected to Jira")
        return self._jira

    def _find_sprint(self, jira: JIRA, name_or_id: str) -> Any:
        if name_or_id.isdigit():
            logger.debug("Fetching sprint by id %s", name_or_id)
            try:
                return jira.sprint(int(name_or_id))
            except JIRAError as exc:
                if exc.status_code == 404:
                    raise SprintNotFoundError(f"Sprint {name_or_id} not found") from exc
                raise

        board_id = self._config.board_id
        if not board_id:
            raise TrackerError("Finding a sprint by name requires jira_board_id")
        logger.debug("Searching board %d for sprint %r", board_id, name_or_id)
        wanted = name_or_id.lower()
        for sprint in jira.sprints(board_id, maxResults=False):
            if str(getattr(sprint, "name", "")).strip().lower() == wanted:
                return sprint
        raise SprintNotFoundError(f"Sprint {name_or_id!r} not found on board {board_id}")

    @staticmethod
    def _to_sprint_info(sprint: Any) -> SprintInfo:
        return to_sprint_info({
            "id": sprint.id,
            "name": getattr(sprint, "name", ""),
            "start_date": getattr(sprint, "startDate", None),
            "end_date": getattr(sprint, "endDate", None),
            "goal": getattr(sprint, "goal", None),
        })

    def _fetch_sprint_issues(self, sprint_id: int) -> list[SprintIssue]:
        jql = f"sprint = {sprint_id} ORDER BY rank ASC"
        sp_field = self._config.get("jira_story_points_field") or ""
        artifact_field = self._config.get("jira_artifact_field") or ""
        wanted = [*_ISSUE_FIELDS, sp_field, *_FALLBACK_SP_FIELDS, artifact_field]
        fields_param = list(dict.fromkeys(f for f in wanted if f))

        # maxResults=False makes the library fetch every page itself
        # (token paging on Cloud, startAt paging on Server)
        results = self._with_retry(
            self._require().search_issues, jql, maxResults=False, fields=fields_param,
        )
        issues: list[SprintIssue] = []
        for raw in results:
            fields: Any = raw.fields
            status = getattr(fields, "status", None)
            issues.append(to_sprint_issue({
                "key": raw.key,
                "summary": getattr(fields, "summary", ""),
                "status": str(status) if status is not None else "",
                "status_category": self._status_category(fields),
                "story_points": self._story_points(fields, sp_field),
                "assignee": self._name(getattr(fields, "assignee", None)),
                "artifact": self._artifact(fields, artifact_field),
            }))
        return issues

    def _count(self, jql: str) -> int:
        """Number of issues matching *jql* without downloading them."""
        jira = self._require()
        if self._is_cloud():
            return int(self._with_retry(jira.approximate_issue_count, jql))
        results = self._with_retry(jira.search_issues, jql, maxResults=1, fields="key")
        total = getattr(results, "total", None)
        return int(total) if total is not None else len(results)

    def _is_cloud(self) -> bool:
        if self._cloud is None:
            try:
                info = self._require().server_info()
            except JIRAError as exc:
                logger.debug("server_info failed, assuming Jira Server: %s", exc)
                info = {}
            self._cloud = isinstance(info, dict) and info.get("deploymentType") == "Cloud"
        return self._cloud

    def _with_retry(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Call a Jira API method with exponential backoff on 429."""
        for attempt in range(_MAX_RETRIES):
            try:
                return func(*args, **kwargs)
            except JIRAError as exc:
                if exc.status_code == 429 and attempt < _MAX_RETRIES - 1:
                    delay = _BACKOFF_BASE * (2**attempt)
                    logger.warning("Rate limited, retrying in %.1fs", delay)
                    time.sleep(delay)
                    continue
                raise

        raise AssertionError("unreachable")

    @staticmethod
    def _status_category(fields: Any) -> str:
        status = getattr(fields, "status", None)
        cat = getattr(status, "statusCategory", None) if status is not None else None
        if cat is None:
            return ""
        return str(getattr(cat, "key", None) or getattr(cat, "name", None) or "")

    @staticmethod
    def _story_points(fields: Any, sp_field: str) -> float | None:
        for name in (sp_field, *_FALLBACK_SP_FIELDS):
            if not name:
                continue
            value = getattr(fields, name, None)
            if value is not None:
                try:
                    return float(value)
                except (TypeError, ValueError):
                    return None
        return None

    @staticmethod
    def _artifact(fields: Any, artifact_field: str) -> str | None:
        if not artifact_field:
            return None
        value = getattr(fields, artifact_field, None)
        if value is None:
            return None
        text = str(getattr(value, "value", value)).strip()
        return text or None

    @staticmethod
    def _name(obj: Any) -> str | None:
        if obj is None:
            return None
        if isinstance(obj, str):
            return obj
        return getattr(obj, "displayName", None) or str(obj)
