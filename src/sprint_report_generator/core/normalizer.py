"""Turn tracker output into the canonical sprint bundle used by every later stage."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Protocol

from sprint_report_generator.core.data_models import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_NEW,
    CollectedSprintData,
    RawSprintData,
    SprintInfo,
    SprintIssue,
    VersionMeta,
    WorkflowParams,
)
from sprint_report_generator.core.demo_selector import DEFAULT_DEMO_COUNT, select_demo_issues
from sprint_report_generator.core.i18n import format_date
from sprint_report_generator.core.metrics import compute_stats

logger = logging.getLogger(__name__)

_CATEGORY_MAP = {
    "new": STATUS_NEW,
    "to do": STATUS_NEW,
    "indeterminate": STATUS_IN_PROGRESS,
    "in progress": STATUS_IN_PROGRESS,
    "in-progress": STATUS_IN_PROGRESS,
    "done": STATUS_DONE,
}
_NUMBER_RE = re.compile(r"\d+")


class Tracker(Protocol):
    def fetch_sprint_data(self, name_or_id: str) -> RawSprintData: ...

    def fetch_project_version(self, project_key: str) -> VersionMeta | None: ...


class GoalWriter(Protocol):
    def write(self, sprint_name: str, issues: Any, language: str) -> str | None: ...


def normalize_status_category(value: Any) -> str:
    """Map a tracker status-category key or name to new, in-progress or done."""
    if value is None:
        return ""
    text = str(value).strip().lower()
    if not text:
        return ""
    return _CATEGORY_MAP.get(text, text)


def sprint_number(name: str, default: str = "1") -> str:
    """Return the first run of digits in a sprint name."""
    match = _NUMBER_RE.search(name or "")
    return match.group(0) if match else default


def to_sprint_issue(raw: dict[str, Any]) -> SprintIssue:
    """Build a :class:`SprintIssue` from a loosely-typed mapping."""
    points = raw.get("story_points")
    return SprintIssue(
        key=str(raw.get("key") or ""),
        summary=str(raw.get("summary") or ""),
        status=str(raw.get("status") or ""),
        status_category=normalize_status_category(raw.get("status_category")),
        story_points=float(points) if points not in (None, "") else None,
        assignee=raw.get("assignee") or None,
        artifact=raw.get("artifact") or None,
    )


def to_sprint_info(raw: dict[str, Any]) -> SprintInfo:
    """Build a :class:`SprintInfo`; blank strings become ``None``."""
    name = str(raw.get("name") or "")
    goal = (raw.get("goal") or "").strip() or None
    return SprintInfo(
        id=int(raw.get("id") or 0),
        name=name,
        number=sprint_number(name),
        start_date=raw.get("start_date") or None,
        end_date=raw.get("end_date") or None,
        goal=goal,
        goal_generated=bool(raw.get("goal_generated", False)),
    )


class SprintCollector:
    """Fetch a sprint, compute its stats and pick the demo issues."""

    def __init__(
        self,
        tracker: Tracker,
        *,
        demo_count: int = DEFAULT_DEMO_COUNT,
        goal_writer: GoalWriter | None = None,
    ) -> None:
        self._tracker = tracker
        self._demo_count = demo_count
        self._goal_writer = goal_writer

    def collect(self, params: WorkflowParams) -> CollectedSprintData:
        """Collect everything later stages need.

        Tracker failures while fetching the sprint propagate; a failed
        version lookup only drops the version. A sprint without a goal gets
        one from the goal writer, if any, marked as generated.
        """
        logger.info("Collecting sprint data for %r", params.sprint_name_or_id)
        raw = self._tracker.fetch_sprint_data(params.sprint_name_or_id)

        version = params.version_meta
        if version is None and raw.project_key:
            try:
                version = self._tracker.fetch_project_version(raw.project_key)
            except Exception as exc:
                logger.warning("Could not fetch version for %s: %s", raw.project_key, exc)
                version = None

        info = localize_sprint_dates(raw.sprint_info, params.language)
        if not info.goal and raw.issues and self._goal_writer is not None:
            goal = self._goal_writer.write(info.name, raw.issues, params.language)
            if goal:
                info = replace(info, goal=goal, goal_generated=True)
        if version is not None and version.release_date:
            version = replace(version, release_date=format_date(version.release_date, params.language))
        issues = tuple(raw.issues)
        stats = compute_stats(issues)
        demo = tuple(select_demo_issues(issues, self._demo_count))
        logger.info(
            "Collected sprint %s: %d issue(s), %d demo, version=%s",
            info.name, len(issues), len(demo), version.name if version else None,
        )
        return CollectedSprintData(
            sprint_info=info,
            issues=issues,
            demo_issues=demo,
            stats=stats,
            version_meta=version,
            language=params.language,
        )


def localize_sprint_dates(info: SprintInfo, language: str) -> SprintInfo:
    """Return *info* with ISO start/end dates rendered for *language*."""
    return replace(
        info,
        start_date=format_date(info.start_date, language),
        end_date=format_date(info.end_date, language),
    )
