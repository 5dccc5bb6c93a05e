"""Pick the completed issues that are most worth demonstrating."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sprint_report_generator.core.data_models import SprintIssue

logger = logging.getLogger(__name__)

DEFAULT_DEMO_COUNT = 3

_ARTIFACT_SCORE = 100
_STORY_POINT_WEIGHT = 10
_MIN_STORY_POINTS = 3
_ASSIGNEE_SCORE = 5


def demo_score(issue: SprintIssue) -> float:
    """Score an issue for demo-worthiness.

    An attached artifact dominates; larger stories (3 SP and up) and owned
    work add to it.
    """
    score: float = 0
    if issue.artifact:
        score += _ARTIFACT_SCORE
    if issue.story_points is not None and issue.story_points >= _MIN_STORY_POINTS:
        score += _STORY_POINT_WEIGHT * issue.story_points
    if issue.assignee:
        score += _ASSIGNEE_SCORE
    return score


def select_demo_issues(
    issues: Sequence[SprintIssue], max_count: int = DEFAULT_DEMO_COUNT
) -> list[SprintIssue]:
    """Return up to *max_count* done issues ordered by descending score.

    Ties keep their original order.
    """
    candidates = [i for i in issues if i.is_done]
    if not candidates or max_count <= 0:
        return []
    ranked = sorted(candidates, key=lambda i: -demo_score(i))
    selected = ranked[: min(max_count, len(ranked))]
    logger.debug(
        "Selected %d demo issue(s) from %d candidate(s): %s",
        len(selected), len(candidates), ", ".join(i.key for i in selected),
    )
    return selected
