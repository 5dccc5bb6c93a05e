"""Sprint completion statistics."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable

from sprint_report_generator.core.data_models import SprintIssue, SprintStats

logger = logging.getLogger(__name__)


def compute_stats(issues: Iterable[SprintIssue]) -> SprintStats:
    """Compute issue counts, story-point totals and progress for a sprint."""
    issues = list(issues)
    done = [i for i in issues if i.is_done]
    total_sp = sum(i.story_points or 0 for i in issues)
    completed_sp = sum(i.story_points or 0 for i in done)

    stats = SprintStats(
        total_issues=len(issues),
        done_issues=len(done),
        not_done_issues=len(issues) - len(done),
        total_story_points=total_sp,
        completed_story_points=completed_sp,
        progress_percent=progress_percent(completed_sp, total_sp),
    )
    logger.debug(
        "Sprint stats: %d/%d issues done, %.0f/%.0f SP, progress=%d%%",
        stats.done_issues, stats.total_issues,
        completed_sp, total_sp, stats.progress_percent,
    )
    return stats


def progress_percent(completed: float, total: float) -> int:
    """Return ``round(100 * completed / total)`` rounding halves up; 0 when *total* is 0."""
    if total <= 0:
        return 0
    value = math.floor(100 * completed / total + 0.5)
    return max(0, min(100, value))
