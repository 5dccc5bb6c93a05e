"""Assess how well a sprint's issues serve its stated goal."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from sprint_report_generator.core.data_models import (
    ALIGNMENT_LEVELS,
    GoalAlignment,
    SprintInfo,
    SprintIssue,
)
from sprint_report_generator.core.llm_client import TextGenerator, safe_complete
from sprint_report_generator.core.prompts import (
    block_system_prompt,
    build_goal_alignment_prompt,
    build_sprint_goal_prompt,
    validation_system_prompt,
)

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"

_COMMENTS = {
    "en": {
        "no_goal": "Sprint goal is not set, alignment cannot be assessed.",
        "no_issues": "The sprint has no issues, alignment cannot be assessed.",
        "offline": "Offline mode: alignment assumed to be medium.",
        "failed": "Alignment assessment is unavailable: the text-generation service failed.",
        "heuristic": "{matched} of {total} issue(s) share key words with the sprint goal.",
    },
    "ru": {
        "no_goal": "Цель спринта не указана, оценить соответствие невозможно.",
        "no_issues": "В спринте нет задач, оценить соответствие невозможно.",
        "offline": "Офлайн-режим: соответствие принято средним.",
        "failed": "Оценка соответствия недоступна: сервис генерации текста не ответил.",
        "heuristic": "{matched} из {total} задач пересекаются по ключевым словам с целью спринта.",
    },
}

_STRONG_SHARE = 0.7
_MEDIUM_SHARE = 0.4
_MIN_WORD_LENGTH = 4
_WORD_RE = re.compile(r"[^\W\d_]+", re.UNICODE)
_STOP_WORDS = frozenset({
    "with", "from", "that", "this", "into", "their", "them", "have", "will",
    "should", "more", "less", "other", "после", "чтобы", "через", "также",
    "этого", "этот", "была", "были", "будет",
})


class GoalAlignmentAssessor:
    """Classify goal alignment as strong, medium, weak or unknown.

    The assessor never raises: missing inputs and collaborator failures
    both resolve to ``unknown`` with an explanatory comment.
    """

    def __init__(
        self,
        llm: TextGenerator | None = None,
        *,
        language: str = "en",
        offline: bool = False,
    ) -> None:
        self._llm = llm
        self._language = language
        self._offline = offline

    def assess(self, sprint_info: SprintInfo, issues: Sequence[SprintIssue]) -> GoalAlignment:
        comments = _COMMENTS.get(self._language, _COMMENTS["en"])
        goal = (sprint_info.goal or "").strip()
        if not goal:
            return GoalAlignment(UNKNOWN, comments["no_goal"])
        if not issues:
            return GoalAlignment(UNKNOWN, comments["no_issues"])
        if self._offline:
            logger.info("Offline mode: using fixed goal alignment")
            return GoalAlignment("medium", comments["offline"])
        if self._llm is None:
            return heuristic_alignment(goal, issues, self._language)

        result = safe_complete(
            self._llm,
            validation_system_prompt(self._language),
            build_goal_alignment_prompt(goal, issues, self._language),
        )
        if not result.ok:
            return GoalAlignment(UNKNOWN, comments["failed"])

        level = result.data.get("level", result.data.get("matchLevel"))
        if level not in ALIGNMENT_LEVELS:
            logger.warning("Unexpected alignment level %r, treating as unknown", level)
            level = UNKNOWN
        comment = result.data.get("comment")
        if not isinstance(comment, str):
            comment = ""
        logger.info("Goal alignment: %s", level)
        return GoalAlignment(level, comment)


class SprintGoalWriter:
    """Phrase a goal for a sprint that has none, from its issue list.

    Returns ``None`` instead of raising when the service fails or answers
    without usable text.
    """

    def __init__(self, llm: TextGenerator) -> None:
        self._llm = llm

    def write(self, sprint_name: str, issues: Sequence[SprintIssue], language: str) -> str | None:
        if not issues:
            return None
        result = safe_complete(
            self._llm,
            block_system_prompt(language),
            build_sprint_goal_prompt(sprint_name, tuple(issues), language),
        )
        if not result.ok:
            return None
        goal = result.data.get("goal")
        if not isinstance(goal, str) or not goal.strip():
            logger.warning("Goal response for %s has no text", sprint_name)
            return None
        logger.info("Generated goal for %s: %s", sprint_name, goal.strip())
        return goal.strip()


def heuristic_alignment(
    goal: str, issues: Sequence[SprintIssue], language: str = "en"
) -> GoalAlignment:
    """Keyword-overlap estimate used when no text-generation service is configured."""
    goal_words = _keywords(goal)
    matched = sum(1 for i in issues if goal_words & _keywords(i.summary))
    share = matched / len(issues) if issues else 0.0
    if share > _STRONG_SHARE:
        level = "strong"
    elif share >= _MEDIUM_SHARE:
        level = "medium"
    else:
        level = "weak"
    template = _COMMENTS.get(language, _COMMENTS["en"])["heuristic"]
    logger.debug("Heuristic goal alignment: %d/%d issues matched -> %s", matched, len(issues), level)
    return GoalAlignment(level, template.format(matched=matched, total=len(issues)))


def _keywords(text: str) -> set[str]:
    words = {w.lower() for w in _WORD_RE.findall(text)}
    return {w for w in words if len(w) >= _MIN_WORD_LENGTH and w not in _STOP_WORDS}


