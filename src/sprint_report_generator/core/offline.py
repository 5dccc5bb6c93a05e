"""Deterministic fixtures for running the whole workflow without external services."""

from __future__ import annotations

import logging
import re
from datetime import datetime

from sprint_report_generator.core.data_models import (
    STATUS_DONE,
    STATUS_IN_PROGRESS,
    STATUS_NEW,
    AchievementItem,
    ArtifactItem,
    BlockContext,
    NextSprintPlan,
    NotDoneItem,
    PublishResult,
    RawSprintData,
    ReportStructured,
    SprintBlock,
    SprintInfo,
    SprintIssue,
    VersionBlock,
    VersionMeta,
)
from sprint_report_generator.core.i18n import RU

logger = logging.getLogger(__name__)

OFFLINE_SPRINT_ID = 12345
OFFLINE_PROJECT_KEY = "PROJ"

# key, status, category, points, assignee, artifact, (en summary, ru summary)
_ISSUES = [
    ("PROJ-101", "Done", STATUS_DONE, 8, "Ivan Petrov", "https://figma.com/demo-scenario",
     ("Implement the main user scenario", "Реализовать основной пользовательский сценарий")),
    ("PROJ-102", "Done", STATUS_DONE, 5, "Maria Sidorova", None,
     ("Improve main page performance", "Улучшить производительность главной страницы")),
    ("PROJ-103", "Done", STATUS_DONE, 3, "Ivan Petrov", "https://loom.com/notifications-demo",
     ("Add a notification system", "Добавить систему уведомлений")),
    ("PROJ-104", "In Progress", STATUS_IN_PROGRESS, 8, "Alexey Kozlov", None,
     ("Integrate with the external system", "Интеграция с внешней системой")),
    ("PROJ-105", "To Do", STATUS_NEW, 5, None, None,
     ("Extended report for administrators", "Расширенный отчёт для администраторов")),
    ("PROJ-106", "Done", STATUS_DONE, 5, "Maria Sidorova", "https://figma.com/cabinet-redesign",
     ("Refresh the personal account design", "Обновить дизайн личного кабинета")),
]

_TEXT = {
    "en": {
        "goal": "Deliver the main user scenario and prepare a partner demo",
        "version_goal": "Launch the MVP with core functionality for the first users.",
        "version_deadline": "March 29, 2026",
        "overview": (
            "This sprint the team focused on the key user scenario. Most of the planned "
            "work was completed, reaching {progress}% of the sprint scope.\n\n"
            "The main result is that users can now work with the core product "
            "functionality end to end. Some tasks move to the next sprint because they "
            "need more detailed work."
        ),
        "reason": "More time is needed to finish the work",
        "required": "Finish development and testing",
        "deadline": "Sprint {number}",
        "achievement": "The feature is ready to use and improves the user experience.",
        "artifact": "Feature demonstration for partners.",
        "attachments": "Video/screenshots",
        "next_goal": "Finish the carried-over tasks and keep developing the product.",
    },
    "ru": {
        "goal": "Реализация основного пользовательского сценария и подготовка демо для партнёров",
        "version_goal": "Запуск MVP продукта с базовым функционалом для первых пользователей.",
        "version_deadline": "29 марта 2026",
        "overview": (
            "В этом спринте команда сфокусировалась на реализации ключевого "
            "пользовательского сценария. Мы завершили основную часть запланированных "
            "задач, достигнув {progress}% выполнения.\n\n"
            "Главным достижением стала возможность для пользователей полноценно работать "
            "с основным функционалом продукта. Часть задач перенесена на следующий спринт "
            "из-за необходимости дополнительной проработки."
        ),
        "reason": "Требуется дополнительное время на проработку",
        "required": "Завершить разработку и тестирование",
        "deadline": "Спринт {number}",
        "achievement": "Функционал готов к использованию и улучшает опыт пользователей.",
        "artifact": "Демонстрация функционала для партнёров.",
        "attachments": "Видео/скриншоты",
        "next_goal": "Завершить перенесённые задачи и продолжить развитие продукта.",
    },
}


def _text(lang: str) -> dict[str, str]:
    return _TEXT[RU] if lang == RU else _TEXT["en"]


class OfflineTracker:
    """Stand-in issue tracker that always returns the same six-issue sprint."""

    def __init__(self, language: str = "en") -> None:
        self._language = language

    def fetch_sprint_data(self, name_or_id: str) -> RawSprintData:
        logger.info("Offline mode: using fixture sprint data for %r", name_or_id)
        match = re.search(r"\d+", name_or_id)
        info = SprintInfo(
            id=OFFLINE_SPRINT_ID,
            name=name_or_id,
            number=match.group(0) if match else "4",
            start_date="2025-11-17",
            end_date="2025-11-28",
            goal=_text(self._language)["goal"],
        )
        idx = 1 if self._language == RU else 0
        issues = tuple(
            SprintIssue(
                key=key, summary=summaries[idx], status=status, status_category=category,
                story_points=float(points), assignee=assignee, artifact=artifact,
            )
            for key, status, category, points, assignee, artifact, summaries in _ISSUES
        )
        return RawSprintData(sprint_info=info, issues=issues, project_key=OFFLINE_PROJECT_KEY)

    def fetch_project_version(self, project_key: str) -> VersionMeta | None:
        return None


def build_offline_report(ctx: BlockContext) -> ReportStructured:
    """Synthesize a complete report from the context without any service calls."""
    t = _text(ctx.language)
    info = ctx.sprint_info
    next_number = ctx.next_sprint_number
    version = ctx.version_meta

    logger.info("Offline mode: building report from fixtures")
    return ReportStructured(
        version=VersionBlock(
            number=version.name if version else "1",
            deadline=(version.release_date if version and version.release_date
                      else t["version_deadline"]),
            goal=version.description if version and version.description else t["version_goal"],
            progress_percent=(
                version.progress_percent
                if version and version.progress_percent is not None
                else ctx.stats.progress_percent
            ),
        ),
        sprint=SprintBlock(
            number=info.number,
            start_date=info.start_date or "—",
            end_date=info.end_date or "—",
            goal=info.goal or t["goal"],
            progress_percent=ctx.stats.progress_percent,
        ),
        overview=t["overview"].format(progress=ctx.stats.progress_percent),
        not_done=tuple(
            NotDoneItem(
                title=i.summary,
                reason=t["reason"],
                required_for_completion=t["required"],
                new_deadline=t["deadline"].format(number=next_number) if next_number else "—",
            )
            for i in ctx.not_done_issues[:2]
        ),
        achievements=tuple(
            AchievementItem(title=i.summary, description=t["achievement"])
            for i in ctx.done_issues[:3]
        ),
        artifacts=tuple(
            ArtifactItem(
                title=i.summary,
                description=t["artifact"],
                jira_link=None,
                attachments_note=t["attachments"],
            )
            for i in ctx.demo_issues
            if i.artifact
        ),
        next_sprint=NextSprintPlan(sprint_number=next_number, goal=t["next_goal"]),
        blockers=(),
        pm_questions=(),
    )


class OfflinePublisher:
    """Publisher that only logs the page it would create."""

    def create_report_page(self, sprint_name: str, report: ReportStructured) -> PublishResult:
        page_id = f"mock-page-{int(datetime.now().timestamp() * 1000)}"
        logger.info("Offline mode: would publish report for %r", sprint_name)
        if report.version is not None:
            logger.info("  - version %s", report.version.number)
        if report.sprint is not None:
            logger.info("  - sprint %s", report.sprint.number)
        logger.info(
            "  - %d not done, %d achievement(s), %d artifact(s)",
            len(report.not_done or ()), len(report.achievements or ()),
            len(report.artifacts or ()),
        )
        return PublishResult(id=page_id, url=f"https://www.notion.so/{page_id}")
