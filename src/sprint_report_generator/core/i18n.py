"""Supported report languages, date formatting, and localized page strings."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime

from dateutil.parser import parse as dt_parse

logger = logging.getLogger(__name__)

EN = "en"
RU = "ru"
SUPPORTED_LANGUAGES = (EN, RU)
DEFAULT_LANGUAGE = EN

_ALIASES = {
    "en": EN,
    "english": EN,
    "ru": RU,
    "russian": RU,
    "русский": RU,
}

_MONTHS_EN = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
# Genitive forms, as used in "17 ноября 2025".
_MONTHS_RU = [
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
]

_CYRILLIC_RE = re.compile(r"[а-яА-ЯёЁ]")
_LATIN_RE = re.compile(r"[a-zA-Z]")


def parse_language(value: str | None) -> str:
    """Map a user-supplied language name or code to a supported code.

    Unknown values fall back to :data:`DEFAULT_LANGUAGE`.
    """
    if not value:
        return DEFAULT_LANGUAGE
    lang = _ALIASES.get(value.strip().lower())
    if lang is None:
        logger.warning("Unsupported language %r, using %s", value, DEFAULT_LANGUAGE)
        return DEFAULT_LANGUAGE
    return lang


def is_text_in_language(text: str, lang: str) -> bool:
    """Return True if *text* contains at least one letter of *lang*'s script."""
    if lang == RU:
        return bool(_CYRILLIC_RE.search(text))
    return bool(_LATIN_RE.search(text))


def format_date(value: str | date | None, lang: str) -> str | None:
    """Format an ISO date (or date object) as a long, human-readable date.

    Unparseable strings are returned unchanged.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        d = value.date()
    elif isinstance(value, date):
        d = value
    else:
        try:
            d = dt_parse(str(value)).date()
        except (ValueError, OverflowError):
            return str(value)
    if lang == RU:
        return f"{d.day} {_MONTHS_RU[d.month - 1]} {d.year}"
    return f"{_MONTHS_EN[d.month - 1]} {d.day}, {d.year}"


# -- page strings -------------------------------------------------------------


@dataclass(frozen=True)
class PageStrings:
    """Localized text used when rendering a report page."""

    page_title: str  # format: sprint_name, date
    section_sprint_report: str
    section_overview: str
    section_not_done: str
    section_achievements: str
    section_artifacts: str
    section_next_sprint: str
    section_blockers: str
    section_pm_questions: str
    version_callout: tuple[str, str, str]
    sprint_callout: tuple[str, str, str]
    next_sprint_heading: str
    placeholder_timeline: str
    placeholder_next_timeline: str
    placeholder_artifacts: str
    all_tasks_completed: str
    no_achievements: str
    none: str
    artifacts_later: str
    label_description: str
    label_jira_link: str
    label_artifacts: str
    label_next_sprint_goal: str
    not_done_line: str
    blocker_line: str


_STRINGS = {
    EN: PageStrings(
        page_title="Sprint Report: {sprint_name} ({date})",
        section_sprint_report="1. Sprint Results Report:",
        section_overview="Sprint Overview:",
        section_not_done="Not Completed in This Sprint:",
        section_achievements="Key Achievements, Takeaways and Insights:",
        section_artifacts="2. Sprint Artifacts:",
        section_next_sprint="3. Next Sprint Planning:",
        section_blockers="Blockers for Next Sprint:",
        section_pm_questions="4. Questions and Proposals from Product Manager:",
        version_callout=(
            "Version #{number} — deadline {deadline}",
            "Version goal — {goal}",
            "Version completed at {progress}%",
        ),
        sprint_callout=(
            "Sprint #{number} — from {start} to {end}",
            "Sprint goal — {goal}",
            "Sprint completed at {progress}%",
        ),
        next_sprint_heading="Sprint #{number}",
        placeholder_timeline="[Jira timeline screenshot will be added manually]",
        placeholder_next_timeline="[Next sprint timeline screenshot will be added manually]",
        placeholder_artifacts="[Screenshots/videos/mockups will be added manually]",
        all_tasks_completed="All sprint tasks completed.",
        no_achievements="—",
        none="None",
        artifacts_later="Artifacts will be added later.",
        label_description="Description:",
        label_jira_link="Epic / Jira task:",
        label_artifacts="Artifacts:",
        label_next_sprint_goal="Next sprint goal —",
        not_done_line="{title} — {reason}; needed: {required}; new deadline: {deadline}",
        blocker_line="{title} — {description}; proposed resolution: {resolution}",
    ),
    RU: PageStrings(
        page_title="Отчёт по спринту: {sprint_name} ({date})",
        section_sprint_report="1. Отчет по итогам реализованного спринта:",
        section_overview="Overview спринта:",
        section_not_done="Не реализовано в прошедшем спринте:",
        section_achievements="Ключевые достижения, выводы и инсайты спринта:",
        section_artifacts="2. Артефакты по итогам реализованного спринта:",
        section_next_sprint="3. Планирование следующего спринта:",
        section_blockers="Блокеры для реализации следующего спринта:",
        section_pm_questions="4. Вопросы и предложения от Product Manager:",
        version_callout=(
            "Версия №{number} — дедлайн реализации {deadline}",
            "Цель версии — {goal}",
            "Версия реализована на {progress}%",
        ),
        sprint_callout=(
            "Спринт №{number} — срок реализации с {start} по {end}",
            "Цель спринта — {goal}",
            "Спринт реализован на {progress}%",
        ),
        next_sprint_heading="Спринт №{number}",
        placeholder_timeline="[Скриншот timeline спринта из Jira будет добавлен вручную]",
        placeholder_next_timeline=(
            "[Скриншот timeline следующего спринта из Jira будет добавлен вручную]"
        ),
        placeholder_artifacts="[Скриншоты/видео/макеты будут добавлены вручную]",
        all_tasks_completed="Все задачи спринта выполнены.",
        no_achievements="—",
        none="Нет",
        artifacts_later="Артефакты будут добавлены позже.",
        label_description="Описание:",
        label_jira_link="Эпик / задача в Jira:",
        label_artifacts="Артефакты:",
        label_next_sprint_goal="Цель следующего спринта —",
        not_done_line=(
            "{title} — {reason}; нужно: {required}; новый дедлайн: {deadline}"
        ),
        blocker_line="{title} — {description}; предложенное решение: {resolution}",
    ),
}


def page_strings(lang: str) -> PageStrings:
    """Return the page strings for *lang* (English when unsupported)."""
    return _STRINGS.get(lang, _STRINGS[DEFAULT_LANGUAGE])


def format_progress(value: float) -> str:
    """Render a percentage without a trailing ``.0`` for whole numbers."""
    return f"{value:.0f}" if float(value).is_integer() else f"{value:.1f}"
