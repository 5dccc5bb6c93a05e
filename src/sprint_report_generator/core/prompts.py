"""Prompt builders for section generation and the two assessment calls.

Every section prompt starts with a ``Report section: <name>`` line naming the
block it asks for.  Prompts ask for a single JSON object using the camelCase
keys that :mod:`sprint_report_generator.core.report_decoder` reads.
"""

from __future__ import annotations

from sprint_report_generator.core.data_models import (
    BlockContext,
    SprintInfo,
    SprintIssue,
    SprintStats,
)
from sprint_report_generator.core.i18n import RU

_SYSTEM_BLOCKS = {
    "en": """You are an experienced product manager who writes sprint reports for partners and stakeholders.

CRITICAL RULES:
1. Write ONLY in English.
2. Use business language that is understandable to partners and management.
3. DO NOT use technical jargon: API, backend, frontend, pipeline, DevOps, architecture, microservices, deploy, refactoring, etc.
4. Describe functionality from the perspective of user and business value.
5. Respond ONLY with valid JSON without markdown formatting.

STRICT DATA LIMITATIONS:
6. Use ONLY data explicitly provided in the input. DO NOT INVENT tasks, artifacts, links, or achievements.
7. If there is no data, return an empty array [] or an empty string "".
8. Take task names, keys, and statuses ONLY from the provided list.""",
    "ru": """Ты — опытный менеджер продукта, который пишет отчёты по спринтам для партнёров и стейкхолдеров.

КРИТИЧЕСКИ ВАЖНЫЕ ПРАВИЛА:
1. Пиши ТОЛЬКО на русском языке.
2. Используй бизнес-язык, понятный партнёрам и руководству.
3. НЕ используй технические термины: API, бэкенд, фронтенд, pipeline, DevOps, архитектура, микросервисы, деплой, рефакторинг и т.п.
4. Описывай функционал с точки зрения пользы для пользователя и бизнеса.
5. Отвечай ТОЛЬКО валидным JSON без markdown-разметки.

СТРОГИЕ ОГРАНИЧЕНИЯ ПО ДАННЫМ:
6. Используй ТОЛЬКО данные, которые явно указаны во входных данных. НЕ ВЫДУМЫВАЙ задачи, артефакты, ссылки или достижения.
7. Если данных нет, возвращай пустой массив [] или пустую строку "".
8. Названия задач, ключи и статусы бери ТОЛЬКО из предоставленного списка.""",
}

_SYSTEM_VALIDATION = {
    "en": """You are an expert in analyzing report quality and documentation.
Your task is to objectively evaluate the provided data and return a structured result.
Respond ONLY with valid JSON without markdown formatting.""",
    "ru": """Ты — эксперт по анализу качества отчётов и документации.
Твоя задача — объективно оценить предоставленные данные и выдать структурированный результат.
Отвечай ТОЛЬКО валидным JSON без markdown-разметки.""",
}

_WORDS = {
    "en": {
        "no_tasks": "No tasks",
        "not_specified": "not specified",
        "not_assigned": "not assigned",
        "status": "Status",
        "assignee": "Assignee",
        "artifact": "Artifact",
        "name": "Name",
        "number": "Number",
        "start": "Start date",
        "end": "End date",
        "goal": "Sprint goal",
        "goal_generated": "generated from the issue list",
        "total": "Total tasks",
        "completed": "Completed",
        "not_completed": "Not completed",
        "progress": "Progress",
        "sprint_info": "Sprint Information",
        "statistics": "Statistics",
        "done_tasks": "Completed Tasks",
        "open_tasks": "Incomplete Tasks",
        "demo_tasks": "Demo Candidates",
        "version": "Version",
        "alignment": "Goal-Task Alignment",
        "alignment_level": "Alignment level",
        "comment": "Comment",
        "return_json": "Return a JSON object:",
        "language": "in English",
    },
    "ru": {
        "no_tasks": "Нет задач",
        "not_specified": "не указано",
        "not_assigned": "не назначен",
        "status": "Статус",
        "assignee": "Исполнитель",
        "artifact": "Артефакт",
        "name": "Название",
        "number": "Номер",
        "start": "Дата начала",
        "end": "Дата окончания",
        "goal": "Цель спринта",
        "goal_generated": "сформулирована по списку задач",
        "total": "Всего задач",
        "completed": "Выполнено",
        "not_completed": "Не выполнено",
        "progress": "Прогресс",
        "sprint_info": "Информация о спринте",
        "statistics": "Статистика",
        "done_tasks": "Выполненные задачи",
        "open_tasks": "Невыполненные задачи",
        "demo_tasks": "Кандидаты для демо",
        "version": "Версия",
        "alignment": "Соответствие задач цели спринта",
        "alignment_level": "Уровень соответствия",
        "comment": "Комментарий",
        "return_json": "Верни JSON объект:",
        "language": "на русском",
    },
}

# Per-section instruction and expected JSON shape.
_BLOCK_TASKS = {
    "en": {
        "version": (
            "Describe the release this sprint contributes to.",
            '{"number": "version number", "deadline": "deadline date {language}", '
            '"goal": "brief version goal (1-2 sentences)", "progressPercent": 0-100}',
        ),
        "sprint": (
            "Describe the sprint itself.",
            '{"number": "sprint number", "startDate": "start date {language}", '
            '"endDate": "end date {language}", "goal": "brief sprint goal (1-2 sentences)", '
            '"progressPercent": 0-100}',
        ),
        "overview": (
            "Write a sprint overview for partners (5-10 sentences): what was planned, "
            "what was accomplished, what challenges arose.",
            '{"overview": "overview text"}',
        ),
        "not_done": (
            "List the incomplete tasks in simple language with a reason for each.",
            '{"notDone": [{"title": "", "reason": "", "requiredForCompletion": "", '
            '"newDeadline": "Sprint N or —"}]}',
        ),
        "achievements": (
            "List the key achievements based only on completed tasks.",
            '{"achievements": [{"title": "", "description": "value for users (1-2 sentences)"}]}',
        ),
        "artifacts": (
            "Describe demo artifacts ONLY for tasks that have an Artifact field.",
            '{"artifacts": [{"title": "", "description": "", "jiraLink": null, '
            '"attachmentsNote": "video, screenshots, mockups or null"}]}',
        ),
        "next_sprint": (
            "Formulate the goal of the next sprint from the incomplete work.",
            '{"nextSprint": {"sprintNumber": "{next_number}", "goal": "1-2 sentences"}}',
        ),
        "blockers": (
            "List blockers that may prevent the next sprint, only if the data shows them.",
            '{"blockers": [{"title": "", "description": "", "resolutionProposal": ""}]}',
        ),
        "pm_questions": (
            "List questions and proposals the product manager should raise with partners.",
            '{"pmQuestions": [{"title": "", "description": ""}]}',
        ),
    },
    "ru": {
        "version": (
            "Опиши версию, в которую входит этот спринт.",
            '{"number": "номер версии", "deadline": "дата дедлайна {language}", '
            '"goal": "краткая цель версии (1-2 предложения)", "progressPercent": 0-100}',
        ),
        "sprint": (
            "Опиши сам спринт.",
            '{"number": "номер спринта", "startDate": "дата начала {language}", '
            '"endDate": "дата окончания {language}", "goal": "краткая цель спринта (1-2 предложения)", '
            '"progressPercent": 0-100}',
        ),
        "overview": (
            "Напиши обзор спринта для партнёров (5-10 предложений): что планировали, "
            "что удалось сделать, какие были сложности.",
            '{"overview": "текст обзора"}',
        ),
        "not_done": (
            "Перечисли невыполненные задачи простым языком с причиной для каждой.",
            '{"notDone": [{"title": "", "reason": "", "requiredForCompletion": "", '
            '"newDeadline": "Спринт N или —"}]}',
        ),
        "achievements": (
            "Перечисли ключевые достижения только по выполненным задачам.",
            '{"achievements": [{"title": "", "description": "польза для пользователей (1-2 предложения)"}]}',
        ),
        "artifacts": (
            "Опиши артефакты для демо ТОЛЬКО для задач с полем Артефакт.",
            '{"artifacts": [{"title": "", "description": "", "jiraLink": null, '
            '"attachmentsNote": "видео, скриншоты, макеты или null"}]}',
        ),
        "next_sprint": (
            "Сформулируй цель следующего спринта по незавершённой работе.",
            '{"nextSprint": {"sprintNumber": "{next_number}", "goal": "1-2 предложения"}}',
        ),
        "blockers": (
            "Перечисли блокеры для следующего спринта, только если они видны из данных.",
            '{"blockers": [{"title": "", "description": "", "resolutionProposal": ""}]}',
        ),
        "pm_questions": (
            "Перечисли вопросы и предложения, которые менеджер продукта должен обсудить с партнёрами.",
            '{"pmQuestions": [{"title": "", "description": ""}]}',
        ),
    },
}

BLOCK_NAMES = tuple(_BLOCK_TASKS["en"])


def block_system_prompt(lang: str) -> str:
    return _SYSTEM_BLOCKS.get(lang, _SYSTEM_BLOCKS["en"])


def validation_system_prompt(lang: str) -> str:
    return _SYSTEM_VALIDATION.get(lang, _SYSTEM_VALIDATION["en"])


def format_issues(issues: list[SprintIssue] | tuple[SprintIssue, ...], lang: str) -> str:
    """One line per issue: key, summary, status, points, assignee, artifact."""
    w = _words(lang)
    if not issues:
        return w["no_tasks"]
    lines = []
    for i in issues:
        line = (
            f"- {i.key}: {i.summary} | {w['status']}: {i.status} | "
            f"Story Points: {_points(i.story_points)} | "
            f"{w['assignee']}: {i.assignee or w['not_assigned']}"
        )
        if i.artifact:
            line += f" | {w['artifact']}: {i.artifact}"
        lines.append(line)
    return "\n".join(lines)


def build_block_prompt(block: str, ctx: BlockContext) -> str:
    """Build the user prompt for one report section."""
    lang = ctx.language if ctx.language in _BLOCK_TASKS else "en"
    w = _words(lang)
    task, shape = _BLOCK_TASKS[lang][block]
    shape = shape.replace("{language}", w["language"]).replace(
        "{next_number}", ctx.next_sprint_number
    )

    parts = [
        f"Report section: {block}",
        task,
        "",
        f"## {w['sprint_info']}",
        _format_sprint_info(ctx.sprint_info, w),
        "",
        f"## {w['statistics']}",
        _format_stats(ctx.stats, w),
    ]
    if block == "version":
        parts += ["", f"## {w['version']}", _format_version(ctx, w)]
    if ctx.goal_alignment is not None and block in ("overview", "achievements", "next_sprint"):
        parts += [
            "",
            f"## {w['alignment']}",
            f"- {w['alignment_level']}: {ctx.goal_alignment.level}",
            f"- {w['comment']}: {ctx.goal_alignment.comment}",
        ]
    if block in ("overview", "achievements", "pm_questions"):
        parts += ["", f"## {w['done_tasks']}", format_issues(ctx.done_issues, lang)]
    if block in ("overview", "not_done", "next_sprint", "blockers", "pm_questions"):
        parts += ["", f"## {w['open_tasks']}", format_issues(ctx.not_done_issues, lang)]
    if block == "artifacts":
        parts += ["", f"## {w['demo_tasks']}", format_issues(ctx.demo_issues, lang)]
    parts += ["", "---", "", w["return_json"], shape]
    return "\n".join(parts)


def build_goal_alignment_prompt(
    goal: str, issues: list[SprintIssue] | tuple[SprintIssue, ...], lang: str
) -> str:
    w = _words(lang)
    summaries = "\n".join(f"- {i.key}: {i.summary}" for i in issues) or w["no_tasks"]
    if lang == RU:
        return f"""Оцени, насколько задачи спринта соответствуют заявленной цели спринта.

## Цель спринта
{goal}

## Задачи спринта
{summaries}

---

Верни JSON объект:
{{"level": "strong" | "medium" | "weak", "comment": "короткое пояснение (1-2 предложения)"}}

Критерии:
- "strong": более 70% задач явно связаны с целью спринта
- "medium": 40-70% задач связаны с целью
- "weak": менее 40% задач связаны с целью, или цель слишком абстрактная"""

    return f"""Assess how well the sprint tasks align with the stated sprint goal.

## Sprint Goal
{goal}

## Sprint Tasks
{summaries}

---

Return a JSON object:
{{"level": "strong" | "medium" | "weak", "comment": "brief explanation (1-2 sentences)"}}

Criteria:
- "strong": more than 70% of tasks are clearly related to the sprint goal
- "medium": 40-70% of tasks are related to the goal
- "weak": less than 40% of tasks are related to the goal, or the goal is too abstract"""


def build_sprint_goal_prompt(
    sprint_name: str, issues: list[SprintIssue] | tuple[SprintIssue, ...], lang: str
) -> str:
    summaries = "\n".join(f"- {i.summary} [{i.status}]" for i in issues)
    if lang == RU:
        return f"""Сформулируй цель спринта по списку его задач.

Спринт: {sprint_name}

## Задачи спринта
{summaries}

---

Цель: 1-2 предложения, понятные бизнес-аудитории, о главной ценности спринта.
Верни JSON объект: {{"goal": "текст цели"}}"""

    return f"""Write a sprint goal from the sprint's task list.

Sprint: {sprint_name}

## Sprint Tasks
{summaries}

---

The goal is 1-2 sentences for a business audience, naming the main value the sprint delivers.
Return a JSON object: {{"goal": "goal text"}}"""


def build_partner_readiness_prompt(report_json: str, data_summary: str, lang: str) -> str:
    if lang == RU:
        return f"""Оцени готовность отчёта по спринту для показа внешним партнёрам.

## Отчёт (JSON)
{report_json}

## Краткие данные о спринте
{data_summary}

---

Верни JSON объект:
{{"isPartnerReady": true | false, "comments": ["комментарий, если есть проблемы"]}}

Критерии: понятность без технических знаний, отсутствие противоречий между разделами,
отсутствие внутреннего жаргона, заполненность ключевых разделов."""

    return f"""Assess the sprint report's readiness for external partners.

## Report (JSON)
{report_json}

## Brief Sprint Data
{data_summary}

---

Return a JSON object:
{{"isPartnerReady": true | false, "comments": ["comment, if issues exist"]}}

Criteria: clarity for a non-technical reader, no contradictions between sections,
no internal jargon, all key sections filled."""


def summarize_for_readiness(ctx_sprint: SprintInfo, stats: SprintStats) -> str:
    """Short plain-text data summary passed alongside the report JSON."""
    return (
        f"Sprint: {ctx_sprint.name} (#{ctx_sprint.number})\n"
        f"Goal: {ctx_sprint.goal or '-'}\n"
        f"Issues: {stats.done_issues}/{stats.total_issues} done\n"
        f"Story points: {_points(stats.completed_story_points)}/"
        f"{_points(stats.total_story_points)}\n"
        f"Progress: {stats.progress_percent}%"
    )


# -- internals ----------------------------------------------------------------


def _words(lang: str) -> dict[str, str]:
    return _WORDS.get(lang, _WORDS["en"])


def _points(value: float | None) -> str:
    if value is None:
        return "0"
    return f"{value:g}"


def _format_sprint_info(info: SprintInfo, w: dict[str, str]) -> str:
    return "\n".join([
        f"- {w['name']}: {info.name}",
        f"- {w['number']}: {info.number}",
        f"- {w['start']}: {info.start_date or w['not_specified']}",
        f"- {w['end']}: {info.end_date or w['not_specified']}",
        f"- {w['goal']}: {info.goal or w['not_specified']}"
        + (f" ({w['goal_generated']})" if info.goal and info.goal_generated else ""),
    ])


def _format_stats(stats: SprintStats, w: dict[str, str]) -> str:
    return "\n".join([
        f"- {w['total']}: {stats.total_issues}",
        f"- {w['completed']}: {stats.done_issues}",
        f"- {w['not_completed']}: {stats.not_done_issues}",
        f"- Story Points: {_points(stats.completed_story_points)}/"
        f"{_points(stats.total_story_points)}",
        f"- {w['progress']}: {stats.progress_percent}%",
    ])


def _format_version(ctx: BlockContext, w: dict[str, str]) -> str:
    v = ctx.version_meta
    if v is None:
        return w["not_specified"]
    progress = v.progress_percent if v.progress_percent is not None else ctx.stats.progress_percent
    return "\n".join([
        f"- {w['name']}: {v.name}",
        f"- Deadline: {v.release_date or w['not_specified']}",
        f"- Description: {v.description or w['not_specified']}",
        f"- {w['progress']}: {progress}%",
    ])
