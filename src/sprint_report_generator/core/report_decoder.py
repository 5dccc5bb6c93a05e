"""Narrow decoders for text-generation responses and report JSON.

Each decoder reads one section from a JSON object and either returns a typed
value or raises :class:`DecodeError`; the caller decides the fallback.
Progress values are passed through unclamped so report validation can flag
them.
"""

from __future__ import annotations

from typing import Any

from sprint_report_generator.core.data_models import (
    AchievementItem,
    ArtifactItem,
    BlockerItem,
    NextSprintPlan,
    NotDoneItem,
    PMQuestionItem,
    ReportStructured,
    SprintBlock,
    VersionBlock,
)


class DecodeError(ValueError):
    """A response did not have the shape a section needs."""


# -- public API ---------------------------------------------------------------


def decode_version(data: dict[str, Any]) -> VersionBlock:
    obj = _object(data.get("version", data), "version")
    return VersionBlock(
        number=_text(obj, "number"),
        deadline=_text(obj, "deadline"),
        goal=_text(obj, "goal"),
        progress_percent=_number(obj, "progressPercent"),
    )


def decode_sprint(data: dict[str, Any]) -> SprintBlock:
    obj = _object(data.get("sprint", data), "sprint")
    return SprintBlock(
        number=_text(obj, "number"),
        start_date=_text(obj, "startDate"),
        end_date=_text(obj, "endDate"),
        goal=_text(obj, "goal"),
        progress_percent=_number(obj, "progressPercent"),
    )


def decode_overview(data: dict[str, Any]) -> str:
    value = data.get("overview")
    if not isinstance(value, str):
        raise DecodeError("overview must be a string")
    return value


def decode_not_done(data: dict[str, Any]) -> tuple[NotDoneItem, ...]:
    return tuple(
        NotDoneItem(
            title=_text(item, "title"),
            reason=_text(item, "reason", ""),
            required_for_completion=_text(item, "requiredForCompletion", ""),
            new_deadline=_text(item, "newDeadline", "—"),
        )
        for item in _items(data, "notDone")
    )


def decode_achievements(data: dict[str, Any]) -> tuple[AchievementItem, ...]:
    return tuple(
        AchievementItem(title=_text(item, "title"), description=_text(item, "description", ""))
        for item in _items(data, "achievements")
    )


def decode_artifacts(data: dict[str, Any]) -> tuple[ArtifactItem, ...]:
    return tuple(
        ArtifactItem(
            title=_text(item, "title"),
            description=_text(item, "description", ""),
            jira_link=_optional_text(item, "jiraLink"),
            attachments_note=_optional_text(item, "attachmentsNote"),
        )
        for item in _items(data, "artifacts")
    )


def decode_next_sprint(data: dict[str, Any]) -> NextSprintPlan:
    obj = _object(data.get("nextSprint", data), "nextSprint")
    return NextSprintPlan(
        sprint_number=_text(obj, "sprintNumber"),
        goal=_text(obj, "goal", ""),
    )


def decode_blockers(data: dict[str, Any]) -> tuple[BlockerItem, ...]:
    return tuple(
        BlockerItem(
            title=_text(item, "title"),
            description=_text(item, "description", ""),
            resolution_proposal=_text(item, "resolutionProposal", ""),
        )
        for item in _items(data, "blockers")
    )


def decode_pm_questions(data: dict[str, Any]) -> tuple[PMQuestionItem, ...]:
    return tuple(
        PMQuestionItem(title=_text(item, "title"), description=_text(item, "description", ""))
        for item in _items(data, "pmQuestions")
    )


def report_from_dict(data: dict[str, Any]) -> ReportStructured:
    """Decode a full report; sections that are absent or malformed stay ``None``."""
    sections: dict[str, Any] = {}
    for key, attr, decoder in (
        ("version", "version", decode_version),
        ("sprint", "sprint", decode_sprint),
        ("overview", "overview", decode_overview),
        ("notDone", "not_done", decode_not_done),
        ("achievements", "achievements", decode_achievements),
        ("artifacts", "artifacts", decode_artifacts),
        ("nextSprint", "next_sprint", decode_next_sprint),
        ("blockers", "blockers", decode_blockers),
        ("pmQuestions", "pm_questions", decode_pm_questions),
    ):
        if key not in data:
            continue
        try:
            sections[attr] = decoder({key: data[key]})
        except DecodeError:
            sections[attr] = None
    return ReportStructured(**sections)


# -- internals ----------------------------------------------------------------


def _object(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{name} must be an object")
    return value


def _items(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list):
        raise DecodeError(f"{key} must be an array")
    return [item for item in value if isinstance(item, dict)]


def _text(obj: dict[str, Any], key: str, default: str | None = None) -> str:
    value = obj.get(key)
    if value is None:
        if default is None:
            raise DecodeError(f"missing field {key!r}")
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:g}"
    if not isinstance(value, str):
        raise DecodeError(f"field {key!r} must be a string")
    return value


def _optional_text(obj: dict[str, Any], key: str) -> str | None:
    value = obj.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _number(obj: dict[str, Any], key: str) -> float:
    value = obj.get(key)
    if isinstance(value, bool):
        raise DecodeError(f"field {key!r} must be a number")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip().rstrip("%"))
        except ValueError:
            pass
    raise DecodeError(f"field {key!r} must be a number")
