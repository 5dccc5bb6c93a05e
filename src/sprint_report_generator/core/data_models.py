"""Data models for Sprint Report Generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

STATUS_NEW = "new"
STATUS_IN_PROGRESS = "in-progress"
STATUS_DONE = "done"

ALIGNMENT_LEVELS = ("strong", "medium", "weak")


@dataclass(frozen=True)
class SprintIssue:
    """A single tracker issue that belongs to the sprint."""

    key: str
    summary: str
    status: str
    status_category: str  # "new", "in-progress", "done"
    story_points: float | None = None
    assignee: str | None = None
    artifact: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status_category == STATUS_DONE


@dataclass(frozen=True)
class SprintInfo:
    """Sprint metadata with dates already formatted for display."""

    id: int
    name: str
    number: str
    start_date: str | None = None
    end_date: str | None = None
    goal: str | None = None
    goal_generated: bool = False


@dataclass(frozen=True)
class VersionMeta:
    """A release the sprint contributes to."""

    id: str
    name: str
    description: str | None = None
    release_date: str | None = None
    released: bool = False
    progress_percent: int | None = None


@dataclass(frozen=True)
class SprintStats:
    total_issues: int = 0
    done_issues: int = 0
    not_done_issues: int = 0
    total_story_points: float = 0.0
    completed_story_points: float = 0.0
    progress_percent: int = 0


@dataclass(frozen=True)
class RawSprintData:
    """What the issue tracker hands back for one sprint."""

    sprint_info: SprintInfo
    issues: tuple[SprintIssue, ...] = ()
    project_key: str | None = None


@dataclass(frozen=True)
class CollectedSprintData:
    """Everything Stage 1 gathered for a single run."""

    sprint_info: SprintInfo
    issues: tuple[SprintIssue, ...]
    demo_issues: tuple[SprintIssue, ...]
    stats: SprintStats
    version_meta: VersionMeta | None = None
    language: str = "en"


# -- validation ---------------------------------------------------------------


@dataclass(frozen=True)
class GoalAlignment:
    level: str  # "strong", "medium", "weak", "unknown"
    comment: str


@dataclass(frozen=True)
class BlockContext:
    """Shared, read-only input for every report section."""

    sprint_info: SprintInfo
    issues: tuple[SprintIssue, ...]
    demo_issues: tuple[SprintIssue, ...]
    stats: SprintStats
    version_meta: VersionMeta | None = None
    goal_alignment: GoalAlignment | None = None
    language: str = "en"

    @property
    def done_issues(self) -> list[SprintIssue]:
        return [i for i in self.issues if i.is_done]

    @property
    def not_done_issues(self) -> list[SprintIssue]:
        return [i for i in self.issues if not i.is_done]

    @property
    def next_sprint_number(self) -> str:
        """The next ordinal when the current one is numeric, otherwise empty."""
        number = self.sprint_info.number
        return str(int(number) + 1) if number.isdigit() else ""


@dataclass(frozen=True)
class PartnerReadiness:
    is_partner_ready: bool
    comments: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationIssue:
    """A single error or warning raised by a validation rule."""

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.field is not None:
            out["field"] = self.field
        if self.details is not None:
            out["details"] = dict(self.details)
        return out


@dataclass(frozen=True)
class ValidationResult:
    """Ordered errors and warnings from one validation pass.

    ``is_valid`` is derived from ``errors`` so it can never disagree with them.
    """

    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()
    goal_alignment: GoalAlignment | None = None
    partner_readiness: PartnerReadiness | None = None

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def codes(self) -> list[str]:
        """Return error codes followed by warning codes."""
        return [e.code for e in self.errors] + [w.code for w in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if self.goal_alignment is not None:
            out["goalIssueMatch"] = {
                "matchLevel": self.goal_alignment.level,
                "comment": self.goal_alignment.comment,
            }
        if self.partner_readiness is not None:
            out["partnerReadiness"] = {
                "isPartnerReady": self.partner_readiness.is_partner_ready,
                "comments": list(self.partner_readiness.comments),
            }
        return out


# -- report blocks ------------------------------------------------------------


@dataclass(frozen=True)
class VersionBlock:
    number: str
    deadline: str
    goal: str
    progress_percent: float


@dataclass(frozen=True)
class SprintBlock:
    number: str
    start_date: str
    end_date: str
    goal: str
    progress_percent: float


@dataclass(frozen=True)
class NotDoneItem:
    title: str
    reason: str
    required_for_completion: str
    new_deadline: str


@dataclass(frozen=True)
class AchievementItem:
    title: str
    description: str


@dataclass(frozen=True)
class ArtifactItem:
    title: str
    description: str
    jira_link: str | None = None
    attachments_note: str | None = None


@dataclass(frozen=True)
class NextSprintPlan:
    sprint_number: str
    goal: str


@dataclass(frozen=True)
class BlockerItem:
    title: str
    description: str
    resolution_proposal: str


@dataclass(frozen=True)
class PMQuestionItem:
    title: str
    description: str


# Section keys as they appear in the report JSON, in page order.
REPORT_SECTIONS = (
    "version",
    "sprint",
    "overview",
    "notDone",
    "achievements",
    "artifacts",
    "nextSprint",
    "blockers",
    "pmQuestions",
)


@dataclass(frozen=True)
class ReportStructured:
    """The assembled report.

    Sections are optional so that a report decoded from external JSON can be
    checked for missing parts; the block generator always fills all nine.
    """

    version: VersionBlock | None = None
    sprint: SprintBlock | None = None
    overview: str | None = None
    not_done: tuple[NotDoneItem, ...] | None = None
    achievements: tuple[AchievementItem, ...] | None = None
    artifacts: tuple[ArtifactItem, ...] | None = None
    next_sprint: NextSprintPlan | None = None
    blockers: tuple[BlockerItem, ...] | None = None
    pm_questions: tuple[PMQuestionItem, ...] | None = None

    def section(self, key: str) -> Any:
        """Return a section by its JSON key (``notDone``, ``pmQuestions``, ...)."""
        return getattr(self, _SECTION_ATTRS[key])

    def to_dict(self) -> dict[str, Any]:
        """Render the camelCase JSON shape used in prompts and CLI output."""
        out: dict[str, Any] = {}
        if self.version is not None:
            v = self.version
            out["version"] = {
                "number": v.number,
                "deadline": v.deadline,
                "goal": v.goal,
                "progressPercent": v.progress_percent,
            }
        if self.sprint is not None:
            s = self.sprint
            out["sprint"] = {
                "number": s.number,
                "startDate": s.start_date,
                "endDate": s.end_date,
                "goal": s.goal,
                "progressPercent": s.progress_percent,
            }
        if self.overview is not None:
            out["overview"] = self.overview
        if self.not_done is not None:
            out["notDone"] = [
                {
                    "title": i.title,
                    "reason": i.reason,
                    "requiredForCompletion": i.required_for_completion,
                    "newDeadline": i.new_deadline,
                }
                for i in self.not_done
            ]
        if self.achievements is not None:
            out["achievements"] = [
                {"title": i.title, "description": i.description} for i in self.achievements
            ]
        if self.artifacts is not None:
            out["artifacts"] = [
                {
                    "title": i.title,
                    "description": i.description,
                    "jiraLink": i.jira_link,
                    "attachmentsNote": i.attachments_note,
                }
                for i in self.artifacts
            ]
        if self.next_sprint is not None:
            out["nextSprint"] = {
                "sprintNumber": self.next_sprint.sprint_number,
                "goal": self.next_sprint.goal,
            }
        if self.blockers is not None:
            out["blockers"] = [
                {
                    "title": i.title,
                    "description": i.description,
                    "resolutionProposal": i.resolution_proposal,
                }
                for i in self.blockers
            ]
        if self.pm_questions is not None:
            out["pmQuestions"] = [
                {"title": i.title, "description": i.description} for i in self.pm_questions
            ]
        return out


_SECTION_ATTRS = {
    "version": "version",
    "sprint": "sprint",
    "overview": "overview",
    "notDone": "not_done",
    "achievements": "achievements",
    "artifacts": "artifacts",
    "nextSprint": "next_sprint",
    "blockers": "blockers",
    "pmQuestions": "pm_questions",
}


# -- workflow -----------------------------------------------------------------


@dataclass(frozen=True)
class PublishResult:
    id: str
    url: str


@dataclass(frozen=True)
class WorkflowParams:
    """Input for a single workflow run."""

    sprint_name_or_id: str
    version_meta: VersionMeta | None = None
    dry_run: bool = False
    language: str = "en"


class WorkflowState(str, Enum):
    COLLECTING = "collecting"
    DATA_VALIDATING = "data-validating"
    ABORTED_DATA_INVALID = "aborted-data-invalid"
    GENERATING = "generating"
    REPORT_VALIDATING = "report-validating"
    ABORTED_REPORT_INVALID = "aborted-report-invalid"
    DRY_RUN_COMPLETE = "dry-run-complete"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    PUBLISH_FAILED = "publish-failed"
    FAILED = "failed"


class AbortReason:
    DATA_COLLECTION_FAILED = "Data collection failed"
    DATA_VALIDATION_FAILED = "Data validation failed"
    REPORT_GENERATION_FAILED = "Report generation failed"
    REPORT_VALIDATION_FAILED = "Report validation failed"
    PUBLISH_FAILED = "Publish failed"


@dataclass
class WorkflowResult:
    """Outcome of one workflow run.

    ``success`` is True only for a completed dry run or a published report.
    """

    state: WorkflowState
    sprint: str
    collected_data: CollectedSprintData | None = None
    data_validation: ValidationResult | None = None
    report: ReportStructured | None = None
    report_validation: ValidationResult | None = None
    publish_result: PublishResult | None = None
    error: str | None = None
    abort_reason: str | None = None
    transitions: list[WorkflowState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state in (WorkflowState.DRY_RUN_COMPLETE, WorkflowState.PUBLISHED)
