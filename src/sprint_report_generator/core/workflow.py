"""Three-stage report workflow: collect and validate, generate, validate and publish."""

from __future__ import annotations

import logging
from typing import Protocol

from sprint_report_generator.core.block_generator import BlockGenerator
from sprint_report_generator.core.data_models import (
    AbortReason,
    CollectedSprintData,
    PublishResult,
    ReportStructured,
    ValidationResult,
    WorkflowParams,
    WorkflowResult,
    WorkflowState,
)
from sprint_report_generator.core.normalizer import SprintCollector
from sprint_report_generator.core.validation import (
    Assessor,
    ReadinessChecker,
    validate_data,
    validate_report,
)

logger = logging.getLogger(__name__)

S = WorkflowState

TRANSITIONS: dict[WorkflowState, frozenset[WorkflowState]] = {
    S.COLLECTING: frozenset({S.DATA_VALIDATING, S.FAILED}),
    S.DATA_VALIDATING: frozenset({S.ABORTED_DATA_INVALID, S.GENERATING, S.FAILED}),
    S.GENERATING: frozenset({S.REPORT_VALIDATING, S.FAILED}),
    S.REPORT_VALIDATING: frozenset({
        S.ABORTED_REPORT_INVALID, S.DRY_RUN_COMPLETE, S.PUBLISHING, S.FAILED,
    }),
    S.PUBLISHING: frozenset({S.PUBLISHED, S.PUBLISH_FAILED}),
    S.ABORTED_DATA_INVALID: frozenset(),
    S.ABORTED_REPORT_INVALID: frozenset(),
    S.DRY_RUN_COMPLETE: frozenset(),
    S.PUBLISHED: frozenset(),
    S.PUBLISH_FAILED: frozenset(),
    S.FAILED: frozenset(),
}


class InvalidTransition(Exception):
    """Raised when the workflow attempts a transition the table does not allow."""

    def __init__(self, from_state: WorkflowState, to_state: WorkflowState) -> None:
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


class Publisher(Protocol):
    def create_report_page(self, sprint_name: str, report: ReportStructured) -> PublishResult: ...


class SprintReportWorkflow:
    """Run one report through all stages.

    The instance holds only its collaborators; each :meth:`run` starts from
    a fresh result.
    """

    def __init__(
        self,
        collector: SprintCollector,
        block_generator: BlockGenerator,
        publisher: Publisher,
        *,
        assessor: Assessor | None = None,
        readiness_checker: ReadinessChecker | None = None,
    ) -> None:
        self._collector = collector
        self._block_generator = block_generator
        self._publisher = publisher
        self._assessor = assessor
        self._readiness_checker = readiness_checker

    # -- stages ---------------------------------------------------------------

    def collect(self, params: WorkflowParams) -> CollectedSprintData:
        return self._collector.collect(params)

    def validate_data(self, data: CollectedSprintData) -> ValidationResult:
        return validate_data(data, self._assessor)

    def generate_blocks(
        self, data: CollectedSprintData, validation: ValidationResult
    ) -> ReportStructured:
        return self._block_generator.generate(data, validation)

    def validate_report(
        self, report: ReportStructured, data: CollectedSprintData
    ) -> ValidationResult:
        return validate_report(report, data, self._readiness_checker)

    # -- composed run ---------------------------------------------------------

    def run(self, params: WorkflowParams) -> WorkflowResult:
        result = WorkflowResult(
            state=S.COLLECTING, sprint=params.sprint_name_or_id, transitions=[S.COLLECTING],
        )
        logger.info(
            "Starting sprint report workflow for %r (dry_run=%s, language=%s)",
            params.sprint_name_or_id, params.dry_run, params.language,
        )

        try:
            data = self.collect(params)
        except Exception as exc:
            logger.error("Sprint data collection failed: %s", exc)
            return _fail(result, AbortReason.DATA_COLLECTION_FAILED, exc)
        result.collected_data = data
        result.sprint = data.sprint_info.name or params.sprint_name_or_id

        _advance(result, S.DATA_VALIDATING)
        try:
            result.data_validation = self.validate_data(data)
        except Exception as exc:
            logger.exception("Data validation raised unexpectedly")
            return _fail(result, AbortReason.DATA_VALIDATION_FAILED, exc)
        if not result.data_validation.is_valid:
            logger.warning("Aborting: collected data failed validation")
            _advance(result, S.ABORTED_DATA_INVALID)
            result.abort_reason = AbortReason.DATA_VALIDATION_FAILED
            return result

        _advance(result, S.GENERATING)
        try:
            result.report = self.generate_blocks(data, result.data_validation)
        except Exception as exc:
            logger.exception("Report generation raised unexpectedly")
            return _fail(result, AbortReason.REPORT_GENERATION_FAILED, exc)

        _advance(result, S.REPORT_VALIDATING)
        try:
            result.report_validation = self.validate_report(result.report, data)
        except Exception as exc:
            logger.exception("Report validation raised unexpectedly")
            return _fail(result, AbortReason.REPORT_VALIDATION_FAILED, exc)
        if not result.report_validation.is_valid:
            logger.warning("Aborting: generated report failed validation")
            _advance(result, S.ABORTED_REPORT_INVALID)
            result.abort_reason = AbortReason.REPORT_VALIDATION_FAILED
            return result

        if params.dry_run:
            logger.info("Dry run: skipping publication")
            _advance(result, S.DRY_RUN_COMPLETE)
            return result

        _advance(result, S.PUBLISHING)
        try:
            result.publish_result = self._publisher.create_report_page(result.sprint, result.report)
        except Exception as exc:
            logger.error("Publishing failed: %s", exc)
            _advance(result, S.PUBLISH_FAILED)
            result.error = str(exc) or exc.__class__.__name__
            result.abort_reason = AbortReason.PUBLISH_FAILED
            return result

        _advance(result, S.PUBLISHED)
        logger.info("Report published: %s", result.publish_result.url)
        return result


def _advance(result: WorkflowResult, to_state: WorkflowState) -> None:
    if to_state not in TRANSITIONS[result.state]:
        raise InvalidTransition(result.state, to_state)
    logger.debug("Workflow: %s -> %s", result.state.value, to_state.value)
    result.state = to_state
    result.transitions.append(to_state)


def _fail(result: WorkflowResult, reason: str, exc: Exception) -> WorkflowResult:
    _advance(result, S.FAILED)
    result.error = str(exc) or exc.__class__.__name__
    result.abort_reason = reason
    return result
