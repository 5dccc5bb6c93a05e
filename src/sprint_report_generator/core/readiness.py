"""Ask the text-generation service whether a report is fit for partners."""

from __future__ import annotations

import json
import logging

from sprint_report_generator.core.data_models import (
    CollectedSprintData,
    PartnerReadiness,
    ReportStructured,
)
from sprint_report_generator.core.llm_client import TextGenerator, safe_complete
from sprint_report_generator.core.prompts import (
    build_partner_readiness_prompt,
    summarize_for_readiness,
    validation_system_prompt,
)

logger = logging.getLogger(__name__)


class PartnerReadinessChecker:
    """One-call partner-readiness assessment.

    Returns ``None`` when the check could not be made, so callers can tell
    "not ready" apart from "unknown".
    """

    def __init__(self, llm: TextGenerator | None = None, *, offline: bool = False) -> None:
        self._llm = llm
        self._offline = offline

    def check(
        self, report: ReportStructured, data: CollectedSprintData
    ) -> PartnerReadiness | None:
        if self._offline:
            logger.info("Offline mode: report assumed partner-ready")
            return PartnerReadiness(is_partner_ready=True)
        if self._llm is None:
            return None

        report_json = json.dumps(report.to_dict(), ensure_ascii=False, indent=2)
        summary = summarize_for_readiness(data.sprint_info, data.stats)
        result = safe_complete(
            self._llm,
            validation_system_prompt(data.language),
            build_partner_readiness_prompt(report_json, summary, data.language),
        )
        if not result.ok:
            return None

        ready = result.data.get("isPartnerReady")
        if not isinstance(ready, bool):
            logger.warning("Partner readiness response has no boolean verdict")
            return None
        raw_comments = result.data.get("comments") or []
        comments = tuple(str(c) for c in raw_comments if c) if isinstance(raw_comments, list) else ()
        logger.info("Partner readiness: %s (%d comment(s))", ready, len(comments))
        return PartnerReadiness(is_partner_ready=ready, comments=comments)
