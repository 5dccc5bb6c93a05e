"""Wire collaborators into a ready-to-run workflow."""

from __future__ import annotations

import logging
from pathlib import Path

from platformdirs import user_documents_dir

from sprint_report_generator.core.block_generator import BlockGenerator
from sprint_report_generator.core.errors import ConfigError
from sprint_report_generator.core.goal_alignment import GoalAlignmentAssessor, SprintGoalWriter
from sprint_report_generator.core.jira_client import JiraClient
from sprint_report_generator.core.llm_client import OpenAITextClient
from sprint_report_generator.core.normalizer import SprintCollector
from sprint_report_generator.core.notion_publisher import NotionPublisher
from sprint_report_generator.core.offline import OfflinePublisher, OfflineTracker
from sprint_report_generator.core.pdf_generator import PdfPublisher
from sprint_report_generator.core.readiness import PartnerReadinessChecker
from sprint_report_generator.core.workflow import Publisher, SprintReportWorkflow
from sprint_report_generator.services.auth_manager import (
    NOTION_KEY,
    OPENAI_KEY,
    AuthManager,
)
from sprint_report_generator.services.config_manager import APP_NAME, ConfigManager

logger = logging.getLogger(__name__)

PUBLISHERS = ("notion", "pdf")


def build_workflow(
    config: ConfigManager,
    auth: AuthManager,
    *,
    language: str,
    offline: bool = False,
    publisher: str = "notion",
    output_dir: str | Path | None = None,
) -> SprintReportWorkflow:
    """Create a workflow for live services, or for fixtures when *offline*.

    A live run without an OpenAI key still works: sections fall back to
    offline text and goal alignment uses the keyword heuristic.
    Raises :class:`ConfigError` when a live run lacks Jira or Notion settings.
    """
    demo_count = config.demo_count

    if offline:
        logger.info("Offline mode: no external services will be called")
        return SprintReportWorkflow(
            SprintCollector(OfflineTracker(language), demo_count=demo_count),
            BlockGenerator(None),
            _publisher(config, auth, publisher, language, output_dir, offline=True),
            assessor=GoalAlignmentAssessor(language=language, offline=True),
            readiness_checker=PartnerReadinessChecker(offline=True),
        )

    jira = JiraClient(config)
    if not jira.connect_from_config(auth):
        raise ConfigError("Could not connect to Jira; check jira_url, jira_email and JIRA_API_TOKEN")

    api_key = auth.get_secret(OPENAI_KEY)
    llm = OpenAITextClient(api_key, config.get("openai_model")) if api_key else None
    if llm is None:
        logger.warning("OPENAI_API_KEY is not set; report text will use offline templates")

    return SprintReportWorkflow(
        SprintCollector(
            jira, demo_count=demo_count, goal_writer=SprintGoalWriter(llm) if llm else None,
        ),
        BlockGenerator(llm),
        _publisher(config, auth, publisher, language, output_dir, offline=False),
        assessor=GoalAlignmentAssessor(llm, language=language),
        readiness_checker=PartnerReadinessChecker(llm),
    )


def _publisher(
    config: ConfigManager,
    auth: AuthManager,
    kind: str,
    language: str,
    output_dir: str | Path | None,
    *,
    offline: bool,
) -> Publisher:
    if kind == "pdf":
        target = output_dir or config.get("output_dir") or Path(user_documents_dir()) / APP_NAME
        return PdfPublisher(target, language=language)
    if kind != "notion":
        raise ConfigError(f"Unknown publisher {kind!r}; expected one of {PUBLISHERS}")
    if offline:
        return OfflinePublisher()

    api_key = auth.get_secret(NOTION_KEY)
    parent = config.get("notion_parent_page_id")
    if not api_key or not parent:
        raise ConfigError("Publishing to Notion requires NOTION_API_KEY and notion_parent_page_id")
    return NotionPublisher(api_key, parent, language=language)
