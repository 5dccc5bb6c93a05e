"""Generate the nine report sections concurrently, each with its own fallback."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from sprint_report_generator.core import report_decoder as dec
from sprint_report_generator.core.data_models import (
    BlockContext,
    CollectedSprintData,
    NextSprintPlan,
    ReportStructured,
    SprintBlock,
    ValidationResult,
    VersionBlock,
)
from sprint_report_generator.core.llm_client import TextGenerator, safe_complete
from sprint_report_generator.core.offline import build_offline_report
from sprint_report_generator.core.prompts import (
    BLOCK_NAMES,
    block_system_prompt,
    build_block_prompt,
)

logger = logging.getLogger(__name__)

_NO_VALUE = "—"


@dataclass(frozen=True)
class BlockOutcome:
    name: str
    value: Any
    generated: bool
    error: str | None = None


def build_context(data: CollectedSprintData, validation: ValidationResult | None) -> BlockContext:
    return BlockContext(
        sprint_info=data.sprint_info,
        issues=data.issues,
        demo_issues=data.demo_issues,
        stats=data.stats,
        version_meta=data.version_meta,
        goal_alignment=validation.goal_alignment if validation else None,
        language=data.language,
    )


# -- fallbacks ----------------------------------------------------------------


def version_fallback(ctx: BlockContext) -> VersionBlock:
    v = ctx.version_meta
    if v is None:
        return VersionBlock(
            number="1", deadline=_NO_VALUE, goal="", progress_percent=ctx.stats.progress_percent,
        )
    return VersionBlock(
        number=v.name or "1",
        deadline=v.release_date or _NO_VALUE,
        goal=v.description or "",
        progress_percent=(
            v.progress_percent if v.progress_percent is not None else ctx.stats.progress_percent
        ),
    )


def sprint_fallback(ctx: BlockContext) -> SprintBlock:
    info = ctx.sprint_info
    return SprintBlock(
        number=info.number,
        start_date=info.start_date or _NO_VALUE,
        end_date=info.end_date or _NO_VALUE,
        goal=info.goal or "",
        progress_percent=ctx.stats.progress_percent,
    )


def next_sprint_fallback(ctx: BlockContext) -> NextSprintPlan:
    return NextSprintPlan(sprint_number=ctx.next_sprint_number, goal="")


# name -> (decoder, fallback factory)
_BLOCKS: dict[str, tuple[Callable[[dict[str, Any]], Any], Callable[[BlockContext], Any]]] = {
    "version": (dec.decode_version, version_fallback),
    "sprint": (dec.decode_sprint, sprint_fallback),
    "overview": (dec.decode_overview, lambda ctx: ""),
    "not_done": (dec.decode_not_done, lambda ctx: ()),
    "achievements": (dec.decode_achievements, lambda ctx: ()),
    "artifacts": (dec.decode_artifacts, lambda ctx: ()),
    "next_sprint": (dec.decode_next_sprint, next_sprint_fallback),
    "blockers": (dec.decode_blockers, lambda ctx: ()),
    "pm_questions": (dec.decode_pm_questions, lambda ctx: ()),
}


class BlockGenerator:
    """Fan the nine section requests out to a thread pool and join them all.

    A failing section never affects the others: it is replaced by its
    fallback and the report is still assembled in full.
    """

    def __init__(self, llm: TextGenerator | None = None, *, max_workers: int = len(BLOCK_NAMES)) -> None:
        self._llm = llm
        self._max_workers = max_workers

    def generate(
        self, data: CollectedSprintData, validation: ValidationResult | None = None
    ) -> ReportStructured:
        ctx = build_context(data, validation)
        if self._llm is None:
            return build_offline_report(ctx)

        logger.info("Generating %d report sections for sprint %s", len(BLOCK_NAMES), ctx.sprint_info.name)
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {name: pool.submit(self._generate_block, name, ctx) for name in BLOCK_NAMES}
            wait(futures.values())
        outcomes = {name: future.result() for name, future in futures.items()}

        fallbacks = [o.name for o in outcomes.values() if not o.generated]
        logger.info(
            "Sections generated: %d, fallbacks: %d%s",
            len(outcomes) - len(fallbacks), len(fallbacks),
            f" ({', '.join(fallbacks)})" if fallbacks else "",
        )
        return ReportStructured(
            version=outcomes["version"].value,
            sprint=outcomes["sprint"].value,
            overview=outcomes["overview"].value,
            not_done=outcomes["not_done"].value,
            achievements=outcomes["achievements"].value,
            artifacts=outcomes["artifacts"].value,
            next_sprint=outcomes["next_sprint"].value,
            blockers=outcomes["blockers"].value,
            pm_questions=outcomes["pm_questions"].value,
        )

    def _generate_block(self, name: str, ctx: BlockContext) -> BlockOutcome:
        decoder, fallback = _BLOCKS[name]
        assert self._llm is not None
        result = safe_complete(
            self._llm, block_system_prompt(ctx.language), build_block_prompt(name, ctx)
        )
        if not result.ok:
            logger.warning("Section %s failed, using fallback: %s", name, result.error)
            return BlockOutcome(name, fallback(ctx), generated=False, error=result.error)
        try:
            value = decoder(result.data)
        except Exception as exc:
            logger.warning("Section %s returned an unusable response, using fallback: %s", name, exc)
            return BlockOutcome(name, fallback(ctx), generated=False, error=str(exc))
        logger.debug("Section %s generated", name)
        return BlockOutcome(name, value, generated=True)
