"""Entry point for ``python -m sprint_report_generator``."""

from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
import sys

from dotenv import find_dotenv, load_dotenv

from sprint_report_generator.core.data_models import WorkflowParams, WorkflowResult
from sprint_report_generator.core.errors import ConfigError
from sprint_report_generator.core.i18n import SUPPORTED_LANGUAGES, parse_language

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def main(argv: list[str] | None = None) -> int:
    """Generate a sprint report from the command line."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    load_dotenv(".env.local", override=True)
    _configure_logging(args.verbose)

    from sprint_report_generator.app import build_workflow
    from sprint_report_generator.services.auth_manager import SECRETS, AuthManager
    from sprint_report_generator.services.config_manager import ConfigManager

    config = ConfigManager()
    auth = AuthManager(config)

    if args.clear_secrets:
        auth.clear_secrets()
        return EXIT_OK
    if args.set_secret:
        if args.set_secret not in SECRETS:
            parser.error(f"--set-secret must be one of {', '.join(sorted(SECRETS))}")
        auth.store_secret(args.set_secret, getpass.getpass(f"{args.set_secret}: "))
        return EXIT_OK
    if not args.sprint:
        parser.error("--sprint is required")

    language = parse_language(args.lang or config.language)
    offline = args.offline or config.mock_mode
    try:
        workflow = build_workflow(
            config, auth,
            language=language,
            offline=offline,
            publisher=args.publisher,
            output_dir=args.output_dir,
        )
    except ConfigError as exc:
        logger.error("%s", exc)
        missing = config.missing_settings()
        if missing:
            logger.error("Missing settings in %s: %s", config.path, ", ".join(missing))
        return EXIT_CONFIG

    result = workflow.run(WorkflowParams(
        sprint_name_or_id=args.sprint,
        dry_run=args.dry_run,
        language=language,
    ))

    if args.json:
        print(json.dumps(_result_to_dict(result), ensure_ascii=False, indent=2))
    else:
        _print_summary(result, show_report=args.dry_run)
    return EXIT_OK if result.success else EXIT_FAILED


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sprint-report",
        description="Generate a partner-facing sprint report from Jira and publish it.",
    )
    parser.add_argument("--sprint", help="Sprint name or numeric sprint id.")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Generate and validate the report but do not publish it.",
    )
    parser.add_argument(
        "--offline", action="store_true",
        help="Use built-in fixtures instead of Jira, OpenAI and Notion.",
    )
    parser.add_argument(
        "--lang", help=f"Report language ({', '.join(SUPPORTED_LANGUAGES)}).",
    )
    parser.add_argument(
        "--publisher", choices=("notion", "pdf"), default="notion",
        help="Where to publish the report (default: notion).",
    )
    parser.add_argument("--output-dir", help="Directory for PDF output.")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument(
        "--set-secret", metavar="NAME",
        help="Store a secret (jira_api_token, openai_api_key, notion_api_key) in the keyring.",
    )
    parser.add_argument(
        "--clear-secrets", action="store_true", help="Remove all stored secrets and exit.",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _result_to_dict(result: WorkflowResult) -> dict:
    data = result.collected_data
    return {
        "success": result.success,
        "state": result.state.value,
        "sprint": result.sprint,
        "stats": None if data is None else {
            "totalIssues": data.stats.total_issues,
            "doneIssues": data.stats.done_issues,
            "progressPercent": data.stats.progress_percent,
        },
        "dataValidation": result.data_validation.to_dict() if result.data_validation else None,
        "report": result.report.to_dict() if result.report else None,
        "reportValidation": (
            result.report_validation.to_dict() if result.report_validation else None
        ),
        "publishResult": (
            {"id": result.publish_result.id, "url": result.publish_result.url}
            if result.publish_result else None
        ),
        "error": result.error,
        "abortReason": result.abort_reason,
    }


def _print_summary(result: WorkflowResult, *, show_report: bool) -> None:
    out = sys.stdout
    out.write(f"Sprint: {result.sprint}\n")
    out.write(f"State:  {result.state.value}\n")
    for label, validation in (
        ("Data validation", result.data_validation),
        ("Report validation", result.report_validation),
    ):
        if validation is None:
            continue
        out.write(
            f"{label}: {'ok' if validation.is_valid else 'FAILED'} "
            f"({len(validation.errors)} error(s), {len(validation.warnings)} warning(s))\n"
        )
        for issue in validation.errors:
            out.write(f"  [error]   {issue.code}: {issue.message}\n")
        for issue in validation.warnings:
            out.write(f"  [warning] {issue.code}: {issue.message}\n")
    if show_report and result.report is not None:
        out.write(json.dumps(result.report.to_dict(), ensure_ascii=False, indent=2) + "\n")
    if result.publish_result is not None:
        out.write(f"Published: {result.publish_result.url}\n")
    if result.abort_reason:
        out.write(f"Aborted: {result.abort_reason}")
        out.write(f" ({result.error})\n" if result.error else "\n")


if __name__ == "__main__":
    raise SystemExit(main())
