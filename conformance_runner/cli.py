"""CLI entry point for the conformance runner."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from conformance_runner.errors import ConfigurationError
from conformance_runner.expander import (
    expand_declared,
    expand_selection,
    load_declared_configs,
    parse_list,
)
from conformance_runner.models.config import RunConfig, RunSelection
from conformance_runner.models.settings import RunSettings
from conformance_runner.models.summary import IterationSummary
from conformance_runner.orchestrator import (
    Orchestrator,
    list_suite_cases,
    overall_exit_code,
)
from conformance_runner.reporting import (
    Notifier,
    ReportWriter,
    WebhookNotifier,
    format_report,
    log_run_summary,
)
from conformance_runner.sources.manifest import load_case_source
from conformance_runner.targets.loading import (
    TargetNotFoundError,
    available_targets,
    load_target_manifest,
)


def parse_suite_filters(values: Sequence[str]) -> Mapping[str, str]:
    """Parse repeated ``SUITE=FILTER`` options into a mapping.

    Raises:
        ConfigurationError: If a value has no ``=`` separator

    """
    filters: dict[str, str] = {}
    for value in values:
        suite, sep, case_filter = value.partition("=")
        if not sep or not suite.strip():
            raise ConfigurationError(
                f"Invalid suite filter '{value}', expected SUITE=FILTER"
            )
        filters[suite.strip()] = case_filter.strip()
    return filters


async def build_configs(
    selection: RunSelection,
    config_path: Path | None,
    available_suites: Sequence[str],
) -> Sequence[RunConfig]:
    """Expand either the declared config file or the command line selection."""
    log = logging.getLogger("conformance_runner")

    if config_path is not None:
        log.info("Using declared configs from %s; ignoring selection", config_path)
        entries = await load_declared_configs(config_path)
        return expand_declared(entries, selection.browser_args)

    return expand_selection(selection, available_suites)


def print_listing(listing: Mapping[str, Sequence[str]]) -> None:
    """Print indexed case listings, one block per suite."""
    for suite, case_ids in listing.items():
        print(f"\n=== Suite: {suite.upper()} ===")
        for idx, case_id in enumerate(case_ids):
            print(f"[{idx}] {case_id}")


def format_output(summaries: Sequence[IterationSummary]) -> dict[str, Any]:
    """Format all iteration summaries for JSON output."""
    return {
        "iterations": len(summaries),
        "exit_code": overall_exit_code(summaries),
        "reports": [format_report(summary.report) for summary in summaries],
    }


@asynccontextmanager
async def open_notifier(
    settings: RunSettings,
) -> AsyncGenerator[Notifier | None, None]:
    """Yield a webhook notifier when a recipient and webhook are configured."""
    if settings.notify_to and settings.notify_url:
        async with WebhookNotifier.from_url(settings.notify_url) as notifier:
            yield notifier
    else:
        yield None


async def run(
    *,
    target_key: str,
    target_config_json: str,
    cases_path: Path,
    settings: RunSettings,
    selection: RunSelection,
    config_path: Path | None = None,
    list_only: bool = False,
) -> int:
    """Run (or list) the selected suites and return exit code."""
    log = logging.getLogger("conformance_runner")

    try:
        case_source = await load_case_source(cases_path)
        configs = await build_configs(selection, config_path, case_source.suites())
    except ConfigurationError as e:
        log.error("%s", e)
        return 1

    if list_only:
        print_listing(await list_suite_cases(case_source, configs))
        return 0

    if not configs:
        log.info("No run configs selected")
        print(json.dumps({"iterations": 0, "exit_code": 0, "reports": []}))
        return 0

    log.info("Loading target: %s", target_key)
    try:
        manifest = load_target_manifest(target_key)
        target_config = manifest.config_cls.model_validate(
            json.loads(target_config_json)
        )
    except (TargetNotFoundError, json.JSONDecodeError, ValidationError) as e:
        log.error("Invalid target configuration: %s", e)
        return 1

    log.info(
        "Running %d config(s) x %d iteration(s) with %d job(s)...",
        len(configs),
        settings.repeat,
        settings.jobs,
    )

    report_writer = (
        ReportWriter(report_dir=settings.report_dir) if settings.report_dir else None
    )
    async with (
        manifest.target_factory(target_config) as target,
        open_notifier(settings) as notifier,
    ):
        orchestrator = Orchestrator(
            target=target,
            case_source=case_source,
            settings=settings,
            report_writer=report_writer,
            notifier=notifier,
        )
        summaries = await orchestrator.run(configs)

    log_run_summary(log, [summary.report for summary in summaries])
    print(
        json.dumps(format_output(summaries), indent=2, ensure_ascii=False, default=str)
    )

    return overall_exit_code(summaries)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Run browser conformance suites against an execution target"
    )
    parser.add_argument(
        "--cases",
        type=Path,
        required=True,
        help="Path to the case manifest (YAML mapping of suite to case ids)",
    )
    parser.add_argument(
        "--target",
        default="http",
        help=f"Execution target key (installed: {', '.join(available_targets())})",
    )
    parser.add_argument(
        "--target-config",
        default="{}",
        help="JSON configuration for the execution target",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON/YAML list of named configs; overrides --suite/--device",
    )
    parser.add_argument(
        "--suite",
        default="wpt",
        help="Comma-separated suites to run, or 'all'",
    )
    parser.add_argument(
        "--device",
        default="gpu",
        help="Comma-separated devices (cpu, gpu, npu)",
    )
    parser.add_argument(
        "--case",
        help="Comma-separated case name substrings for every suite",
    )
    parser.add_argument(
        "--suite-case",
        action="append",
        default=[],
        metavar="SUITE=FILTER",
        help="Case filter for one suite (repeatable)",
    )
    parser.add_argument(
        "--range",
        dest="index_range",
        help="Index range into the suite listing (e.g., '3-10', '5-', '7')",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the cases of the selected suites and exit",
    )
    parser.add_argument("--jobs", type=int, default=4, help="Parallel case workers")
    parser.add_argument("--repeat", type=int, default=1, help="Number of iterations")
    parser.add_argument(
        "--browser-arg",
        help="Extra browser launch arguments, separated by spaces",
    )
    parser.add_argument(
        "--skip-retry",
        action="store_true",
        help="Skip the retry pass for failed cases",
    )
    parser.add_argument(
        "--retry-timeouts",
        action="store_true",
        help="Also retry cases that timed out",
    )
    parser.add_argument(
        "--case-timeout",
        type=float,
        help="Per-case timeout in seconds",
    )
    parser.add_argument(
        "--report-dir",
        type=Path,
        help="Directory to write one JSON report per iteration",
    )
    parser.add_argument("--notify-to", help="Recipient of iteration reports")
    parser.add_argument(
        "--notify-url",
        help="Webhook that delivers reports to --notify-to",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = RunSettings(
            jobs=args.jobs,
            repeat=args.repeat,
            skip_retry=args.skip_retry,
            retry_timeouts=args.retry_timeouts,
            case_timeout=args.case_timeout,
            report_dir=args.report_dir,
            notify_to=args.notify_to,
            notify_url=args.notify_url,
        )
        selection = RunSelection(
            devices=parse_list(args.device),
            suites=parse_list(args.suite),
            case_filters=parse_suite_filters(args.suite_case),
            default_filter=args.case,
            index_range=args.index_range,
            browser_args=args.browser_arg,
        )
    except (ValidationError, ConfigurationError) as e:
        parser.error(str(e))

    exit_code = asyncio.run(
        run(
            target_key=args.target,
            target_config_json=args.target_config,
            cases_path=args.cases,
            settings=settings,
            selection=selection,
            config_path=args.config,
            list_only=args.list,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
