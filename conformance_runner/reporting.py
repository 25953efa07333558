"""Persisting iteration reports and sending them to recipients."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any

import aiohttp

from conformance_runner.errors import ReportWriteFailure
from conformance_runner.models.result import CaseResult
from conformance_runner.models.summary import IterationReport

log = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    "pass": "✓",
    "fail": "✗",
    "error": "!",
    "timeout": "⏱",
    "unknown": "?",
}


def format_result(result: CaseResult) -> dict[str, Any]:
    """Format one case result for JSON output."""
    data = asdict(result)
    data["verdict"] = str(result.verdict)
    return data


def format_report(report: IterationReport) -> dict[str, Any]:
    """Format an iteration report for JSON output."""
    return {
        "iteration": report.iteration_index,
        "total_iterations": report.total_iterations,
        "suites": list(report.suite_names),
        "subtitle": report.subtitle,
        "total": report.counts.total,
        "passed": report.counts.passed,
        "failed": report.counts.failed,
        "errors": report.counts.errors,
        "timeouts": report.counts.timeouts,
        "unknown": report.counts.unknown,
        "wall_time_sec": round(report.wall_time_sec, 2),
        "sum_exec_time_sec": round(report.sum_exec_time_sec, 2),
        "speedup": round(report.speedup, 2),
        "succeeded": report.succeeded,
        "aborted": report.aborted,
        "config_errors": list(report.config_errors),
        "environment": dict(report.environment) if report.environment else None,
        "groups": {
            name: [format_result(r) for r in results]
            for name, results in report.groups.items()
        },
        "results": [format_result(r) for r in report.results],
    }


def dump_report(report: IterationReport) -> str:
    """Serialize a report; values JSON cannot represent are written as strings."""
    return json.dumps(format_report(report), indent=2, ensure_ascii=False, default=str)


def report_filename(timestamp: datetime, iteration: int, total_iterations: int) -> str:
    """Name of the report file for one iteration.

    A single-iteration run gets ``<timestamp>.json``; repeated runs add an
    ``_iter<n>`` suffix so every iteration keeps its own file.
    """
    suffix = f"_iter{iteration}" if total_iterations > 1 else ""
    return f"{timestamp.strftime('%Y%m%d%H%M%S')}{suffix}.json"


@dataclass(frozen=True, kw_only=True)
class ReportWriter:
    """Writes one JSON report file per iteration."""

    report_dir: Path

    async def write(
        self, report: IterationReport, timestamp: datetime | None = None
    ) -> Path:
        """Persist a report and return its path.

        Raises:
            ReportWriteFailure: If the report directory or file cannot be written

        """
        path = self.report_dir / report_filename(
            timestamp or datetime.now(),
            report.iteration_index,
            report.total_iterations,
        )
        try:
            content = dump_report(report)
        except (TypeError, ValueError) as e:
            raise ReportWriteFailure(f"Cannot serialize report {path}: {e}") from e

        try:
            await asyncio.to_thread(self._write, path, content)
        except OSError as e:
            raise ReportWriteFailure(f"Cannot write report {path}: {e}") from e

        log.info("Report written: %s", path)
        return path

    def _write(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


class Notifier(ABC):
    """Delivers iteration reports to a recipient."""

    @abstractmethod
    async def send(self, recipient: str, report: IterationReport) -> None:
        """Send a report to a recipient."""


@dataclass(frozen=True, kw_only=True)
class WebhookNotifier(Notifier):
    """Posts reports to a webhook that forwards them by mail."""

    url: str
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_url(cls, url: str) -> AsyncGenerator["WebhookNotifier", None]:
        """Create notifier with managed HTTP session lifecycle."""
        async with aiohttp.ClientSession(
            json_serialize=partial(json.dumps, default=str)
        ) as session:
            yield cls(url=url, session=session)

    async def send(self, recipient: str, report: IterationReport) -> None:
        """Post the formatted report for one recipient."""
        payload = {
            "to": recipient,
            "subject": (
                f"Conformance report: {', '.join(report.suite_names)} "
                f"({report.counts.passed}/{report.counts.total} passed)"
            ),
            "report": format_report(report),
        }
        async with self.session.post(self.url, json=payload) as response:
            if response.status >= 300:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to send report to {recipient}: {response.status} {text}"
                )
        log.info("Report sent to %s", recipient)


def log_iteration_summary(log: logging.Logger, report: IterationReport) -> None:
    """Log a formatted summary table of one iteration."""
    log.info("=" * 80)
    if report.total_iterations > 1:
        log.info(
            "Results Summary (iteration %d/%d):",
            report.iteration_index,
            report.total_iterations,
        )
    else:
        log.info("Results Summary:")
    log.info("=" * 80)

    for result in report.final_results:
        log.info(
            "%s [%s] %s (%s/%s): %s (%.0fms, attempt %d)",
            STATUS_SYMBOLS.get(str(result.verdict), "?"),
            result.config_name,
            result.case_id,
            result.suite,
            result.device,
            result.verdict,
            result.execution_time_ms,
            result.attempt,
        )
        if result.diagnostic and result.verdict != "pass":
            log.info("  Diagnostic: %s", result.diagnostic)

    for error in report.config_errors:
        log.info("✗ Config failed: %s", error)
    if report.aborted:
        log.info("✗ Iteration aborted: %s", report.aborted)

    counts = report.counts
    log.info(
        "Total: %d | pass: %d | fail: %d | error: %d | timeout: %d | unknown: %d",
        counts.total,
        counts.passed,
        counts.failed,
        counts.errors,
        counts.timeouts,
        counts.unknown,
    )
    log.info(
        "Wall time: %.2fs | Sum of case times: %.2fs | Speedup: %.2fx",
        report.wall_time_sec,
        report.sum_exec_time_sec,
        report.speedup,
    )


def log_run_summary(log: logging.Logger, reports: Sequence[IterationReport]) -> None:
    """Log one line per iteration when a run was repeated."""
    if len(reports) < 2:
        return
    log.info("=" * 80)
    log.info("Run Summary:")
    for report in reports:
        counts = report.counts
        log.info(
            "%s Iteration %d: pass=%d fail=%d error=%d timeout=%d unknown=%d",
            "✓" if report.succeeded else "✗",
            report.iteration_index,
            counts.passed,
            counts.failed,
            counts.errors,
            counts.timeouts,
            counts.unknown,
        )
