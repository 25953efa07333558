"""Run orchestrator: iterations over run configs, one session at a time."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from conformance_runner.aggregator import aggregate
from conformance_runner.errors import (
    ConfigurationError,
    EnvironmentUnavailable,
    ReportWriteFailure,
    UnknownSuiteError,
)
from conformance_runner.models.config import RunConfig
from conformance_runner.models.result import CaseResult
from conformance_runner.models.settings import RunSettings
from conformance_runner.models.summary import (
    ConfigOutcome,
    IterationReport,
    IterationSummary,
)
from conformance_runner.reporting import Notifier, ReportWriter, log_iteration_summary
from conformance_runner.retry import RetryController
from conformance_runner.scheduler import CaseScheduler
from conformance_runner.session import Session, SessionManager
from conformance_runner.sources.base import CaseSource
from conformance_runner.sources.filtering import filter_cases
from conformance_runner.targets.base import ExecutionTarget

log = logging.getLogger(__name__)

KNOWN_DEVICES = frozenset(["cpu", "gpu", "npu"])


def overall_exit_code(summaries: Sequence[IterationSummary]) -> int:
    """Return 0 only if every iteration succeeded."""
    return 0 if all(summary.exit_code == 0 for summary in summaries) else 1


async def list_suite_cases(
    case_source: CaseSource, configs: Sequence[RunConfig]
) -> Mapping[str, Sequence[str]]:
    """List the cases of every suite referenced by the configs.

    Used by list mode: no session is opened and nothing is executed.
    Unknown suites are logged and left out.
    """
    listing: dict[str, Sequence[str]] = {}
    for suite in dict.fromkeys(config.suite for config in configs):
        try:
            listing[suite] = await case_source.list_cases(suite)
        except UnknownSuiteError as e:
            log.warning("Cannot list suite: %s", e)
    return listing


@dataclass(kw_only=True)
class Orchestrator[T]:
    """Repeats the full list of run configs and collects one summary per pass.

    Configs always run one after another, each in a freshly opened session.
    Only the cases inside a single config run concurrently.
    """

    target: ExecutionTarget[T]
    case_source: CaseSource
    settings: RunSettings = field(default_factory=RunSettings)
    report_writer: ReportWriter | None = None
    notifier: Notifier | None = None
    sessions: SessionManager[T] = field(init=False)
    scheduler: CaseScheduler[T] = field(init=False)
    retry_controller: RetryController[T] = field(init=False)
    _notifications: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self.sessions = SessionManager(
            target=self.target, settle_delay=self.settings.settle_delay
        )
        self.scheduler = CaseScheduler(
            target=self.target, case_timeout=self.settings.case_timeout
        )
        self.retry_controller = RetryController(
            scheduler=self.scheduler,
            skip_retry=self.settings.skip_retry,
            retry_timeouts=self.settings.retry_timeouts,
            retry_delay=self.settings.retry_delay,
        )

    async def run(self, configs: Sequence[RunConfig]) -> Sequence[IterationSummary]:
        """Run every config ``settings.repeat`` times.

        Args:
            configs: Expanded run configs, in execution order

        Returns:
            One summary per iteration, in iteration order

        """
        total = self.settings.repeat
        summaries: list[IterationSummary] = []

        for iteration in range(1, total + 1):
            if total > 1:
                log.info("=" * 80)
                log.info("ITERATION %d/%d", iteration, total)
                log.info("=" * 80)

            summaries.append(await self.run_iteration(configs, iteration))

            if iteration < total:
                await asyncio.sleep(self.settings.cooldown)

        await self.wait_for_notifications()
        return summaries

    async def run_iteration(
        self, configs: Sequence[RunConfig], iteration: int
    ) -> IterationSummary:
        """Execute all configs once and summarize the pass."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        outcomes: list[ConfigOutcome] = []
        environment: Mapping[str, Any] | None = None
        aborted: str | None = None

        for idx, config in enumerate(configs):
            try:
                outcome, probed = await self._run_config(config, probe=idx == 0)
            except EnvironmentUnavailable as e:
                log.error("Iteration %d aborted: %s", iteration, e)
                aborted = str(e)
                break
            outcomes.append(outcome)
            if probed is not None:
                environment = probed

        report = aggregate(
            outcomes,
            iteration_index=iteration,
            total_iterations=self.settings.repeat,
            wall_time_sec=loop.time() - started,
            aborted=aborted,
            environment=environment,
        )
        log_iteration_summary(log, report)
        await self._publish(report)

        return IterationSummary(
            iteration_index=iteration,
            total_iterations=self.settings.repeat,
            results=report.results,
            wall_time_sec=report.wall_time_sec,
            sum_exec_time_sec=report.sum_exec_time_sec,
            exit_code=0 if report.succeeded else 1,
            report=report,
            config_outcomes=outcomes,
        )

    async def select_cases(self, config: RunConfig) -> Sequence[str]:
        """Resolve the case ids a config should execute.

        Raises:
            ConfigurationError: If the device, suite or filter is invalid

        """
        if config.device not in KNOWN_DEVICES:
            raise ConfigurationError(
                f"Unknown device '{config.device}'. "
                f"Known devices: {sorted(KNOWN_DEVICES)}"
            )

        available = await self.case_source.list_cases(config.suite)
        selected = filter_cases(available, config.case_filter, config.index_range)
        if not selected:
            log.warning(
                "No cases selected for %s (suite=%s, filter=%s, range=%s)",
                config.name,
                config.suite,
                config.case_filter,
                config.index_range,
            )
        return selected

    async def _run_config(
        self, config: RunConfig, *, probe: bool
    ) -> tuple[ConfigOutcome, Mapping[str, Any] | None]:
        """Run one config in its own session: first pass, probe, then retry."""
        log.info(
            "=== Running Config: %s (Suite: %s, Device: %s) ===",
            config.name,
            config.suite,
            config.device,
        )

        try:
            case_ids = await self.select_cases(config)
        except ConfigurationError as e:
            log.error("Config %s failed: %s", config.name, e)
            return ConfigOutcome(config=config, error=str(e)), None

        environment: Mapping[str, Any] | None = None
        async with self.sessions.session(config) as session:
            results: list[CaseResult] = list(
                await self.scheduler.run(session, case_ids, self.settings.jobs)
            )
            if probe:
                environment = await self._probe_environment(session)
            results.extend(await self.retry_controller.retry(session, results))

        return ConfigOutcome(config=config, results=results), environment

    async def _probe_environment(self, session: Session[T]) -> Mapping[str, Any] | None:
        """Collect the environment diagnostic; failures never affect verdicts."""
        log.info("First config completed its first pass. Inspecting environment...")
        try:
            return await self.target.inspect(session.state)
        except Exception as e:
            log.warning("Environment inspection failed: %s", e)
            return None

    async def _publish(self, report: IterationReport) -> None:
        """Write the report, then hand it to the notifier in the background."""
        if self.report_writer is not None:
            try:
                await self.report_writer.write(report)
            except ReportWriteFailure as e:
                log.error("Report not written: %s", e)

        if self.notifier is not None and self.settings.notify_to:
            task = asyncio.create_task(
                self._notify(self.notifier, self.settings.notify_to, report)
            )
            self._notifications.add(task)
            task.add_done_callback(self._notifications.discard)

    async def _notify(
        self, notifier: Notifier, recipient: str, report: IterationReport
    ) -> None:
        try:
            await notifier.send(recipient, report)
        except Exception as e:
            log.error("Failed to send report to %s: %s", recipient, e)

    async def wait_for_notifications(self) -> None:
        """Wait until every background notification has finished."""
        if self._notifications:
            await asyncio.gather(*self._notifications, return_exceptions=True)
