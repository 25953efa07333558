"""Models for per-config outcomes and per-iteration summaries."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from conformance_runner.models.config import RunConfig
from conformance_runner.models.result import CaseResult


@dataclass(frozen=True, kw_only=True)
class ConfigOutcome:
    """Everything recorded while executing one run config.

    ``error`` is set when the config failed as a whole (unknown suite or
    device, malformed filter) and therefore produced no results.
    """

    config: RunConfig
    results: Sequence[CaseResult] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True, kw_only=True)
class VerdictCounts:
    """Number of cases per final verdict."""

    passed: int = 0
    failed: int = 0
    errors: int = 0
    timeouts: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        """Total number of counted cases."""
        return self.passed + self.failed + self.errors + self.timeouts + self.unknown


@dataclass(frozen=True, kw_only=True)
class IterationReport:
    """Aggregated report handed to renderers and notification senders."""

    iteration_index: int
    total_iterations: int
    suite_names: Sequence[str]
    subtitle: str
    results: Sequence[CaseResult]
    final_results: Sequence[CaseResult]
    groups: Mapping[str, Sequence[CaseResult]]
    counts: VerdictCounts
    wall_time_sec: float
    sum_exec_time_sec: float
    config_errors: Sequence[str] = field(default_factory=list)
    aborted: str | None = None
    environment: Mapping[str, Any] | None = None

    @property
    def speedup(self) -> float:
        """Summed case execution time over wall time."""
        if self.wall_time_sec <= 0:
            return 0.0
        return self.sum_exec_time_sec / self.wall_time_sec

    @property
    def succeeded(self) -> bool:
        """True when nothing aborted or failed and every case finally passed."""
        return (
            self.aborted is None
            and not self.config_errors
            and self.counts.passed == self.counts.total
        )


@dataclass(frozen=True, kw_only=True)
class IterationSummary:
    """Outcome of one full pass through all run configs."""

    iteration_index: int
    total_iterations: int
    results: Sequence[CaseResult]
    wall_time_sec: float
    sum_exec_time_sec: float
    exit_code: int
    report: IterationReport
    config_outcomes: Sequence[ConfigOutcome] = field(default_factory=list)
