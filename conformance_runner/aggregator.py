"""Aggregation of case results into one report per iteration."""

from collections.abc import Mapping, Sequence
from typing import Any

from conformance_runner.models.result import CaseResult, Verdict, latest_attempts
from conformance_runner.models.summary import (
    ConfigOutcome,
    IterationReport,
    VerdictCounts,
)


def count_verdicts(results: Sequence[CaseResult]) -> VerdictCounts:
    """Count results per verdict; every verdict has its own bucket."""
    passed = failed = errors = timeouts = unknown = 0
    for result in results:
        match result.verdict:
            case Verdict.PASS:
                passed += 1
            case Verdict.FAIL:
                failed += 1
            case Verdict.ERROR:
                errors += 1
            case Verdict.TIMEOUT:
                timeouts += 1
            case Verdict.UNKNOWN:
                unknown += 1
    return VerdictCounts(
        passed=passed,
        failed=failed,
        errors=errors,
        timeouts=timeouts,
        unknown=unknown,
    )


def final_results(outcomes: Sequence[ConfigOutcome]) -> Sequence[CaseResult]:
    """Final verdict of every case: its last attempt within its own config."""
    return [
        result for outcome in outcomes for result in latest_attempts(outcome.results)
    ]


def group_by_config(
    results: Sequence[CaseResult],
) -> Mapping[str, Sequence[CaseResult]]:
    """Group results by config name, keeping first-seen order."""
    groups: dict[str, list[CaseResult]] = {}
    for result in results:
        groups.setdefault(result.config_name, []).append(result)
    return groups


def aggregate(
    outcomes: Sequence[ConfigOutcome],
    *,
    iteration_index: int,
    total_iterations: int,
    wall_time_sec: float,
    aborted: str | None = None,
    environment: Mapping[str, Any] | None = None,
) -> IterationReport:
    """Merge the outcomes of one iteration into a report.

    Args:
        outcomes: Outcomes of the configs executed in this iteration, in order
        iteration_index: 1-based iteration number
        total_iterations: Number of iterations in the run
        wall_time_sec: Wall-clock duration of the iteration
        aborted: Reason the iteration stopped early, if it did
        environment: Environment diagnostic collected during the iteration

    """
    raw = [result for outcome in outcomes for result in outcome.results]
    final = final_results(outcomes)
    configs = [outcome.config for outcome in outcomes]

    return IterationReport(
        iteration_index=iteration_index,
        total_iterations=total_iterations,
        suite_names=list(dict.fromkeys(config.suite for config in configs)),
        subtitle=", ".join(dict.fromkeys(config.name for config in configs)),
        results=raw,
        final_results=final,
        groups=group_by_config(final),
        counts=count_verdicts(final),
        wall_time_sec=wall_time_sec,
        sum_exec_time_sec=sum(r.execution_time_ms for r in raw) / 1000,
        config_errors=[
            f"{outcome.config.name} ({outcome.config.suite}/{outcome.config.device}): "
            f"{outcome.error}"
            for outcome in outcomes
            if outcome.error is not None
        ],
        aborted=aborted,
        environment=environment,
    )
