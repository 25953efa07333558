"""Tests for result aggregation."""

import pytest

from conformance_runner.aggregator import (
    aggregate,
    count_verdicts,
    final_results,
    group_by_config,
)
from conformance_runner.models.result import Verdict
from conformance_runner.models.summary import ConfigOutcome
from conformance_runner.testing.factories import CaseResultFactory, RunConfigFactory


def test_count_verdicts_has_a_bucket_per_verdict() -> None:
    """Every verdict, including unknown, is counted separately."""
    results = [
        CaseResultFactory.build(verdict=verdict)
        for verdict in (
            Verdict.PASS,
            Verdict.PASS,
            Verdict.FAIL,
            Verdict.ERROR,
            Verdict.TIMEOUT,
            Verdict.UNKNOWN,
        )
    ]

    counts = count_verdicts(results)

    assert (counts.passed, counts.failed, counts.errors) == (2, 1, 1)
    assert (counts.timeouts, counts.unknown, counts.total) == (1, 1, 6)


def test_final_results_use_last_attempt_per_config() -> None:
    """A retried pass replaces the failure; identical ids in other configs stay."""
    gpu = RunConfigFactory.build(device="gpu")
    cpu = RunConfigFactory.build(device="cpu")
    failed = CaseResultFactory.build(case_id="add", device="gpu", verdict=Verdict.FAIL)
    retried = CaseResultFactory.build(
        case_id="add", device="gpu", verdict=Verdict.PASS, attempt=2
    )
    on_cpu = CaseResultFactory.build(case_id="add", device="cpu", verdict=Verdict.FAIL)

    final = final_results(
        [
            ConfigOutcome(config=gpu, results=[failed, retried]),
            ConfigOutcome(config=cpu, results=[on_cpu]),
        ]
    )

    assert final == [retried, on_cpu]


def test_group_by_config_keeps_order() -> None:
    """Groups results under their config names in first-seen order."""
    a = CaseResultFactory.build(config_name="B")
    b = CaseResultFactory.build(config_name="A")
    c = CaseResultFactory.build(config_name="B")

    groups = group_by_config([a, b, c])

    assert list(groups) == ["B", "A"]
    assert groups["B"] == [a, c]


class TestAggregate:
    """Tests for aggregate."""

    def test_retried_failure_counts_as_pass(self) -> None:
        """Final verdict comes from the retry while history keeps both."""
        config = RunConfigFactory.build()
        first = CaseResultFactory.build(
            case_id="abs", verdict=Verdict.FAIL, execution_time_ms=1500.0
        )
        retry = CaseResultFactory.build(
            case_id="abs", verdict=Verdict.PASS, attempt=2, execution_time_ms=500.0
        )

        report = aggregate(
            [ConfigOutcome(config=config, results=[first, retry])],
            iteration_index=1,
            total_iterations=1,
            wall_time_sec=1.0,
        )

        assert report.results == [first, retry]
        assert report.final_results == [retry]
        assert report.counts.passed == 1
        assert report.counts.failed == 0
        assert report.sum_exec_time_sec == pytest.approx(2.0)
        assert report.speedup == pytest.approx(2.0)
        assert report.succeeded

    def test_suite_names_and_subtitle(self) -> None:
        """Suite names and config names are listed once each, in order."""
        outcomes = [
            ConfigOutcome(config=RunConfigFactory.build(name="Default", suite="wpt")),
            ConfigOutcome(
                config=RunConfigFactory.build(name="Default", suite="model")
            ),
            ConfigOutcome(config=RunConfigFactory.build(name="Extra", suite="wpt")),
        ]

        report = aggregate(
            outcomes, iteration_index=1, total_iterations=1, wall_time_sec=0.0
        )

        assert report.suite_names == ["wpt", "model"]
        assert report.subtitle == "Default, Extra"
        assert report.speedup == 0.0

    def test_config_errors_fail_the_report(self) -> None:
        """A config that failed as a whole makes the iteration unsuccessful."""
        outcome = ConfigOutcome(
            config=RunConfigFactory.build(suite="webgpu"), error="Unknown suite"
        )

        report = aggregate(
            [outcome], iteration_index=1, total_iterations=1, wall_time_sec=0.1
        )

        assert report.config_errors == ["Default (webgpu/gpu): Unknown suite"]
        assert not report.succeeded

    @pytest.mark.parametrize(
        "verdict", [Verdict.FAIL, Verdict.ERROR, Verdict.TIMEOUT, Verdict.UNKNOWN]
    )
    def test_non_pass_verdict_fails_the_report(self, verdict: Verdict) -> None:
        """Only passing final verdicts make an iteration succeed."""
        outcome = ConfigOutcome(
            config=RunConfigFactory.build(),
            results=[CaseResultFactory.build(verdict=verdict)],
        )

        report = aggregate(
            [outcome], iteration_index=1, total_iterations=1, wall_time_sec=0.1
        )

        assert not report.succeeded

    def test_aborted_report_fails(self) -> None:
        """An aborted iteration is unsuccessful even without failures."""
        report = aggregate(
            [],
            iteration_index=2,
            total_iterations=3,
            wall_time_sec=0.1,
            aborted="browser did not start",
        )

        assert report.counts.total == 0
        assert not report.succeeded
