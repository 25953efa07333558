"""Models for case execution results."""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class Verdict(StrEnum):
    """Closed set of case verdicts."""

    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"

    @classmethod
    def classify(cls, raw: str | None) -> "Verdict":
        """Map a raw verdict string reported by a target onto a verdict.

        Anything that is not one of the four known outcomes lands in
        ``UNKNOWN``, including ``None`` and the literal ``"unknown"``.
        """
        if raw is None:
            return cls.UNKNOWN
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.UNKNOWN


RETRYABLE_VERDICTS: frozenset[Verdict] = frozenset([Verdict.FAIL, Verdict.ERROR])


@dataclass(frozen=True, kw_only=True)
class CaseOutcome:
    """Outcome of a single case as reported by an execution target."""

    verdict: Verdict
    execution_time_ms: float
    diagnostic: str | None = None


@dataclass(frozen=True, kw_only=True)
class CaseResult:
    """Recorded result of one attempt at one case.

    Retries append new results with a higher ``attempt`` instead of replacing
    earlier ones, so the full attempt history stays available.
    """

    case_id: str
    suite: str
    device: str
    config_name: str
    verdict: Verdict
    execution_time_ms: float
    attempt: int = 1
    diagnostic: str | None = None


def latest_attempts(results: Sequence[CaseResult]) -> Sequence[CaseResult]:
    """Return the last recorded attempt of each case, in first-seen order."""
    latest: dict[str, CaseResult] = {}
    for result in results:
        current = latest.get(result.case_id)
        if current is None or result.attempt >= current.attempt:
            latest[result.case_id] = result
    return list(latest.values())
