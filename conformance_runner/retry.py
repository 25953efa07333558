"""Single serialized retry pass over failed cases."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from conformance_runner.models.result import (
    RETRYABLE_VERDICTS,
    CaseResult,
    Verdict,
    latest_attempts,
)
from conformance_runner.scheduler import CaseScheduler
from conformance_runner.session import Session

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RetryController[T]:
    """Re-runs failed cases once, one at a time, after the first pass.

    Retries are sequential so a flaky environment is not put under fresh
    parallel load right after it produced failures.
    """

    scheduler: CaseScheduler[T]
    skip_retry: bool = False
    retry_timeouts: bool = False
    retry_delay: float = 0.0

    @property
    def retryable(self) -> frozenset[Verdict]:
        """Verdicts eligible for a retry."""
        if self.retry_timeouts:
            return RETRYABLE_VERDICTS | {Verdict.TIMEOUT}
        return RETRYABLE_VERDICTS

    def select(self, prior_results: Sequence[CaseResult]) -> Sequence[CaseResult]:
        """Pick the latest attempts that qualify for a retry."""
        return [
            result
            for result in latest_attempts(prior_results)
            if result.verdict in self.retryable
        ]

    async def retry(
        self, session: Session[T], prior_results: Sequence[CaseResult]
    ) -> Sequence[CaseResult]:
        """Retry eligible cases and return only the new attempts."""
        if self.skip_retry:
            log.info("Retry skipped for %s", session.config.name)
            return []

        eligible = self.select(prior_results)
        if not eligible:
            return []

        log.info(
            "Retrying %d failed case(s) for %s: %s",
            len(eligible),
            session.config.name,
            ", ".join(result.case_id for result in eligible),
        )
        if self.retry_delay:
            await asyncio.sleep(self.retry_delay)

        attempt = max(result.attempt for result in eligible) + 1
        return await self.scheduler.run(
            session,
            [result.case_id for result in eligible],
            worker_budget=1,
            attempt=attempt,
        )
