"""Concurrent case execution with a bounded worker pool."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from conformance_runner.models.result import CaseOutcome, CaseResult, Verdict
from conformance_runner.session import Session
from conformance_runner.targets.base import ExecutionTarget

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CaseScheduler[T]:
    """Runs case lists against a session with up to N concurrent workers.

    Results are always returned in submission order. Worker count only
    changes how fast a batch completes, never which verdicts are recorded or
    in which order they are reported.
    """

    target: ExecutionTarget[T]
    case_timeout: float | None = None

    async def run(
        self,
        session: Session[T],
        case_ids: Sequence[str],
        worker_budget: int,
        attempt: int = 1,
    ) -> Sequence[CaseResult]:
        """Execute cases and return one result per case id, in input order.

        Args:
            session: Open session to execute the cases in
            case_ids: Case identifiers in submission order
            worker_budget: Maximum number of cases executing at once (>= 1)
            attempt: Attempt number recorded on every result

        Returns:
            Results sorted by submission index

        """
        if worker_budget < 1:
            raise ValueError(f"worker_budget must be at least 1, got {worker_budget}")
        if not case_ids:
            return []

        queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
        for item in enumerate(case_ids):
            queue.put_nowait(item)

        # Each index is written by exactly one worker.
        results: dict[int, CaseResult] = {}
        workers = min(worker_budget, len(case_ids))

        log.info(
            "Running %d case(s) for %s with %d worker(s) (attempt %d)",
            len(case_ids),
            session.config.name,
            workers,
            attempt,
        )
        await asyncio.gather(
            *(self._worker(session, queue, results, attempt) for _ in range(workers))
        )

        return [results[idx] for idx in sorted(results)]

    async def _worker(
        self,
        session: Session[T],
        queue: asyncio.Queue[tuple[int, str]],
        results: dict[int, CaseResult],
        attempt: int,
    ) -> None:
        """Pull cases off the queue until it is drained."""
        while True:
            try:
                idx, case_id = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            results[idx] = await self._run_case(session, case_id, attempt)

    async def _run_case(
        self, session: Session[T], case_id: str, attempt: int
    ) -> CaseResult:
        """Execute one case, turning timeouts and exceptions into verdicts."""
        config = session.config
        loop = asyncio.get_running_loop()
        started = loop.time()

        try:
            async with asyncio.timeout(self.case_timeout):
                outcome = await self.target.execute(session.state, case_id, config)
        except TimeoutError as e:
            if self.case_timeout is None:
                diagnostic = f"{type(e).__name__}: {e}" if str(e) else "Case timed out"
            else:
                diagnostic = f"Case did not complete within {self.case_timeout}s"
            outcome = CaseOutcome(
                verdict=Verdict.TIMEOUT,
                execution_time_ms=(loop.time() - started) * 1000,
                diagnostic=diagnostic,
            )
        except Exception as e:
            log.warning("Case %s raised %s: %s", case_id, type(e).__name__, e)
            outcome = CaseOutcome(
                verdict=Verdict.ERROR,
                execution_time_ms=(loop.time() - started) * 1000,
                diagnostic=f"{type(e).__name__}: {e}",
            )

        log.info(
            "Case completed: config=%s case=%s verdict=%s duration=%.0fms",
            config.name,
            case_id,
            outcome.verdict,
            outcome.execution_time_ms,
        )
        return CaseResult(
            case_id=case_id,
            suite=config.suite,
            device=config.device,
            config_name=config.name,
            verdict=outcome.verdict,
            execution_time_ms=outcome.execution_time_ms,
            attempt=attempt,
            diagnostic=outcome.diagnostic,
        )
