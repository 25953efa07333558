"""HTTP harness target implementation."""

import logging
from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from pydantic import ValidationError

from conformance_runner.models.config import RunConfig
from conformance_runner.models.result import CaseOutcome, Verdict
from conformance_runner.targets.base import ExecutionTarget
from conformance_runner.targets.http.config import HttpTargetConfig
from conformance_runner.targets.http.models import CaseExecuted, SessionCreated

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class HttpTarget(ExecutionTarget[str]):
    """Execution target driving a remote browser harness over HTTP.

    Session state is the harness session ID.
    """

    config: HttpTargetConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: HttpTargetConfig
    ) -> AsyncGenerator["HttpTarget", None]:
        """Create target with managed HTTP session lifecycle."""
        headers = {"Accept": "application/json"}
        if config.token is not None:
            headers["Authorization"] = f"Bearer {config.token.get_secret_value()}"
        async with aiohttp.ClientSession(
            base_url=config.base_url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=config.request_timeout),
        ) as session:
            yield cls(config=config, session=session)

    async def start_session(self, config: RunConfig) -> str:
        """Launch a fresh browser session on the harness."""
        payload = {
            "suite": config.suite,
            "device": config.device,
            "browser_args": (config.browser_args or "").split(),
            "channel": self.config.channel,
            "browser_path": self.config.browser_path,
        }
        log.info(
            "Starting harness session: base_url=%s, suite=%s, device=%s, channel=%s",
            self.config.base_url,
            config.suite,
            config.device,
            self.config.channel,
        )

        async with self.session.post("/sessions", json=payload) as response:
            if response.status != 201:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to start session: {response.status} {text}"
                )
            data = await response.json()

        return SessionCreated.model_validate(data).session_id

    async def stop_session(self, state: str) -> None:
        """Close the browser session; an already missing session is fine."""
        async with self.session.delete(f"/sessions/{state}") as response:
            if response.status not in (200, 204, 404):
                text = await response.text()
                raise RuntimeError(
                    f"Failed to stop session {state}: {response.status} {text}"
                )

    async def execute(self, state: str, case_id: str, config: RunConfig) -> CaseOutcome:
        """Run one case in the session and translate the harness response."""
        payload = {
            "case_id": case_id,
            "suite": config.suite,
            "device": config.device,
            "verbose": self.config.verbose,
        }

        async with self.session.post(
            f"/sessions/{state}/cases", json=payload
        ) as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to execute case {case_id}: {response.status} {text}"
                )
            data = await response.json()

        try:
            executed = CaseExecuted.model_validate(data)
        except ValidationError:
            log.warning("Unrecognized harness response for case %s: %r", case_id, data)
            return CaseOutcome(
                verdict=Verdict.UNKNOWN,
                execution_time_ms=0.0,
                diagnostic=f"Unrecognized harness response: {data!r}",
            )

        raw = executed.verdict
        verdict = Verdict.classify(None if raw is None else str(raw))
        diagnostic = executed.diagnostic
        if verdict is Verdict.UNKNOWN and raw is not None:
            diagnostic = diagnostic or f"Unrecognized verdict: {raw!r}"
        return CaseOutcome(
            verdict=verdict,
            execution_time_ms=executed.execution_time_ms or 0.0,
            diagnostic=diagnostic,
        )

    async def inspect(self, state: str) -> Mapping[str, Any] | None:
        """Fetch the loaded-module and version report of the browser process."""
        async with self.session.get(f"/sessions/{state}/environment") as response:
            if response.status == 404:
                return None
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to inspect session {state}: {response.status} {text}"
                )
            data: Mapping[str, Any] = await response.json()

        return data
