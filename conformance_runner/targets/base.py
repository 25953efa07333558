"""Abstract base class for execution targets."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from conformance_runner.models.config import RunConfig
from conformance_runner.models.result import CaseOutcome


@dataclass(frozen=True, kw_only=True)
class ExecutionTarget[T](ABC):
    """Abstract base for isolated execution targets.

    Generic type T represents the session state - whatever the target needs
    to address one isolated execution context between start and stop. This
    could be a remote session ID or a handle to a local browser process.
    """

    @abstractmethod
    async def start_session(self, config: RunConfig) -> T:
        """Start an isolated execution context for one run config.

        Args:
            config: Run config the session is dedicated to

        Returns:
            Session state to pass to execute and stop_session

        """

    @abstractmethod
    async def stop_session(self, state: T) -> None:
        """Tear down an execution context and release its resources."""

    @abstractmethod
    async def execute(self, state: T, case_id: str, config: RunConfig) -> CaseOutcome:
        """Execute one case inside a session.

        Args:
            state: State returned from start_session
            case_id: Case identifier from the case source
            config: Run config providing suite and device

        Returns:
            Verdict, timing and optional diagnostic detail for the case

        """

    async def inspect(self, state: T) -> Mapping[str, Any] | None:
        """Collect an environment diagnostic from a live session.

        Targets without such a capability return None.
        """
        return None
