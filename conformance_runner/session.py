"""Lifecycle of isolated execution sessions, one run config at a time."""

import asyncio
import itertools
import logging
from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from conformance_runner.errors import EnvironmentUnavailable
from conformance_runner.models.config import RunConfig
from conformance_runner.targets.base import ExecutionTarget

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class Session[T]:
    """Handle to one isolated execution context owned by the session manager."""

    serial: int
    config: RunConfig
    state: T


@dataclass(kw_only=True)
class SessionManager[T]:
    """Opens and closes sessions so that at most one is active at a time.

    Sessions are never reused: every run config gets a freshly started one,
    even when suite and device match the previous config. After each close
    the manager waits ``settle_delay`` seconds before the next open.
    """

    target: ExecutionTarget[T]
    settle_delay: float = 1.0
    _active: Session[T] | None = field(default=None, init=False, repr=False)
    _needs_settle: bool = field(default=False, init=False, repr=False)
    _serials: Iterator[int] = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False
    )

    @property
    def active(self) -> Session[T] | None:
        """The currently open session, if any."""
        return self._active

    async def open(self, config: RunConfig) -> Session[T]:
        """Start a new session for a run config.

        Raises:
            EnvironmentUnavailable: If the target cannot start a session
            RuntimeError: If another session is still open

        """
        if self._active is not None:
            raise RuntimeError(
                f"Session {self._active.serial} is still open; close it first"
            )

        if self._needs_settle:
            await asyncio.sleep(self.settle_delay)
            self._needs_settle = False

        try:
            state = await self.target.start_session(config)
        except Exception as e:
            raise EnvironmentUnavailable(
                f"Cannot start session for {config.name} "
                f"(suite={config.suite}, device={config.device}): {e}"
            ) from e

        session = Session(serial=next(self._serials), config=config, state=state)
        self._active = session
        log.info(
            "Opened session %d for %s (suite=%s, device=%s)",
            session.serial,
            config.name,
            config.suite,
            config.device,
        )
        return session

    async def close(self, session: Session[T]) -> None:
        """Tear down a session; failures are logged and the session is dropped."""
        if self._active is not session:
            raise RuntimeError(f"Session {session.serial} is not the active session")

        try:
            await self.target.stop_session(session.state)
        except Exception as e:
            log.warning("Failed to close session %d: %s", session.serial, e)
        finally:
            self._active = None
            self._needs_settle = True

        log.info("Closed session %d", session.serial)

    @asynccontextmanager
    async def session(self, config: RunConfig) -> AsyncGenerator[Session[T], None]:
        """Open a session for a run config and close it on exit."""
        session = await self.open(config)
        try:
            yield session
        finally:
            await self.close(session)
