"""Pydantic models for HTTP harness API payloads."""

from typing import Any

from pydantic import BaseModel


class SessionCreated(BaseModel):
    """Response from the create session API."""

    session_id: str


class CaseExecuted(BaseModel):
    """Response from the execute case API.

    ``verdict`` is kept as the raw value; classification happens when it is
    converted into a case outcome.
    """

    verdict: Any = None
    execution_time_ms: float | None = None
    diagnostic: str | None = None
