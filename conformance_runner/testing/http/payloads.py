"""Payload helpers for HTTP harness API responses in tests."""

from typing import Any


def session_created(*, session_id: str = "session-1") -> dict[str, Any]:
    """Create a create-session response payload."""
    return {"session_id": session_id, "browser": "chrome-canary", "pid": 4242}


def case_executed(
    *,
    verdict: Any = "pass",
    execution_time_ms: float | None = 125.0,
    diagnostic: str | None = None,
) -> dict[str, Any]:
    """Create an execute-case response payload."""
    return {
        "verdict": verdict,
        "execution_time_ms": execution_time_ms,
        "diagnostic": diagnostic,
    }


def environment_report() -> dict[str, Any]:
    """Create an environment inspection payload."""
    return {
        "process": "chrome.exe",
        "modules": {
            "onnxruntime.dll": {"loaded": True, "version": "1.20.0"},
            "DirectML.dll": {"loaded": True, "version": "1.15.2"},
        },
    }
