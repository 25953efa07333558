"""Exceptions raised while orchestrating a run."""


class RunnerError(Exception):
    """Base class for orchestration errors."""


class EnvironmentUnavailable(RunnerError):
    """Raised when an execution session cannot be created.

    Aborts the current iteration; never retried.
    """


class ConfigurationError(RunnerError):
    """Raised for an invalid suite, device or filter; fails one config only."""


class UnknownSuiteError(ConfigurationError):
    """Raised when a case source does not know a suite."""

    def __init__(self, suite: str, available: list[str]) -> None:
        super().__init__(f"Unknown suite '{suite}'. Available suites: {available}")
        self.suite = suite


class ReportWriteFailure(RunnerError):
    """Raised when a report cannot be persisted."""
