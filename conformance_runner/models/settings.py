"""Run-wide settings passed explicitly into every component."""

from pathlib import Path

from pydantic import Field

from conformance_runner.models.base import Model


class RunSettings(Model):
    """Settings for one orchestrated run."""

    jobs: int = Field(default=4, ge=1, description="Concurrent case workers")
    repeat: int = Field(default=1, ge=1, description="Full-run iterations")
    skip_retry: bool = Field(default=False, description="Treat first pass as final")
    retry_timeouts: bool = Field(
        default=False, description="Also retry cases whose verdict is timeout"
    )
    case_timeout: float | None = Field(
        default=None, gt=0, description="Per-case timeout in seconds"
    )
    settle_delay: float = Field(
        default=1.0, ge=0, description="Seconds to wait after closing a session"
    )
    retry_delay: float = Field(
        default=1.0, ge=0, description="Seconds to wait before the retry pass"
    )
    cooldown: float = Field(
        default=2.0, ge=0, description="Seconds to wait between iterations"
    )
    report_dir: Path | None = Field(
        default=None, description="Directory for JSON reports (None disables)"
    )
    notify_to: str | None = Field(default=None, description="Report recipient")
    notify_url: str | None = Field(
        default=None, description="Webhook that delivers reports to recipients"
    )
