"""Configuration for the HTTP harness target."""

from typing import Literal

from pydantic import BaseModel, SecretStr


class HttpTargetConfig(BaseModel):
    """Configuration for the HTTP harness target."""

    base_url: str
    token: SecretStr | None = None
    channel: Literal["stable", "canary", "dev", "beta"] = "canary"
    browser_path: str | None = None
    request_timeout: float = 600.0
    verbose: bool = False
