"""HTTP harness target module."""

from conformance_runner.targets.http.config import HttpTargetConfig
from conformance_runner.targets.http.manifest import http_target_manifest
from conformance_runner.targets.http.target import HttpTarget

__all__ = ["HttpTarget", "HttpTargetConfig", "http_target_manifest"]
