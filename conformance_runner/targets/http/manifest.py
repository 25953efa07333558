"""HTTP harness target manifest."""

from conformance_runner.targets.http.config import HttpTargetConfig
from conformance_runner.targets.http.target import HttpTarget
from conformance_runner.targets.manifest import TargetManifest

http_target_manifest = TargetManifest(
    config_cls=HttpTargetConfig,
    target_factory=HttpTarget.from_config,
)
