"""Discovery of installed execution targets."""

from collections.abc import Sequence
from importlib.metadata import EntryPoint, entry_points
from typing import Any

from conformance_runner.targets.manifest import TargetManifest

ENTRY_POINT_GROUP = "conformance_runner.targets"


class TargetNotFoundError(Exception):
    """No installed target is registered under the requested key."""


def _target_entries() -> Sequence[EntryPoint]:
    return list(entry_points(group=ENTRY_POINT_GROUP))


def available_targets() -> Sequence[str]:
    """Return the keys of all installed execution targets, sorted."""
    return sorted(entry.name for entry in _target_entries())


def load_target_manifest(key: str) -> TargetManifest[Any, Any]:
    """Import the manifest registered under ``key``.

    Other registered targets are never imported.

    Raises:
        TargetNotFoundError: If ``key`` is not among :func:`available_targets`

    """
    entries = _target_entries()
    match = next((entry for entry in entries if entry.name == key), None)
    if match is None:
        raise TargetNotFoundError(
            f"Target '{key}' not found. Available targets: {available_targets()}"
        )

    manifest: TargetManifest[Any, Any] = match.load()
    return manifest
