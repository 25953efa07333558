"""Case source backed by a YAML manifest of suites and their cases."""

import asyncio
import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import Field, ValidationError

from conformance_runner.errors import ConfigurationError, UnknownSuiteError
from conformance_runner.models.base import Model
from conformance_runner.sources.base import CaseSource

log = logging.getLogger(__name__)


class CaseManifest(Model):
    """Contents of a case manifest file."""

    suites: Mapping[str, Sequence[str]] = Field(
        default_factory=dict, description="Case identifiers per suite"
    )


@dataclass(frozen=True, kw_only=True)
class ManifestCaseSource(CaseSource):
    """Serves case listings from an in-memory manifest."""

    manifest: CaseManifest

    def __post_init__(self) -> None:
        for suite, case_ids in self.manifest.suites.items():
            duplicates = sorted(
                case_id for case_id, n in Counter(case_ids).items() if n > 1
            )
            if duplicates:
                raise ConfigurationError(
                    f"Duplicate cases in suite '{suite}': {', '.join(duplicates)}"
                )

    def suites(self) -> Sequence[str]:
        """Return suites in manifest order."""
        return list(self.manifest.suites)

    async def list_cases(self, suite: str) -> Sequence[str]:
        """List cases of a known suite."""
        if suite not in self.manifest.suites:
            raise UnknownSuiteError(suite, list(self.manifest.suites))
        return list(self.manifest.suites[suite])


async def load_case_source(path: Path) -> ManifestCaseSource:
    """Load a case manifest file.

    Example manifest::

        suites:
          wpt:
            - abs.https.any.js
            - add.https.any.js

    Raises:
        ConfigurationError: If the file cannot be read or is not a valid manifest

    """
    try:
        content = await asyncio.to_thread(path.read_text)
    except OSError as e:
        raise ConfigurationError(f"Cannot read case manifest {path}: {e}") from e

    try:
        manifest = CaseManifest.model_validate(yaml.safe_load(content) or {})
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(f"Invalid case manifest {path}: {e}") from e

    log.info(
        "Loaded case manifest %s (%d suite(s))", path, len(manifest.suites)
    )
    return ManifestCaseSource(manifest=manifest)
