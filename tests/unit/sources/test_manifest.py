"""Tests for the manifest case source."""

from pathlib import Path

import pytest

from conformance_runner.errors import ConfigurationError, UnknownSuiteError
from conformance_runner.sources.manifest import (
    CaseManifest,
    ManifestCaseSource,
    load_case_source,
)


class TestLoadCaseSource:
    """Tests for load_case_source."""

    async def test_loads_suites_in_order(self, tmp_path: Path) -> None:
        """Loads suites and their cases from YAML."""
        path = tmp_path / "cases.yaml"
        path.write_text(
            """
suites:
  wpt:
    - abs.https.any.js
    - add.https.any.js
  model:
    - mobilenet_v2
"""
        )

        source = await load_case_source(path)

        assert source.suites() == ["wpt", "model"]
        assert await source.list_cases("wpt") == [
            "abs.https.any.js",
            "add.https.any.js",
        ]

    async def test_accepts_json(self, tmp_path: Path) -> None:
        """JSON manifests load too."""
        path = tmp_path / "cases.json"
        path.write_text('{"suites": {"wpt": ["abs"]}}')

        source = await load_case_source(path)

        assert await source.list_cases("wpt") == ["abs"]

    async def test_raises_for_missing_file(self, tmp_path: Path) -> None:
        """Raises ConfigurationError when the file does not exist."""
        with pytest.raises(ConfigurationError, match="Cannot read case manifest"):
            await load_case_source(tmp_path / "missing.yaml")

    async def test_raises_for_invalid_manifest(self, tmp_path: Path) -> None:
        """Raises ConfigurationError for content of the wrong shape."""
        path = tmp_path / "cases.yaml"
        path.write_text("suites:\n  wpt: 3\n")

        with pytest.raises(ConfigurationError, match="Invalid case manifest"):
            await load_case_source(path)

    async def test_raises_for_duplicate_cases(self, tmp_path: Path) -> None:
        """A case listed twice in one suite is rejected."""
        path = tmp_path / "cases.yaml"
        path.write_text("suites:\n  wpt: [abs, add, abs]\n  model: [abs]\n")

        with pytest.raises(ConfigurationError, match="suite 'wpt': abs$"):
            await load_case_source(path)


async def test_unknown_suite_raises() -> None:
    """Listing an unknown suite raises UnknownSuiteError."""
    source = ManifestCaseSource(manifest=CaseManifest(suites={"wpt": ["abs"]}))

    with pytest.raises(UnknownSuiteError) as exc_info:
        await source.list_cases("webgpu")

    assert exc_info.value.suite == "webgpu"
    assert "Available suites: ['wpt']" in str(exc_info.value)
