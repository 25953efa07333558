"""Expansion of selections and declared config files into run configs."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import TypeAdapter, ValidationError

from conformance_runner.errors import ConfigurationError
from conformance_runner.models.config import DeclaredConfig, RunConfig, RunSelection

log = logging.getLogger(__name__)

ALL_SUITES = "all"

_declared_list = TypeAdapter(list[DeclaredConfig])


def parse_list(value: str | None) -> Sequence[str]:
    """Parse a comma-separated list, dropping blank items."""
    if not value:
        return ()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def resolve_suites(
    suites: Sequence[str], available_suites: Sequence[str] = ()
) -> Sequence[str]:
    """Replace the ``all`` pseudo-suite with every available suite.

    Order is preserved and duplicates are dropped. Suite names are not
    checked against the available suites here; an unknown suite fails only
    its own config once it executes.
    """
    resolved: list[str] = []
    for suite in suites:
        candidates = available_suites if suite == ALL_SUITES else [suite]
        for candidate in candidates:
            if candidate not in resolved:
                resolved.append(candidate)
    return resolved


def expand_selection(
    selection: RunSelection, available_suites: Sequence[str] = ()
) -> Sequence[RunConfig]:
    """Expand a device x suite selection, device outer and suite inner.

    Reports group results by this order, so all suites of the first device
    come before any suite of the second device.
    """
    suites = resolve_suites(selection.suites, available_suites)
    return [
        RunConfig(
            name=selection.name,
            suite=suite,
            device=device,
            browser_args=selection.browser_args,
            case_filter=selection.case_filters.get(suite, selection.default_filter),
            index_range=selection.index_range,
        )
        for device in selection.devices
        for suite in suites
    ]


def merge_browser_args(global_args: str | None, entry_args: str | None) -> str | None:
    """Append per-config browser arguments to the global ones."""
    if not entry_args:
        return global_args
    return f"{global_args or ''} {entry_args}".strip()


def expand_declared(
    entries: Sequence[DeclaredConfig], global_browser_args: str | None = None
) -> Sequence[RunConfig]:
    """Expand declared config entries, one run config per listed device.

    Unnamed entries are called ``Config_<n>`` after their 1-based position.
    """
    configs: list[RunConfig] = []
    for idx, entry in enumerate(entries, start=1):
        for device in parse_list(entry.device) or ("gpu",):
            configs.append(
                RunConfig(
                    name=entry.name or f"Config_{idx}",
                    suite=entry.suite,
                    device=device,
                    browser_args=merge_browser_args(
                        global_browser_args, entry.browser_args
                    ),
                    case_filter=entry.case_filter,
                )
            )
    return configs


async def load_declared_configs(path: Path) -> Sequence[DeclaredConfig]:
    """Load declared config entries from a JSON or YAML list.

    Raises:
        ConfigurationError: If the file is missing or malformed

    """
    try:
        content = await asyncio.to_thread(path.read_text)
    except OSError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e

    try:
        entries = _declared_list.validate_python(yaml.safe_load(content))
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(f"Error reading config file {path}: {e}") from e

    log.info("Loaded %d declared config(s) from %s", len(entries), path)
    return entries
