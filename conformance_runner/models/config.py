"""Models describing what to run: selections, declared configs and run configs."""

from collections.abc import Mapping, Sequence

from pydantic import AliasChoices, Field

from conformance_runner.models.base import Model


class RunConfig(Model):
    """One atomic unit of execution: a single suite on a single device."""

    name: str = Field(..., description="Config name used to group results")
    suite: str = Field(..., description="Suite to run (e.g., 'wpt', 'model')")
    device: str = Field(..., description="Device selector (e.g., 'gpu')")
    browser_args: str | None = Field(
        default=None, description="Extra browser launch arguments"
    )
    case_filter: str | None = Field(
        default=None,
        description="Comma-separated, case-insensitive substrings (any match)",
    )
    index_range: str | None = Field(
        default=None, description="Index range into the suite listing ('3-10')"
    )


class RunSelection(Model):
    """Cartesian selection of devices and suites from the command line."""

    devices: Sequence[str] = Field(default_factory=list)
    suites: Sequence[str] = Field(default_factory=list)
    case_filters: Mapping[str, str] = Field(
        default_factory=dict, description="Case filter per suite"
    )
    default_filter: str | None = Field(
        default=None, description="Case filter for suites without their own"
    )
    index_range: str | None = None
    browser_args: str | None = None
    name: str = "Default"


class DeclaredConfig(Model):
    """A named entry of a declared config file.

    ``device`` may list several comma-separated devices; each one becomes its
    own run config.
    """

    name: str | None = None
    suite: str = "wpt"
    device: str = "gpu"
    browser_args: str | None = Field(
        default=None, validation_alias=AliasChoices("browser_args", "browser-arg")
    )
    case_filter: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "case_filter", "case", "wpt-case", "model-case"
        ),
    )
