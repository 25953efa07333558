"""Tests for run config expansion."""

import json
from pathlib import Path

import pytest

from conformance_runner.errors import ConfigurationError
from conformance_runner.expander import (
    expand_declared,
    expand_selection,
    load_declared_configs,
    merge_browser_args,
    parse_list,
    resolve_suites,
)
from conformance_runner.models.config import DeclaredConfig, RunConfig, RunSelection


def test_parse_list() -> None:
    """Splits comma-separated values and drops blanks."""
    assert parse_list(" gpu, cpu ,,") == ("gpu", "cpu")
    assert parse_list(None) == ()


class TestExpandSelection:
    """Tests for expand_selection."""

    def test_single_device_and_suite(self) -> None:
        """Produces exactly one config for one device and one suite."""
        selection = RunSelection(devices=["gpu"], suites=["wpt"], default_filter="abs")

        assert expand_selection(selection) == [
            RunConfig(name="Default", suite="wpt", device="gpu", case_filter="abs")
        ]

    def test_device_outer_suite_inner(self) -> None:
        """All suites of one device come before the next device."""
        selection = RunSelection(devices=["gpu", "cpu"], suites=["wpt", "model"])

        configs = expand_selection(selection)

        assert [(c.device, c.suite) for c in configs] == [
            ("gpu", "wpt"),
            ("gpu", "model"),
            ("cpu", "wpt"),
            ("cpu", "model"),
        ]

    def test_per_suite_filters(self) -> None:
        """Suite-specific filters win over the default filter."""
        selection = RunSelection(
            devices=["gpu"],
            suites=["wpt", "model"],
            case_filters={"model": "mobilenet"},
            default_filter="add,sub",
            index_range="0-9",
            browser_args="--enable-features=WebMachineLearningNeuralNetwork",
        )

        wpt, model = expand_selection(selection)

        assert wpt.case_filter == "add,sub"
        assert model.case_filter == "mobilenet"
        assert wpt.index_range == model.index_range == "0-9"
        assert wpt.browser_args == "--enable-features=WebMachineLearningNeuralNetwork"

    @pytest.mark.parametrize(
        ("devices", "suites"),
        [([], ["wpt"]), (["gpu"], []), ([], [])],
    )
    def test_empty_selection_yields_no_configs(
        self, devices: list[str], suites: list[str]
    ) -> None:
        """An empty device or suite set means zero executions."""
        assert expand_selection(RunSelection(devices=devices, suites=suites)) == []

    def test_unknown_suite_is_kept(self) -> None:
        """Unknown suites are not rejected at expansion time."""
        configs = expand_selection(RunSelection(devices=["gpu"], suites=["webgpu"]))

        assert [c.suite for c in configs] == ["webgpu"]

    def test_all_expands_to_available_suites(self) -> None:
        """The 'all' pseudo-suite expands to every available suite once."""
        selection = RunSelection(devices=["npu"], suites=["model", "all"])

        configs = expand_selection(selection, available_suites=["wpt", "model"])

        assert [c.suite for c in configs] == ["model", "wpt"]

    def test_is_deterministic(self) -> None:
        """The same selection always expands to the same ordered list."""
        selection = RunSelection(devices=["gpu", "cpu", "npu"], suites=["wpt", "model"])

        assert expand_selection(selection) == expand_selection(selection)


def test_resolve_suites_drops_duplicates() -> None:
    """Duplicate suites are only run once."""
    assert resolve_suites(["wpt", "wpt", "all"], ["wpt", "model"]) == ["wpt", "model"]


@pytest.mark.parametrize(
    ("global_args", "entry_args", "expected"),
    [
        (None, None, None),
        ("--a", None, "--a"),
        (None, "--b", "--b"),
        ("--a", "--b", "--a --b"),
    ],
)
def test_merge_browser_args(
    global_args: str | None, entry_args: str | None, expected: str | None
) -> None:
    """Entry browser arguments are appended to the global ones."""
    assert merge_browser_args(global_args, entry_args) == expected


class TestExpandDeclared:
    """Tests for expand_declared."""

    def test_expands_devices_per_entry(self) -> None:
        """Each listed device becomes its own config, entries in order."""
        entries = [
            DeclaredConfig(
                name="Conv", suite="wpt", device="gpu, npu", case_filter="conv"
            ),
            DeclaredConfig(suite="model", device="cpu"),
        ]

        configs = expand_declared(entries, global_browser_args="--foo")

        assert [(c.name, c.suite, c.device) for c in configs] == [
            ("Conv", "wpt", "gpu"),
            ("Conv", "wpt", "npu"),
            ("Config_2", "model", "cpu"),
        ]
        assert configs[0].case_filter == "conv"
        assert all(c.browser_args == "--foo" for c in configs)
        assert all(c.index_range is None for c in configs)

    def test_defaults(self) -> None:
        """Entries default to the wpt suite on the gpu."""
        configs = expand_declared([DeclaredConfig()])

        assert configs == [RunConfig(name="Config_1", suite="wpt", device="gpu")]

    def test_empty_list(self) -> None:
        """No entries means no configs."""
        assert expand_declared([]) == []


class TestLoadDeclaredConfigs:
    """Tests for load_declared_configs."""

    async def test_loads_json_with_dashed_keys(self, tmp_path: Path) -> None:
        """Accepts the dashed keys of hand-written config files."""
        path = tmp_path / "configs.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "name": "Baseline",
                        "suite": "wpt",
                        "device": "gpu,cpu",
                        "browser-arg": "--disable-gpu-sandbox",
                        "wpt-case": "abs",
                    }
                ]
            )
        )

        entries = await load_declared_configs(path)

        assert entries == [
            DeclaredConfig(
                name="Baseline",
                suite="wpt",
                device="gpu,cpu",
                browser_args="--disable-gpu-sandbox",
                case_filter="abs",
            )
        ]

    async def test_raises_for_missing_file(self, tmp_path: Path) -> None:
        """Raises ConfigurationError when the file does not exist."""
        with pytest.raises(ConfigurationError, match="Config file not found"):
            await load_declared_configs(tmp_path / "missing.json")

    async def test_raises_for_non_list(self, tmp_path: Path) -> None:
        """Raises ConfigurationError when the file is not a list of entries."""
        path = tmp_path / "configs.yaml"
        path.write_text("name: Baseline\n")

        with pytest.raises(ConfigurationError, match="Error reading config file"):
            await load_declared_configs(path)
