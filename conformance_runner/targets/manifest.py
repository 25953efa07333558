"""Entry point payload that execution target plugins register."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from conformance_runner.targets.base import ExecutionTarget


@dataclass(frozen=True, kw_only=True)
class TargetManifest[ConfigT: BaseModel, StateT]:
    """What the runner needs to build a target from ``--target-config``.

    ``config_cls`` validates the JSON options; ``target_factory`` turns the
    validated options into a target that is open for the whole run.
    """

    config_cls: type[ConfigT]
    target_factory: Callable[
        [ConfigT], AbstractAsyncContextManager[ExecutionTarget[StateT]]
    ]
