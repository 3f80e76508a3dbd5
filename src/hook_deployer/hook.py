"""Hooks: groups of operations with main, rollback and ensure phases."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from .destination import Destination
from .operation import Operation


class HookKind(str, Enum):
    """Which part of a deployment a hook belongs to."""
    FETCH = "fetch"
    BUILD = "build"
    PUBLISH = "publish"
    CUSTOM = "custom"


class Phase(str, Enum):
    MAIN = "main"
    ROLLBACK = "rollback"
    ENSURE = "ensure"


@dataclass(frozen=True)
class Hook:
    """An ordered set of operations split into three phases.

    * ``main`` runs in order and stops at the first failure.
    * ``rollback`` runs only when ``main`` failed, every step attempted.
    * ``ensure`` runs afterwards when ``run_ensure`` is set, every step attempted.

    ``ignore_failure`` lets the pipeline continue past a failed ``main``.
    """

    main: Tuple[Operation, ...] = ()
    rollback: Tuple[Operation, ...] = ()
    ensure: Tuple[Operation, ...] = ()
    run_ensure: bool = True
    ignore_failure: bool = False
    name: Optional[str] = None

    def __post_init__(self) -> None:
        for phase in Phase:
            operations = tuple(getattr(self, phase.value))
            for op in operations:
                if not isinstance(op, Operation):
                    raise TypeError(f"Hook {phase.value} phase holds a non-Operation: {op!r}")
            object.__setattr__(self, phase.value, operations)

    def operations(self, phase: Union[Phase, str]) -> Tuple[Operation, ...]:
        return getattr(self, Phase(phase).value)


class HookBuilder:
    """Small DSL for assembling a Hook phase by phase.

    Example::

        hook = (
            HookBuilder(ignore_failure=True)
            .main("mix deps.get", destination, cmd_env=[("MIX_ENV", "prod")])
            .ensure("rm -rf ./rel", destination)
            .build()
        )
    """

    def __init__(
        self,
        *,
        run_ensure: bool = True,
        ignore_failure: bool = False,
        name: Optional[str] = None,
    ) -> None:
        self.run_ensure = run_ensure
        self.ignore_failure = ignore_failure
        self.name = name
        self._phases: dict = {phase: [] for phase in Phase}

    def main(self, cmd, destination: Optional[Destination] = None, *, cmd_env=None) -> "HookBuilder":
        return self._add(Phase.MAIN, cmd, destination, cmd_env)

    def rollback(self, cmd, destination: Optional[Destination] = None, *, cmd_env=None) -> "HookBuilder":
        return self._add(Phase.ROLLBACK, cmd, destination, cmd_env)

    def ensure(self, cmd, destination: Optional[Destination] = None, *, cmd_env=None) -> "HookBuilder":
        return self._add(Phase.ENSURE, cmd, destination, cmd_env)

    def extend(self, phase: Union[Phase, str], operations: Iterable[Operation]) -> "HookBuilder":
        self._phases[Phase(phase)].extend(operations)
        return self

    def build(self) -> Hook:
        return Hook(
            main=tuple(self._phases[Phase.MAIN]),
            rollback=tuple(self._phases[Phase.ROLLBACK]),
            ensure=tuple(self._phases[Phase.ENSURE]),
            run_ensure=self.run_ensure,
            ignore_failure=self.ignore_failure,
            name=self.name,
        )

    def _add(self, phase: Phase, cmd, destination, cmd_env) -> "HookBuilder":
        if isinstance(cmd, Operation):
            operation = cmd
        else:
            if destination is None:
                raise ValueError(f"A destination is required for {phase.value} command {cmd!r}")
            operation = Operation(destination=destination, cmd=cmd, cmd_envs=cmd_env or ())
        self._phases[phase].append(operation)
        return self


def commands_to_operations(
    commands: Union[str, Operation, Iterable[Union[str, Operation]]],
    destination: Destination,
    cmd_env=None,
) -> List[Operation]:
    """Turn a command string, an Operation, or a list of either into Operations."""
    if isinstance(commands, (str, Operation)):
        commands = [commands]
    operations = []
    for command in commands:
        if isinstance(command, Operation):
            operations.append(command)
        elif isinstance(command, str):
            operations.append(Operation(destination=destination, cmd=command, cmd_envs=cmd_env or ()))
        else:
            raise TypeError(f"Expected a command string or Operation, got {command!r}")
    return operations
