"""A single shell command bound to a destination and its environment."""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

import paramiko

from .destination import Destination
from .ssh import SSHConnectionError

if TYPE_CHECKING:
    from .hook import Phase
    from .transport import Transports

logger = logging.getLogger(__name__)

EnvPair = Tuple[str, str]


def normalize_envs(cmd_envs: Optional[Iterable]) -> Tuple[EnvPair, ...]:
    """Return ``cmd_envs`` as a tuple of ``(name, value)`` string pairs."""
    if cmd_envs is None:
        return ()
    if isinstance(cmd_envs, (str, bytes)):
        raise ValueError("cmd_envs must be a list of (name, value) pairs, not a string")
    pairs = []
    for pair in cmd_envs:
        if isinstance(pair, (str, bytes)) or len(pair) != 2:
            raise ValueError(f"Invalid environment pair: {pair!r}")
        name, value = pair
        if not isinstance(name, str) or not isinstance(value, str):
            raise ValueError(f"Environment pair must hold two strings: {pair!r}")
        pairs.append((name, value))
    return tuple(pairs)


@dataclass(frozen=True)
class Operation:
    """One command, the environment it runs with and where it runs.

    ``cmd`` may hold several newline-separated commands; each line gets the
    environment assignments prefixed when rendered.
    """

    destination: Destination
    cmd: str = ""
    cmd_envs: Tuple[EnvPair, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.destination, Destination):
            raise TypeError("Operation requires a Destination")
        object.__setattr__(self, "cmd_envs", normalize_envs(self.cmd_envs))

    def environmentalize_cmd(self) -> str:
        """Prefix ``NAME=VALUE`` assignments onto every line of ``cmd``.

        >>> op = Operation(Destination.local(), "thuum", [("NAME", "dragonborn"), ("NOK", "dovahkiin")])
        >>> op.environmentalize_cmd()
        'NAME=dragonborn NOK=dovahkiin thuum'
        >>> Operation(Destination.local(), "thuum").environmentalize_cmd()
        ' thuum'
        """
        envs = " ".join(f"{name}={value}" for name, value in self.cmd_envs)
        return "\n ".join(f"{envs} {line}" for line in self.cmd.split("\n"))

    render = environmentalize_cmd

    def run(self, transports: "Transports") -> "OperationResult":
        """Run the command on its destination.

        Local destinations get their path expanded and created before a
        shell is spawned there. Remote destinations run the rendered command
        over SSH after changing into the destination path. Transport errors
        are returned as a failed result, never raised.
        """
        rendered = self.environmentalize_cmd()
        logger.info(rendered)

        try:
            if self.destination.is_local:
                path = os.path.abspath(os.path.expanduser(self.destination.path))
                os.makedirs(path, exist_ok=True)
                result = transports.local.run(rendered, cwd=path, env=dict(self.cmd_envs))
            else:
                session = transports.remote(self.destination)
                result = session.run(self.remote_cmd(rendered))
        except (OSError, ValueError, SSHConnectionError, paramiko.SSHException) as exc:
            logger.error("Could not run operation on %s: %s", self.destination, exc)
            return OperationResult(
                operation=self,
                rendered=rendered,
                output="",
                exit_status=-1,
                error=str(exc),
            )

        output = "\n".join(part for part in (result.stdout, result.stderr) if part)
        return OperationResult(
            operation=self,
            rendered=rendered,
            output=output,
            exit_status=result.exit_status,
        )

    def remote_cmd(self, rendered: Optional[str] = None) -> str:
        """Script sent over SSH: change into the destination path, then run."""
        if rendered is None:
            rendered = self.environmentalize_cmd()
        return f"cd {_quote_path(self.destination.path)} || exit 1\n{rendered}"


def _quote_path(path: str) -> str:
    # 保留 ~ 让远程 shell 展开
    if path == "~":
        return path
    if path.startswith("~/"):
        return "~/" + shlex.quote(path[2:])
    return shlex.quote(path)


@dataclass
class OperationResult:
    """Outcome of running one operation."""

    operation: Operation
    rendered: str
    output: str
    exit_status: int
    error: Optional[str] = None
    phase: Optional["Phase"] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_status == 0

    @property
    def destination(self) -> Destination:
        return self.operation.destination

    def describe(self) -> str:
        lines = [
            f"command: {self.rendered}",
            f"destination: {self.destination}",
            f"exit status: {self.exit_status}",
        ]
        if self.phase is not None:
            lines.insert(0, f"phase: {self.phase.value}")
        if self.error:
            lines.append(f"error: {self.error}")
        if self.output:
            lines.append("output:")
            lines.extend(f"  {line}" for line in self.output.splitlines())
        return "\n".join(lines)
