"""Stand-in sessions so hook and pipeline tests never spawn shells or dial SSH."""

from __future__ import annotations

from hook_deployer.local import LocalCommandResult


class StubSession:
    """Records every command; commands containing ``fail`` exit with status 1."""

    def __init__(self, log: list) -> None:
        self.log = log
        self.closed = False

    def run(self, command: str, *, cwd=None, env=None) -> LocalCommandResult:
        self.log.append(command.strip())
        status = 1 if "fail" in command else 0
        return LocalCommandResult(
            command=command,
            stdout=f"ran {command.strip()}",
            stderr="",
            exit_status=status,
        )

    def close(self) -> None:
        self.closed = True


class StubTransports:
    """Drop-in for Transports; local and remote commands share one log."""

    def __init__(self) -> None:
        self.commands: list = []
        self.local = StubSession(self.commands)
        self.remote_destinations: list = []
        self.closed = False

    def remote(self, destination) -> StubSession:
        self.remote_destinations.append(destination)
        return StubSession(self.commands)

    def close(self) -> None:
        self.closed = True
