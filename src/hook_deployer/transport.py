"""Execution transports available to operations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .local import LocalSession
from .ssh import SSHSession, SSHSessionPool

if TYPE_CHECKING:
    from .config import AppConfig
    from .destination import Destination


class Transports:
    """Pairs the local shell session with the pool of SSH sessions.

    Operations pick one of the two by their destination; the executor owns
    the instance and closes it when the pipeline ends.
    """

    def __init__(
        self,
        local: Optional[LocalSession] = None,
        ssh_pool: Optional[SSHSessionPool] = None,
    ) -> None:
        self.local = local or LocalSession()
        self.ssh_pool = ssh_pool or SSHSessionPool()

    @classmethod
    def from_config(cls, config: "AppConfig") -> "Transports":
        local = LocalSession(
            shell=config.execution.shell,
            timeout=config.execution.command_timeout,
            stream_output=config.execution.stream_output,
        )
        return cls(local=local, ssh_pool=SSHSessionPool.from_config(config))

    def __enter__(self) -> "Transports":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def remote(self, destination: "Destination") -> SSHSession:
        return self.ssh_pool.get(destination)

    def close(self) -> None:
        self.local.close()
        self.ssh_pool.close_all()
