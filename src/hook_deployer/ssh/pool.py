"""Reuse of SSH sessions across operations that target the same host."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

import paramiko

from .credentials import SSHCredentials
from .session import SSHSession

if TYPE_CHECKING:
    from ..config import AppConfig
    from ..destination import Destination

logger = logging.getLogger(__name__)


class SSHSessionPool:
    """Hands out one lazily connected SSHSession per (user, host) pair.

    Operations run one at a time, so a pooled session never sees commands
    from two hooks interleaved.
    """

    def __init__(
        self,
        *,
        port: int = 22,
        auth_method: str = "agent",
        password: Optional[str] = None,
        key_path: Optional[str] = None,
        passphrase: Optional[str] = None,
        connect_timeout: int = 20,
        command_timeout: Optional[int] = None,
        stream_output: bool = True,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
    ) -> None:
        self.port = port
        self.auth_method = auth_method
        self.password = password
        self.key_path = key_path
        self.passphrase = passphrase
        self.connect_timeout = connect_timeout
        self.command_timeout = command_timeout
        self.stream_output = stream_output
        self._client_factory = client_factory
        self._sessions: Dict[Tuple[str, str], SSHSession] = {}

    @classmethod
    def from_config(
        cls,
        config: "AppConfig",
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
    ) -> "SSHSessionPool":
        ssh = config.ssh
        return cls(
            port=ssh.port,
            auth_method=ssh.auth_method,
            password=ssh.password,
            key_path=ssh.key_path,
            passphrase=ssh.passphrase,
            connect_timeout=ssh.timeout,
            command_timeout=ssh.command_timeout,
            stream_output=config.execution.stream_output,
            client_factory=client_factory,
        )

    def __enter__(self) -> "SSHSessionPool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_all()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, destination: "Destination") -> SSHSession:
        if destination.is_local:
            raise ValueError("Local destinations do not use SSH")
        key = (destination.username, destination.host)
        session = self._sessions.get(key)
        if session is None:
            logger.debug("Opening SSH session to %s@%s", *key)
            credentials = SSHCredentials(
                host=destination.host,
                username=destination.username,
                port=self.port,
                auth_method=self.auth_method,
                password=self.password,
                key_path=self.key_path,
                passphrase=self.passphrase,
                timeout=self.connect_timeout,
            )
            session = SSHSession(
                credentials,
                client_factory=self._client_factory,
                timeout=self.command_timeout,
                stream_output=self.stream_output,
            )
            self._sessions[key] = session
        return session

    def close_all(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
