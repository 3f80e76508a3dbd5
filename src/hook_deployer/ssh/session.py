"""SSH session management built on Paramiko."""

from __future__ import annotations

import logging
import socket
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import paramiko

from .credentials import SSHCredentials

logger = logging.getLogger(__name__)

_CHUNK = 4096


class SSHConnectionError(RuntimeError):
    """Raised when an SSH connection cannot be established or is lost."""

    pass


@dataclass
class SSHCommandResult:
    command: str
    stdout: str
    stderr: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class SSHSession:
    """One paramiko client to a (user, host) pair, connected on first use.

    A session whose transport breaks while a command is being sent drops
    its client, so the next ``run`` opens a fresh connection.
    """

    def __init__(
        self,
        credentials: SSHCredentials,
        *,
        client_factory: Callable[[], paramiko.SSHClient] | None = None,
        timeout: Optional[int] = None,
        stream_output: bool = True,
    ) -> None:
        self.credentials = credentials
        self.timeout = timeout
        self.stream_output = stream_output
        self._client_factory = client_factory or paramiko.SSHClient
        self._client: Optional[paramiko.SSHClient] = None

    def __enter__(self) -> "SSHSession":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # type: ignore[override]
        self.close()

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _connect_kwargs(self) -> dict:
        creds = self.credentials
        kwargs = {
            "hostname": creds.host,
            "port": creds.port,
            "username": creds.username,
            "timeout": creds.timeout,
            "look_for_keys": False,
            "allow_agent": False,
        }
        if creds.auth_method == "password":
            kwargs["password"] = creds.password
        elif creds.auth_method == "key":
            kwargs["key_filename"] = creds.key_path
            if creds.passphrase:
                kwargs["passphrase"] = creds.passphrase
        else:
            # agent 模式：使用 ssh-agent 和 ~/.ssh 下的默认密钥
            kwargs["look_for_keys"] = True
            kwargs["allow_agent"] = True
        return kwargs

    def connect(self) -> None:
        if self._client:
            return
        try:
            self.credentials.validate()
        except ValueError as exc:
            raise SSHConnectionError(str(exc)) from exc

        client = self._client_factory()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(**self._connect_kwargs())
        except Exception as exc:  # pragma: no cover - network errors hard to simulate
            client.close()
            raise SSHConnectionError(
                f"{self.credentials.username}@{self.credentials.host}: {exc}"
            ) from exc
        self._client = client

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def run(self, command: str) -> SSHCommandResult:
        """
        Execute a command on the remote server.

        Args:
            command: The shell script to execute

        Returns:
            SSHCommandResult with command output and exit status

        Raises:
            SSHConnectionError: The session could not connect, or the
                connection broke while the command was being started.
        """
        self.connect()
        assert self._client is not None

        try:
            _, stdout, stderr = self._client.exec_command(command, timeout=self.timeout)
        except (paramiko.SSHException, EOFError, OSError) as exc:
            logger.warning(
                "SSH connection to %s@%s lost, dropping it: %s",
                self.credentials.username,
                self.credentials.host,
                exc,
            )
            self.close()
            raise SSHConnectionError(str(exc)) from exc

        if self.stream_output:
            out, err, exit_status = self._collect_streaming(stdout.channel)
        else:
            out, err, exit_status = self._collect_buffered(stdout, stderr)

        if exit_status is None:
            return SSHCommandResult(
                command=command,
                stdout=out.strip(),
                stderr=f"TOTAL_TIMEOUT: Command exceeded {self.timeout} seconds total execution time.",
                exit_status=-2,
            )
        return SSHCommandResult(command=command, stdout=out.strip(), stderr=err.strip(), exit_status=exit_status)

    def _collect_streaming(self, channel) -> Tuple[str, str, Optional[int]]:
        """Echo output while the command runs. Exit status is None on timeout."""
        out: List[str] = []
        err: List[str] = []
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        while not channel.exit_status_ready():
            self._drain(channel, out, err)
            if deadline is not None and time.monotonic() > deadline:
                channel.close()
                return "".join(out), "".join(err), None
            time.sleep(0.1)

        # 退出后通道里可能还有剩余输出
        self._drain(channel, out, err)
        return "".join(out), "".join(err), channel.recv_exit_status()

    def _collect_buffered(self, stdout, stderr) -> Tuple[str, str, Optional[int]]:
        channel = stdout.channel
        if self.timeout is not None:
            channel.settimeout(float(self.timeout))
        try:
            exit_status = channel.recv_exit_status()
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
        except socket.timeout:
            channel.close()
            return "", "", None
        return out, err, exit_status

    @staticmethod
    def _drain(channel, out: List[str], err: List[str]) -> None:
        for ready, recv, sink, stream in (
            (channel.recv_ready, channel.recv, out, sys.stdout),
            (channel.recv_stderr_ready, channel.recv_stderr, err, sys.stderr),
        ):
            while ready():
                chunk = recv(_CHUNK).decode("utf-8", errors="replace")
                sink.append(chunk)
                stream.write(chunk)
                stream.flush()
