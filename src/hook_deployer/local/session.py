"""Local command execution session."""

from __future__ import annotations

import os
import subprocess
import sys
import threading
from dataclasses import dataclass
from typing import Mapping, Optional


@dataclass
class LocalCommandResult:
    """Result of executing a local command."""
    command: str
    stdout: str
    stderr: str
    exit_status: int

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class LocalSession:
    """
    Local command execution session.

    Provides the same ``run`` interface as SSHSession but spawns a shell on
    this machine. stdout and stderr are merged into one stream and echoed
    as they are produced.
    """

    def __init__(
        self,
        shell: str = "/bin/sh",
        *,
        timeout: Optional[int] = None,
        stream_output: bool = True,
    ) -> None:
        """
        Args:
            shell: Shell binary invoked as ``<shell> -c <command>``.
            timeout: Total timeout in seconds. ``None`` waits forever.
            stream_output: Whether to echo output to stdout while it runs.
        """
        self.shell = shell
        self.timeout = timeout
        self.stream_output = stream_output

    def __enter__(self) -> "LocalSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """No-op for local session (for API compatibility with SSHSession)."""

    def run(
        self,
        command: str,
        *,
        cwd: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> LocalCommandResult:
        """
        Execute a command locally and wait for it to finish.

        Args:
            command: Shell script passed to ``<shell> -c``.
            cwd: Working directory. It must already exist.
            env: Variables layered over the current process environment.

        Returns:
            LocalCommandResult with the combined output in ``stdout``.

        Raises:
            OSError: The shell could not be spawned.
            ValueError: The command or environment holds a NUL byte.
        """
        process = subprocess.Popen(
            [self.shell, "-c", command],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            cwd=cwd,
            env=self._get_env(env),
        )

        # 总超时：到点直接杀掉进程
        timed_out = threading.Event()

        def _expire() -> None:
            timed_out.set()
            process.kill()

        watchdog: Optional[threading.Timer] = None
        if self.timeout is not None:
            watchdog = threading.Timer(self.timeout, _expire)
            watchdog.daemon = True
            watchdog.start()

        chunks = []
        assert process.stdout is not None
        try:
            # 逐行读取，边执行边输出
            for line in process.stdout:
                chunks.append(line)
                if self.stream_output:
                    sys.stdout.write(line)
                    sys.stdout.flush()
            exit_status = process.wait()
        finally:
            process.stdout.close()
            if watchdog is not None:
                watchdog.cancel()

        if timed_out.is_set():
            return LocalCommandResult(
                command=command,
                stdout="".join(chunks).strip(),
                stderr=f"TOTAL_TIMEOUT: Command exceeded {self.timeout} seconds total execution time.",
                exit_status=-2,
            )

        return LocalCommandResult(
            command=command,
            stdout="".join(chunks).strip(),
            stderr="",
            exit_status=exit_status,
        )

    def _get_env(self, extra: Optional[Mapping[str, str]]) -> dict:
        """Get environment variables for subprocess."""
        env = os.environ.copy()
        if extra:
            env.update(extra)
        return env
