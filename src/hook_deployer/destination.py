"""Where an operation's commands run: the local machine or a remote host."""

from __future__ import annotations

import getpass
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .deployment import Deployment

LOCAL = "local"


@dataclass(frozen=True)
class Destination:
    """Location descriptor for a command.

    ``host=None`` means the local machine and ``user=None`` means the user
    running the deployer. Any other host is reached over SSH.
    """

    host: Optional[str] = None
    user: Optional[str] = None
    path: str = "."

    @classmethod
    def local(cls, path: str = ".") -> "Destination":
        return cls(path=path)

    @classmethod
    def remote(cls, user: Optional[str], host: str, path: str = ".") -> "Destination":
        if not host:
            raise ValueError("Remote destination requires a host")
        return cls(host=host, user=user, path=path)

    @classmethod
    def parse(cls, value: str) -> "Destination":
        """Parse ``user@host:path``, ``host:path``, ``local:path`` or a bare path."""
        if not value:
            raise ValueError("Cannot parse an empty destination")
        if value == LOCAL:
            return cls.local()
        if ":" not in value:
            return cls.local(value)

        target, path = value.split(":", 1)
        path = path or "."
        if target == LOCAL:
            return cls.local(path)
        if "@" in target:
            user, host = target.split("@", 1)
            return cls.remote(user or None, host, path)
        return cls.remote(None, target, path)

    @property
    def is_local(self) -> bool:
        return self.host is None

    @property
    def username(self) -> str:
        """Explicit user, or the current user when none was given."""
        return self.user or getpass.getuser()

    def __str__(self) -> str:
        if self.is_local:
            return self.path
        if self.user:
            return f"{self.user}@{self.host}:{self.path}"
        return f"{self.host}:{self.path}"


def resolve(kind: str, deployment: "Deployment") -> Destination:
    """Map a native hook kind to the deployment location its commands run on."""
    # fetch 和 build 都在构建目录执行
    if kind in ("fetch", "build"):
        return deployment.build_at
    if kind == "publish":
        return deployment.publish_to
    raise ValueError(f"Cannot resolve a destination for hook kind {kind!r}")
