"""SSH transport for remote destinations."""

from .credentials import SSHCredentials
from .pool import SSHSessionPool
from .session import SSHCommandResult, SSHConnectionError, SSHSession

__all__ = [
    "SSHCredentials",
    "SSHCommandResult",
    "SSHConnectionError",
    "SSHSession",
    "SSHSessionPool",
]
