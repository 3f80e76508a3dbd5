"""Local execution on the machine running the deployer."""

from .session import LocalSession, LocalCommandResult

__all__ = ["LocalSession", "LocalCommandResult"]
