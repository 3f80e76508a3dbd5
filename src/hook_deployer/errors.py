"""Exceptions raised while building or running a deployment pipeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .orchestrator.models import PipelineResult


class HookConstructionError(ValueError):
    """Raised when a hook cannot be built from the given kind, producer or options."""

    pass


class DeploymentFailedError(RuntimeError):
    """Raised for a pipeline that stopped on a failed hook."""

    def __init__(self, result: "PipelineResult") -> None:
        self.result = result
        failure = result.first_failure
        if failure is None:
            message = f"Deployment {result.deployment_name} failed"
        else:
            message = f"Deployment {result.deployment_name} failed\n{failure.describe()}"
        super().__init__(message)
