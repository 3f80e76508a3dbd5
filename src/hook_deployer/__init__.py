"""hook-deployer: run ordered deployment hooks locally or over SSH."""

from .deploy_helper import (
    Producers,
    add_command_hook,
    add_hook,
    exec_deployment,
    init_deployment,
    load_pipeline,
)
from .deployment import Deployment
from .destination import Destination
from .errors import DeploymentFailedError, HookConstructionError
from .hook import Hook, HookBuilder, HookKind, Phase
from .operation import Operation, OperationResult
from .orchestrator import HookResult, PipelineExecutor, PipelineResult
from .transport import Transports

__all__ = [
    "Deployment",
    "DeploymentFailedError",
    "Destination",
    "Hook",
    "HookBuilder",
    "HookConstructionError",
    "HookKind",
    "HookResult",
    "Operation",
    "OperationResult",
    "Phase",
    "PipelineExecutor",
    "PipelineResult",
    "Producers",
    "Transports",
    "add_command_hook",
    "add_hook",
    "exec_deployment",
    "init_deployment",
    "load_pipeline",
]
