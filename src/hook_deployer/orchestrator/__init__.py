"""Orchestrator module for running deployment pipelines.

- PipelineExecutor: walks a deployment's hooks in order
- HookExecutor: runs one hook's main, rollback and ensure phases
- PhaseResult/HookResult/PipelineResult: what happened, for logging and inspection
"""

from .models import HookResult, HookStatus, PhaseResult, PipelineResult
from .hook_executor import HookExecutor
from .executor import PipelineExecutor

__all__ = [
    "HookStatus",
    "PhaseResult",
    "HookResult",
    "PipelineResult",
    "HookExecutor",
    "PipelineExecutor",
]
